"""Client for the term search collaborator (a Solr index)."""

import logging
import re
from typing import Optional

import requests
from pydantic import ValidationError
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.model import SolrTermSummary
from chado_pipeline.service.exceptions import SearchError

logger = logging.getLogger(__name__)

TERMID_PATTERN = r"(?P<prefix>[\w_]+):(?P<accession>\d+)"
TERMID_RE = re.compile(TERMID_PATTERN)
PARENT_RE = re.compile(r"^\[" + TERMID_PATTERN + r"\]$")
WORD_RE = re.compile(r"(\w+)")


def _words_query(words: list[str]) -> str:
    # each word matches exactly or fuzzily; the last one also as a prefix
    parts = [f"{word} {word}~0.8" for word in words]
    parts[-1] += f" {words[-1]}*"
    return " ".join(parts)


def build_term_query(
    cv_name: str,
    q: str,
    close_synonym_boost: float,
    distant_synonym_boost: float,
) -> Optional[str]:
    """
    Build the Solr query string for completing q within cv_name.

    cv_name may be "[PREFIX:NNN]" to search below a parent term instead of
    within a CV. Returns None when q contains no words, meaning no matches.
    """
    parent_match = PARENT_RE.match(cv_name)
    if parent_match:
        prefix, accession = parent_match.group("prefix"), parent_match.group("accession")
        query = f"(interesting_parents:{prefix}\\:{accession} OR id:{prefix}\\:{accession})"
    else:
        query = f"cv_name:{cv_name}"

    termid_match = TERMID_RE.search(q)
    if termid_match:
        prefix, accession = termid_match.group("prefix"), termid_match.group("accession")
        return f"{query} AND id:{prefix}\\:{accession}"

    words = WORD_RE.findall(q)
    if not words:
        return None

    words_query = _words_query(words)
    return (
        f"{query} AND (name:({words_query})"
        f" OR close_synonym_words:({words_query})^{close_synonym_boost}"
        f" OR distant_synonym_words:({words_query})^{distant_synonym_boost})"
    )


class SearchClient:
    """
    HTTP client for term completion with retry logic.

    Connection errors, timeouts and every HTTP error status (4xx as well as
    5xx) are retried with exponential backoff. After the last attempt, or on
    a malformed payload, SearchError is raised.
    """

    def __init__(
        self,
        solr_url: str,
        close_synonym_boost: float = 0.6,
        distant_synonym_boost: float = 0.3,
        max_retries: int = 3,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.solr_url = solr_url.rstrip("/")
        self.close_synonym_boost = close_synonym_boost
        self.distant_synonym_boost = distant_synonym_boost
        self.max_retries = max_retries
        self.timeout = timeout
        self.session = session or requests.Session()

    def _create_retry_decorator(self):
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((HTTPError, Timeout, ConnectionError)),
            reraise=True,
        )

    def _get_json(self, url: str, params: dict) -> dict:
        @self._create_retry_decorator()
        def _get_with_retry():
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response

        return _get_with_retry().json()

    def term_complete(self, cv_name: str, q: str) -> list[SolrTermSummary]:
        """
        Return the ranked term summaries matching q.

        Raises:
            SearchError: On transport failure or a malformed response
        """
        query = build_term_query(cv_name, q, self.close_synonym_boost, self.distant_synonym_boost)
        if query is None:
            return []

        url = f"{self.solr_url}/terms/select"
        logger.debug(f"Term completion query: {query}")
        try:
            payload = self._get_json(url, {"wt": "json", "q": query})
            docs = payload["response"]["docs"]
            return [SolrTermSummary.model_validate(doc) for doc in docs]
        except (RequestException, ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Term completion failed for {cv_name}/{q}: {e}")
            raise SearchError(cv_name=cv_name, q=q) from e

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "SearchClient":
        return cls(
            solr_url=config.server.solr_url,
            close_synonym_boost=config.server.close_synonym_boost,
            distant_synonym_boost=config.server.distant_synonym_boost,
            max_retries=config.server.max_retries,
            timeout=config.server.timeout_seconds,
        )
