"""The live data snapshot of the query service and its reload slot."""

import gzip
import json
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.errors import QueryError
from chado_pipeline.model import APIMaps, GeneDetails, GenotypeDetails, ReferenceDetails, TermDetails
from chado_pipeline.query import GeneIndex, Query, QueryAPIResult
from chado_pipeline.service.exceptions import SnapshotLoadError

logger = logging.getLogger(__name__)

API_MAPS_FILE_NAME = "api_maps.json.gz"


class ServiceData:
    """
    One immutable snapshot: the API maps plus the gene index built from them.

    Lookups return deep copies so callers can never modify the snapshot.
    """

    def __init__(self, maps: APIMaps, config: PipelineConfig):
        self.maps = maps
        self.index = GeneIndex(maps, config.server.subsets.prefixes_to_remove)

    @classmethod
    def load(cls, web_json_dir: Path, config: PipelineConfig) -> "ServiceData":
        path = Path(web_json_dir) / API_MAPS_FILE_NAME
        try:
            with gzip.open(path, "rt") as f:
                maps = APIMaps.from_json_dict(json.load(f))
        except (OSError, ValueError) as e:
            raise SnapshotLoadError(path=str(path)) from e
        logger.info(f"Loaded {len(maps.genes)} genes and {len(maps.terms)} terms from {path}")
        return cls(maps, config)

    def get_gene_details(self, gene_uniquename: str) -> Optional[GeneDetails]:
        gene = self.maps.genes.get(gene_uniquename)
        return gene.model_copy(deep=True) if gene is not None else None

    def get_genotype_details(self, genotype_uniquename: str) -> Optional[GenotypeDetails]:
        genotype = self.maps.genotypes.get(genotype_uniquename)
        return genotype.model_copy(deep=True) if genotype is not None else None

    def get_term_details(self, termid: str) -> Optional[TermDetails]:
        term = self.maps.terms.get(termid)
        return term.model_copy(deep=True) if term is not None else None

    def get_reference_details(self, reference_uniquename: str) -> Optional[ReferenceDetails]:
        reference = self.maps.references.get(reference_uniquename)
        return reference.model_copy(deep=True) if reference is not None else None

    def query(self, query: Query) -> QueryAPIResult:
        try:
            rows = query.exec(self.index)
        except QueryError as e:
            return QueryAPIResult(status="error", error=e.message)
        return QueryAPIResult(status="ok", rows=rows)


class SnapshotHolder:
    """
    Single-owner slot holding the current ServiceData.

    reload() builds the new snapshot while holding the lock and then swaps
    the reference, so readers calling current() during a reload wait and
    then see the new snapshot in full. If loading fails the previous
    snapshot stays in place and the error propagates.
    """

    def __init__(self, loader: Callable[[], ServiceData]):
        self._loader = loader
        self._lock = threading.Lock()
        self._data = loader()

    def current(self) -> ServiceData:
        with self._lock:
            return self._data

    def reload(self) -> ServiceData:
        with self._lock:
            logger.info("Reloading data snapshot")
            data = self._loader()
            self._data = data
        logger.info("Reload complete")
        return data

    @classmethod
    def from_web_json(cls, web_json_dir: Path, config: PipelineConfig) -> "SnapshotHolder":
        return cls(lambda: ServiceData.load(web_json_dir, config))
