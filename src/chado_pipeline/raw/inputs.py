"""Secondary build inputs: domain matches, ncRNA families and the GO/ECO mapping."""

import json
from pathlib import Path
from typing import Optional

import polars as pl
import structlog
from pydantic import TypeAdapter

from chado_pipeline.errors import InputError
from chado_pipeline.model.features import GeneDomainData, RfamAnnotation

logger = structlog.get_logger()

_domain_adapter = TypeAdapter(dict[str, GeneDomainData])
_rfam_adapter = TypeAdapter(dict[str, list[RfamAnnotation]])

_ECO_MAPPING_SCHEMA = {"code": pl.Utf8, "reference": pl.Utf8, "eco_id": pl.Utf8}


def load_domain_data(path: Path) -> dict[str, GeneDomainData]:
    """
    Load pre-parsed InterPro/Pfam matches and TM domains keyed by gene.

    The file is a JSON object: {"SPAC1.01": {"interpro_matches": [...],
    "tm_domain_coords": [{"start": 10, "end": 30}]}}.
    """
    with open(path) as f:
        data = _domain_adapter.validate_python(json.load(f))
    logger.info("domain_data_loaded", path=str(path), gene_count=len(data))
    return data


def load_rnacentral_data(path: Path) -> dict[str, list[RfamAnnotation]]:
    """Load pre-parsed Rfam family assignments keyed by gene."""
    with open(path) as f:
        data = _rfam_adapter.validate_python(json.load(f))
    logger.info("rnacentral_data_loaded", path=str(path), gene_count=len(data))
    return data


class GoEcoMapping:
    """
    Maps a GO evidence code (and optional reference) to an ECO term id.

    Parsed from the tab-separated gaf-eco-mapping table, eg.:

        IDA	Default	ECO:0000314
        IEA	GO_REF:0000002	ECO:0000256
    """

    def __init__(self, mapping: dict[tuple[str, str], str]):
        self.mapping = mapping

    @classmethod
    def read(cls, path: Path) -> "GoEcoMapping":
        """
        Read the mapping table; "#" lines are comments.

        Raises:
            InputError: If a line does not have exactly three fields
        """
        try:
            df = pl.read_csv(
                path,
                separator="\t",
                has_header=False,
                comment_prefix="#",
                quote_char=None,
                schema=_ECO_MAPPING_SCHEMA,
            )
        except pl.exceptions.NoDataError:
            df = pl.DataFrame(schema=_ECO_MAPPING_SCHEMA)
        except pl.exceptions.PolarsError as e:
            raise InputError(path=str(path), reason=str(e)) from e

        incomplete = df.filter(pl.any_horizontal(pl.all().is_null()))
        if incomplete.height > 0:
            raise InputError(
                path=str(path),
                reason=f"line for evidence code {incomplete['code'][0]!r} has fewer than 3 fields",
            )

        mapping = {
            (code, reference): eco_id
            for code, reference, eco_id in df.iter_rows()
        }
        logger.info("go_eco_mapping_loaded", path=str(path), entry_count=len(mapping))
        return cls(mapping)

    def lookup(self, evidence_code: str, reference: Optional[str] = None) -> Optional[str]:
        if reference is not None and (evidence_code, reference) in self.mapping:
            return self.mapping[(evidence_code, reference)]
        return self.mapping.get((evidence_code, "Default"))
