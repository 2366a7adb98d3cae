"""Load the raw row snapshot from DuckDB or a JSON dump."""

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, get_type_hints

import polars as pl
import structlog

from chado_pipeline.persistence import PipelineStore
from chado_pipeline.raw.models import (
    RawAnnotation,
    RawChadoprop,
    RawExtensionPart,
    RawFeature,
    RawFeatureDbxref,
    RawFeatureLoc,
    RawFeatureProp,
    RawFeatureRelationship,
    RawFeatureSynonym,
    RawPublication,
    RawTerm,
    RawTermRelationship,
    RawTermSubset,
    RawTermSynonym,
    RawTermXref,
)

logger = structlog.get_logger()

# snapshot table name -> (RawData attribute, row class)
RAW_TABLES = {
    "raw_terms": ("terms", RawTerm),
    "raw_term_synonyms": ("term_synonyms", RawTermSynonym),
    "raw_term_relationships": ("term_relationships", RawTermRelationship),
    "raw_term_subsets": ("term_subsets", RawTermSubset),
    "raw_term_xrefs": ("term_xrefs", RawTermXref),
    "raw_publications": ("publications", RawPublication),
    "raw_features": ("features", RawFeature),
    "raw_feature_props": ("feature_props", RawFeatureProp),
    "raw_feature_locs": ("feature_locs", RawFeatureLoc),
    "raw_feature_relationships": ("feature_relationships", RawFeatureRelationship),
    "raw_feature_synonyms": ("feature_synonyms", RawFeatureSynonym),
    "raw_feature_dbxrefs": ("feature_dbxrefs", RawFeatureDbxref),
    "raw_annotations": ("annotations", RawAnnotation),
    "raw_extension_parts": ("extension_parts", RawExtensionPart),
    "raw_chadoprops": ("chadoprops", RawChadoprop),
}


@dataclass
class RawData:
    """Read-only snapshot of every raw row needed for one build."""

    terms: list[RawTerm] = field(default_factory=list)
    term_synonyms: list[RawTermSynonym] = field(default_factory=list)
    term_relationships: list[RawTermRelationship] = field(default_factory=list)
    term_subsets: list[RawTermSubset] = field(default_factory=list)
    term_xrefs: list[RawTermXref] = field(default_factory=list)
    publications: list[RawPublication] = field(default_factory=list)
    features: list[RawFeature] = field(default_factory=list)
    feature_props: list[RawFeatureProp] = field(default_factory=list)
    feature_locs: list[RawFeatureLoc] = field(default_factory=list)
    feature_relationships: list[RawFeatureRelationship] = field(default_factory=list)
    feature_synonyms: list[RawFeatureSynonym] = field(default_factory=list)
    feature_dbxrefs: list[RawFeatureDbxref] = field(default_factory=list)
    annotations: list[RawAnnotation] = field(default_factory=list)
    extension_parts: list[RawExtensionPart] = field(default_factory=list)
    chadoprops: list[RawChadoprop] = field(default_factory=list)

    def row_counts(self) -> dict[str, int]:
        return {attr: len(getattr(self, attr)) for attr, _ in RAW_TABLES.values()}

    @classmethod
    def from_store(cls, store: PipelineStore) -> "RawData":
        """
        Read every raw table from a PipelineStore.

        Missing tables are treated as empty.
        """
        raw = cls()
        for table_name, (attr, row_cls) in RAW_TABLES.items():
            df = store.load_dataframe(table_name)
            if df is None:
                logger.debug("raw_table_missing", table=table_name)
                continue
            setattr(raw, attr, _rows_from_frame(df, row_cls))
        logger.info("raw_snapshot_loaded", source=str(store.db_path), **raw.row_counts())
        return raw

    @classmethod
    def from_json(cls, path: Path) -> "RawData":
        """Read a JSON dump of the form {"raw_terms": [{...}, ...], ...}."""
        with open(path) as f:
            content = json.load(f)

        raw = cls()
        for table_name, (attr, row_cls) in RAW_TABLES.items():
            rows = content.get(table_name, [])
            setattr(raw, attr, [_row_from_dict(row_cls, row) for row in rows])
        logger.info("raw_snapshot_loaded", source=str(path), **raw.row_counts())
        return raw

    @classmethod
    def load(cls, path: Path) -> "RawData":
        """Load from a .json dump or a DuckDB database file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot not found: {path}")
        if path.suffix == ".json":
            return cls.from_json(path)
        with PipelineStore(path, read_only=True) as store:
            return cls.from_store(store)

    def save_to_store(self, store: PipelineStore) -> None:
        """Write every non-empty raw table to a PipelineStore."""
        for table_name, (attr, row_cls) in RAW_TABLES.items():
            rows = getattr(self, attr)
            if not rows:
                continue
            df = pl.DataFrame(
                [dataclasses.asdict(row) for row in rows],
                schema=_frame_schema(row_cls),
            )
            store.save_dataframe(df, table_name, f"raw snapshot: {attr}")


def _row_from_dict(row_cls, row: dict):
    names = {f.name for f in dataclasses.fields(row_cls)}
    kwargs = {k: v for k, v in row.items() if k in names}
    for f in dataclasses.fields(row_cls):
        # list columns may come back as NULL
        if f.name in kwargs and kwargs[f.name] is None and f.default_factory is list:
            kwargs[f.name] = []
    return row_cls(**kwargs)


def _rows_from_frame(df: pl.DataFrame, row_cls) -> list:
    return [_row_from_dict(row_cls, row) for row in df.iter_rows(named=True)]


_POLARS_TYPES = {
    str: pl.Utf8,
    int: pl.Int64,
    bool: pl.Boolean,
    list[str]: pl.List(pl.Utf8),
}


def _frame_schema(row_cls) -> dict:
    """Column types of a raw table, so all-NULL columns keep a concrete type."""
    schema = {}
    for name, hint in get_type_hints(row_cls).items():
        for python_type, polars_type in _POLARS_TYPES.items():
            if hint == python_type or hint == Optional[python_type]:
                schema[name] = polars_type
                break
        else:
            raise TypeError(f"no column type for {row_cls.__name__}.{name}: {hint}")
    return schema
