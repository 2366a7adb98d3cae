"""Optional relational side channel: entity pages as JSON rows in DuckDB."""

import polars as pl
import structlog

from chado_pipeline.export.files import to_json
from chado_pipeline.model import WebData
from chado_pipeline.persistence import PipelineStore

logger = structlog.get_logger()

WEB_JSON_SCHEMA = "web_json"


def write_to_store(web_data: WebData, store: PipelineStore) -> dict[str, int]:
    """
    Write web_json.gene, web_json.term and web_json.reference tables.

    Each table has an id column and a JSON data column holding the same
    document as the per-entity JSON file.

    Returns:
        Row count per table
    """
    store.ensure_schema(WEB_JSON_SCHEMA)
    counts = {}
    for table, pages in (
        ("gene", web_data.genes),
        ("term", web_data.terms),
        ("reference", web_data.references),
    ):
        table_name = f"{WEB_JSON_SCHEMA}.{table}"
        df = pl.DataFrame(
            {
                "id": list(pages),
                "data": [to_json(page.model_dump(mode="json")) for page in pages.values()],
            },
            schema={"id": pl.Utf8, "data": pl.Utf8},
        )
        store.save_dataframe(df, table_name, f"{table} pages as JSON")
        store.conn.execute(f"ALTER TABLE {table_name} ALTER data TYPE JSON")
        counts[table_name] = df.height

    logger.info("web_json_store_written", db_path=str(store.db_path), **counts)
    return counts
