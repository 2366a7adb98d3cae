"""DuckDB-based storage for raw snapshots and the relational JSON sink."""

from pathlib import Path
from typing import Optional

import duckdb
import polars as pl


class PipelineStore:
    """
    DuckDB-based storage for pipeline tables.

    Holds the raw row snapshot the build reads from, and optionally the
    web_json schema written by the export. Every table saved through
    save_dataframe is recorded in the _checkpoints metadata table.
    """

    def __init__(self, db_path: Path, read_only: bool = False):
        """
        Initialize PipelineStore with a DuckDB database.

        Args:
            db_path: Path to DuckDB database file. Parent directories
                     are created automatically.
            read_only: Open an existing database without write access
        """
        self.db_path = Path(db_path)
        self.read_only = read_only
        if not read_only:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path), read_only=read_only)

        if not read_only:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS _checkpoints (
                    table_name VARCHAR PRIMARY KEY,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    row_count INTEGER,
                    description VARCHAR
                )
            """)

    def save_dataframe(
        self,
        df: pl.DataFrame,
        table_name: str,
        description: str = "",
        replace: bool = True
    ) -> None:
        """
        Save a polars DataFrame to DuckDB as a table.

        Args:
            df: Polars DataFrame to save
            table_name: Name for the DuckDB table, optionally schema-qualified
            description: Optional description for checkpoint metadata
            replace: If True, replace existing table; if False, append
        """
        if not isinstance(df, pl.DataFrame):
            raise ValueError("df must be a polars.DataFrame")

        if replace:
            self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM df")
        else:
            self.conn.execute(f"INSERT INTO {table_name} SELECT * FROM df")

        self.conn.execute("""
            INSERT OR REPLACE INTO _checkpoints (table_name, row_count, description, created_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
        """, [table_name, len(df), description])

    def load_dataframe(self, table_name: str) -> Optional[pl.DataFrame]:
        """
        Load a table as a polars DataFrame.

        Returns:
            DataFrame or None if table doesn't exist
        """
        try:
            return self.conn.execute(f"SELECT * FROM {table_name}").pl()
        except duckdb.CatalogException:
            return None

    def has_checkpoint(self, table_name: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM _checkpoints WHERE table_name = ?",
            [table_name]
        ).fetchone()
        return result[0] > 0

    def list_checkpoints(self) -> list[dict]:
        """
        List all checkpoints with metadata.

        Returns:
            List of checkpoint metadata dicts with keys:
            table_name, created_at, row_count, description
        """
        result = self.conn.execute("""
            SELECT table_name, created_at, row_count, description
            FROM _checkpoints
            ORDER BY table_name
        """).fetchall()

        return [
            {
                "table_name": row[0],
                "created_at": row[1],
                "row_count": row[2],
                "description": row[3],
            }
            for row in result
        ]

    def ensure_schema(self, schema_name: str) -> None:
        self.conn.execute(f"CREATE SCHEMA IF NOT EXISTS {schema_name}")

    def execute_query(
        self,
        query: str,
        params: Optional[list] = None
    ) -> pl.DataFrame:
        """Execute arbitrary SQL and return the result as a polars DataFrame."""
        if params:
            result = self.conn.execute(query, params)
        else:
            result = self.conn.execute(query)
        return result.pl()

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
