"""Low-level file writing shared by every export family."""

import gzip
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import polars as pl

from chado_pipeline.errors import ExportError


@contextmanager
def writing(artifact: Path | str) -> Iterator[None]:
    """Turn an OSError raised while writing artifact into ExportError."""
    try:
        yield
    except OSError as e:
        raise ExportError(artifact=str(artifact), reason=str(e)) from e


def write_text(path: Path, text: str) -> Path:
    with writing(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(text)
    return path


def to_json(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=False)


def write_json(path: Path, data: Any) -> Path:
    return write_text(path, to_json(data))


def write_gzip_json(path: Path, data: Any) -> Path:
    """Write gzipped JSON with a fixed mtime so identical data gives identical bytes."""
    with writing(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as raw_file:
            with gzip.GzipFile(fileobj=raw_file, mode="wb", mtime=0) as f:
                f.write(to_json(data).encode())
    return path


def write_tsv(path: Path, df: pl.DataFrame, include_header: bool = True) -> Path:
    with writing(path):
        path.parent.mkdir(parents=True, exist_ok=True)
        df.write_csv(path, separator="\t", include_header=include_header)
    return path
