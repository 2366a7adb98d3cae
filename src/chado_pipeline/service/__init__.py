"""HTTP query service over an exported snapshot."""

from chado_pipeline.service.app import app_from_settings, create_app
from chado_pipeline.service.exceptions import (
    AppException,
    EntityNotFoundError,
    SearchError,
    SnapshotLoadError,
    register_exception_handlers,
)
from chado_pipeline.service.search import SearchClient, build_term_query
from chado_pipeline.service.snapshot import ServiceData, SnapshotHolder

__all__ = [
    "app_from_settings",
    "create_app",
    "AppException",
    "EntityNotFoundError",
    "SearchError",
    "SnapshotLoadError",
    "register_exception_handlers",
    "SearchClient",
    "build_term_query",
    "ServiceData",
    "SnapshotHolder",
]
