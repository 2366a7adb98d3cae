"""FastAPI application serving a loaded export snapshot."""

import logging
from pathlib import Path
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import FileResponse, PlainTextResponse

from chado_pipeline.config import ServiceSettings, get_settings, load_config
from chado_pipeline.query import Query, QueryAPIResult
from chado_pipeline.service.exceptions import (
    EntityNotFoundError,
    SearchError,
    register_exception_handlers,
)
from chado_pipeline.service.search import SearchClient
from chado_pipeline.service.snapshot import ServiceData, SnapshotHolder

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/dataset/latest"


def get_data(request: Request) -> ServiceData:
    return request.app.state.holder.current()


def get_search(request: Request) -> SearchClient:
    return request.app.state.search


def _found(entity_type: str, entity_id: str, details):
    if details is None:
        raise EntityNotFoundError(entity_type=entity_type, entity_id=entity_id)
    return details.model_dump(mode="json")


data_router = APIRouter(prefix=API_PREFIX, tags=["data"])


@data_router.get("/data/gene/{gene_uniquename}")
def get_gene(gene_uniquename: str, data: ServiceData = Depends(get_data)):
    return _found("gene", gene_uniquename, data.get_gene_details(gene_uniquename))


@data_router.get("/data/genotype/{genotype_uniquename}")
def get_genotype(genotype_uniquename: str, data: ServiceData = Depends(get_data)):
    return _found("genotype", genotype_uniquename, data.get_genotype_details(genotype_uniquename))


@data_router.get("/data/term/{termid}")
def get_term(termid: str, data: ServiceData = Depends(get_data)):
    return _found("term", termid, data.get_term_details(termid))


@data_router.get("/data/reference/{reference_uniquename}")
def get_reference(reference_uniquename: str, data: ServiceData = Depends(get_data)):
    return _found("reference", reference_uniquename, data.get_reference_details(reference_uniquename))


@data_router.post("/query", response_model=QueryAPIResult)
def post_query(query: Query, data: ServiceData = Depends(get_data)) -> QueryAPIResult:
    return data.query(query)


@data_router.get("/complete/{cv_name}/{q}")
def term_complete(cv_name: str, q: str, search: SearchClient = Depends(get_search)):
    try:
        matches = search.term_complete(cv_name, q)
    except SearchError:
        return {"status": "Error", "matches": []}
    return {"status": "Ok", "matches": [m.model_dump(mode="json") for m in matches]}


def _static_file(static_dir: Optional[Path], path: str) -> Path:
    """Resolve path, then path + ".json", then index.html under static_dir."""
    if static_dir is None:
        raise EntityNotFoundError(entity_type="file", entity_id=path)

    root = static_dir.resolve()
    candidates = [root / path, root / f"{path}.json", root / "index.html"] if path else [root / "index.html"]
    for candidate in candidates:
        candidate = candidate.resolve()
        if not candidate.is_relative_to(root):
            continue
        if candidate.is_file():
            return candidate

    raise EntityNotFoundError(entity_type="file", entity_id=path)


def create_app(
    holder: SnapshotHolder,
    search: SearchClient,
    settings: Optional[ServiceSettings] = None,
) -> FastAPI:
    """
    Create the FastAPI application around an already loaded snapshot.

    The static fallback route is registered last so API routes take
    precedence.
    """
    settings = settings or get_settings()
    static_dir = Path(settings.static_dir) if settings.static_dir else None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Gene, term, genotype and reference lookups and boolean gene queries",
    )
    app.state.holder = holder
    app.state.search = search

    register_exception_handlers(app)
    app.include_router(data_router)

    @app.get("/api/health")
    def health_check():
        return {
            "status": "healthy",
            "app_name": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/ping", response_class=PlainTextResponse)
    def ping():
        return f"OK {settings.app_name} {settings.app_version}"

    @app.get("/reload")
    def reload():
        holder.reload()
        return {"status": "ok"}

    @app.get("/{path:path}")
    def static_fallback(path: str):
        return FileResponse(_static_file(static_dir, path))

    return app


def app_from_settings(
    settings: Optional[ServiceSettings] = None,
    search_factory: Callable[..., SearchClient] = SearchClient.from_config,
) -> FastAPI:
    """Load config and the export named by settings, then build the app."""
    settings = settings or get_settings()
    config = load_config(settings.config_path)
    holder = SnapshotHolder.from_web_json(settings.web_json_dir, config)
    logger.info(f"Serving {config.database_name} from {settings.web_json_dir}")
    return create_app(holder, search_factory(config), settings)
