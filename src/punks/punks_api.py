"""
HTTP API for CryptoPunks metadata and image URLs.

Routes (all under /api/punks):
  GET /                             all punks with image URLs
  GET /types                        distinct punk types
  GET /accessories                  distinct accessories
  GET /filter/{type}/{accessories}  random sample, ?limit=10
  GET /{id}                         one punk, 404 when unknown
"""

import re
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..config.logger_module import log_error
from ..config.settings import Settings
from ..resolver.resolver_client import AlchemyClient
from ..resolver.resolver_errors import PersistenceError
from ..resolver.resolver_rate_limiter import IntervalRateLimiter
from ..resolver.resolver_retry import RetryPolicy
from ..resolver.resolver_store import MappingStore
from ..resolver.resolver_workflow import ImageUrlResolver
from .punks_dataset import PunkDataset
from .punks_image_source import build_image_source
from .punks_service import PunkService


DEFAULT_FILTER_LIMIT = 10
LIMIT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def parse_limit(raw: Optional[str]) -> int:
    """
    Parse ?limit= from its leading integer ("5abc" is 5, "12.7" is 12).

    Missing, non-numeric and zero values give the default. Negative values
    are passed through and mean "all matches but the last N".
    """
    match = LIMIT_PREFIX.match(raw or "")
    if match is None:
        return DEFAULT_FILTER_LIMIT
    return int(match.group(1)) or DEFAULT_FILTER_LIMIT


def build_router(service: PunkService) -> APIRouter:
    """Create the /api/punks router bound to a service instance."""
    router = APIRouter()

    @router.get("/")
    def list_punks():
        return service.find_all()

    @router.get("/types")
    def list_types():
        return service.types()

    @router.get("/accessories")
    def list_accessories():
        return service.accessories()

    @router.get("/filter/{punk_type}/{accessories}")
    def filter_punks(punk_type: str, accessories: str, limit: Optional[str] = Query(None)):
        return service.filter(punk_type, accessories, limit=parse_limit(limit))

    @router.get("/{punk_id}")
    def get_punk(punk_id: str):
        punk = service.find(punk_id)
        if punk is None:
            return PlainTextResponse("punk not found", status_code=404)
        return punk

    return router


def create_app(service: PunkService,
               on_shutdown: Callable[[], None] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Punk service backing the routes
        on_shutdown: Called once when the server stops (final mapping flush)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if on_shutdown is not None:
            on_shutdown()

    app = FastAPI(title="CryptoPunks API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(build_router(service), prefix="/api/punks")
    return app


def build_resolver(settings: Settings, store: MappingStore) -> ImageUrlResolver:
    """Assemble the resolution pipeline from settings around a loaded store."""
    client = AlchemyClient(
        api_key=settings.alchemy_api_key,
        request_timeout=settings.request_timeout_seconds
    )
    return ImageUrlResolver(
        store=store,
        client=client,
        rate_limiter=IntervalRateLimiter(
            min_interval=settings.rate_limit_interval,
            mode=settings.rate_limit_mode
        ),
        retry_policy=RetryPolicy(max_attempts=settings.max_retries),
    )


def build_app_from_settings(settings: Settings) -> FastAPI:
    """
    Load the dataset, select the image source and build the app.

    The mapping store is only loaded for resolver-backed sources; it lives
    for the whole process and is flushed once at shutdown.
    """
    dataset = PunkDataset.from_file(settings.data_path)
    store = None

    def resolver_factory() -> ImageUrlResolver:
        nonlocal store
        store = MappingStore(settings.mapping_path).load()
        return build_resolver(settings, store)

    image_source = build_image_source(settings.image_source, resolver_factory)

    def final_flush() -> None:
        if store is None:
            return
        try:
            store.flush()
        except PersistenceError as e:
            log_error(f"Final mapping flush failed: {e}")

    return create_app(PunkService(dataset, image_source), on_shutdown=final_flush)
