"""FastAPI application entrypoint for the teaching planner API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException

from agents import SermonClassifierAgent
from api.dependencies import get_gateway
from api.models.schemas import HealthResponse
from api.routes.analysis import router as analysis_router
from api.routes.planner import router as planner_router
from api.services.cache_store import CacheStore
from api.services.planner import PlannerService
from core.log_config import configure_logging
from core.settings import Settings, get_settings
from gateway import CollectionGateway, UpstreamUnavailableError
from llm import LLMClient
from scheduler import ScheduleAssigner

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[CollectionGateway] = None,
    cache: Optional[CacheStore] = None,
    assigner: Optional[ScheduleAssigner] = None,
    llm: Optional[LLMClient] = None,
) -> FastAPI:
    """Build the application and the services it owns."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Teaching Planner",
        version="0.1.0",
        description=(
            "Calendar backend for sermons, family devotions and English classes, "
            "backed by Craft collections."
        ),
    )
    app.state.settings = settings
    app.state.planner = PlannerService(
        gateway=gateway or CollectionGateway(settings),
        cache=cache or CacheStore(settings.cache_fresh_ttl, settings.cache_stale_ttl),
        assigner=assigner
        or ScheduleAssigner(
            batch_size=settings.plan_batch_size,
            plan_lookahead_days=settings.plan_lookahead_days,
            cascade_lookahead_days=settings.cascade_lookahead_days,
        ),
    )
    app.state.classifier = SermonClassifierAgent(llm or LLMClient(settings))

    app.include_router(planner_router)
    app.include_router(analysis_router)

    @app.get("/api/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        """Simple readiness probe used by deployment tooling."""

        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    @app.get("/api/collections")
    def list_collections(gateway: CollectionGateway = Depends(get_gateway)) -> List[Dict[str, Any]]:
        """List upstream collections, mostly for debugging discovery."""

        try:
            return gateway.list_collections()
        except UpstreamUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    logger.info("Teaching planner ready; upstream %s", settings.craft_api_url)
    return app


app = create_app()
