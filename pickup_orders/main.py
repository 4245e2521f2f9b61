"""FastAPI entrypoint for the pickup order backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pickup_orders.api.v1.api import api_router
from pickup_orders.core.config import settings
from pickup_orders.db import session as db_session
from pickup_orders.db.base import Base
from pickup_orders.db.seed import ensure_seed_data
from pickup_orders.services.order_store import OrderStoreUnavailableError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup() -> None:
    if not settings.cron_secret:
        logger.warning("CRON_SECRET not set; the expiration endpoint accepts unauthenticated calls.")
    Base.metadata.create_all(bind=db_session.engine)
    with db_session.SessionLocal() as session:
        ensure_seed_data(session)
    logger.info("[BOOTSTRAP] %s ready (env=%s)", settings.app_name, settings.app_env)


@app.exception_handler(OrderStoreUnavailableError)
async def order_store_unavailable(request: Request, exc: OrderStoreUnavailableError) -> JSONResponse:
    logger.error("[ORDERS] %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Order store is unavailable"})


@app.get("/")
def root() -> dict[str, str]:
    return {"app": settings.app_name, "status": "ok"}
