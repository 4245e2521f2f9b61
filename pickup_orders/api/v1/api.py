"""API v1 router composition."""

from fastapi import APIRouter

from pickup_orders.api.v1.endpoints import cron, orders

api_router: APIRouter = APIRouter()
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
