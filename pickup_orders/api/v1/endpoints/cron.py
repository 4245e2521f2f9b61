"""Scheduler-facing endpoints."""

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from pickup_orders.core.config import settings
from pickup_orders.db.session import get_db
from pickup_orders.schemas.order import SweepResponse
from pickup_orders.services.order_expiration import check_expired_orders
from pickup_orders.utils.time import utcnow

router: APIRouter = APIRouter()


def _require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    if not settings.cron_secret:
        return
    expected = f"Bearer {settings.cron_secret}"
    if authorization is None or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.api_route("/expire-orders", methods=["GET", "POST"], response_model=SweepResponse)
def expire_orders(
    _: None = Depends(_require_cron_secret),
    db: Session = Depends(get_db),
) -> SweepResponse:
    """Run one expiration sweep over ready orders."""
    result = check_expired_orders(db)
    return SweepResponse(success=True, timestamp=utcnow(), **result.model_dump())
