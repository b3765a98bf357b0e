"""
Presence API Endpoints

ping 是 best-effort：任何失敗都回 success=False，不會變成 5xx
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from database import get_db, get_settings
from schemas import PingSubmit, PingResponse, LiveCountResponse
from core.presence_tracker import PresenceTracker
from services.calendar_service import utcnow
from services.identity_service import resolve_participant_id

router = APIRouter(prefix="/api/presence", tags=["presence"])
logger = logging.getLogger(__name__)


@router.post("/ping", response_model=PingResponse)
def ping(request: Request, payload: Optional[PingSubmit] = None, db: Session = Depends(get_db)):
    try:
        client_host = request.client.host if request.client else None
        supplied = payload.participant_id if payload else None
        PresenceTracker.ping(db, resolve_participant_id(supplied, client_host))
        return PingResponse(success=True)

    except Exception as e:
        logger.error(f"Error pinging presence: {e}", exc_info=True)
        return PingResponse(success=False)


@router.get("/live", response_model=LiveCountResponse)
def live_count(db: Session = Depends(get_db)):
    threshold = get_settings().presence_threshold_seconds
    try:
        live = PresenceTracker.count_live(db, utcnow(), threshold)
        return LiveCountResponse(live=live, threshold_seconds=threshold)

    except Exception as e:
        logger.error(f"Failed to count live participants: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
