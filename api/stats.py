"""
Stats API Endpoints

重點：
1. submit_solution 冪等：同一參與者每個週期只計一次，重複提交回 accepted=False
2. 參與者 ID 可由前端提供；沒提供時用 IP 雜湊
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import ContributionSubmit, ContributionResponse, CountersResponse
from core.stats_tracker import StatsTracker
from services.identity_service import resolve_participant_id

router = APIRouter(prefix="/api/stats", tags=["stats"])
logger = logging.getLogger(__name__)


@router.post("/solutions", response_model=ContributionResponse)
def submit_solution(
    submission: ContributionSubmit,
    request: Request,
    db: Session = Depends(get_db)
):
    try:
        client_host = request.client.host if request.client else None
        participant_id = resolve_participant_id(submission.participant_id, client_host)

        result = StatsTracker.submit_contribution(db, participant_id, submission.discriminator)
        return ContributionResponse(accepted=result.accepted)

    except Exception as e:
        logger.error(f"Error submitting solution: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit solution")


@router.get("/counters", response_model=CountersResponse)
def get_counters(db: Session = Depends(get_db)):
    try:
        return CountersResponse(counters=StatsTracker.get_counters(db))

    except Exception as e:
        logger.error(f"Failed to read counters: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
