"""
Display API Endpoints

職責：
1. 取得當前展示項目
2. 公開的 on-demand 輪替（任何人都能呼叫，永遠回傳 200）
3. 管理員強制輪替
4. 歷史紀錄
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import RotationReason
from schemas import ArchiveEntryResponse, DisplayResponse, RotationResponse
from core.queue_manager import QueueManager
from core.rotation_engine import RotationEngine
from services.archive_service import list_archive, DEFAULT_ARCHIVE_LIMIT
from api.auth import require_admin

router = APIRouter(prefix="/api", tags=["display"])
logger = logging.getLogger(__name__)


@router.get("/display/current", response_model=DisplayResponse)
def get_current_display(db: Session = Depends(get_db)):
    """
    取得當前展示項目

    返回：
        - available=True + 項目內容
        - 或 available=False, reason=queue_empty（沒有可展示的項目，不是錯誤）
        - 或 available=False, reason=None（佇列有項目但尚未輪替，例如公開輪替失敗被吸收）
    """
    try:
        slot = RotationEngine.get_current_display(db)
        if slot is None:
            if QueueManager.has_pending(db):
                return DisplayResponse(available=False)
            return DisplayResponse(available=False, reason=RotationReason.QUEUE_EMPTY)

        return DisplayResponse(
            available=True,
            source_id=slot.source_id,
            name=slot.name,
            submitted_by=slot.submitted_by,
            clues=slot.clues,
            alternate_names=slot.alternate_names or [],
            created_at=slot.created_at,
            approved_at=slot.approved_at,
            displayed_at=slot.displayed_at,
            expires_at=slot.expires_at
        )

    except Exception as e:
        logger.error(f"Failed to get current display: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/display/rotate", response_model=RotationResponse)
def rotate_if_needed(db: Session = Depends(get_db)):
    """
    公開的 lazy rotation（不需驗證）

    **安全性**：
    - 完全由時間決定是否輪替，未過期時呼叫幾次都是 no-op
    - 內部錯誤只記 log，對外一律回 rotated=False（不洩漏內部狀態）
    """
    try:
        result = RotationEngine.rotate_if_needed(db)
        return RotationResponse(rotated=result.rotated, reason=result.reason)

    except Exception as e:
        logger.error(f"Error in public rotation check: {e}", exc_info=True)
        return RotationResponse(rotated=False)


@router.post("/display/force-rotate", response_model=RotationResponse)
def force_rotate(admin: str = Depends(require_admin), db: Session = Depends(get_db)):
    """
    強制輪替（管理員 endpoint）

    異常：
        401：未驗證（reason=unauthenticated）
        500：輪替失敗（管理員看得到錯誤訊息）
    """
    logger.info(f"Manual rotation triggered by {admin}")
    try:
        result = RotationEngine.force_rotate(db)
        return RotationResponse(rotated=result.rotated, reason=result.reason)

    except Exception as e:
        logger.error(f"Error in manual rotation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail={"reason": "internal", "message": str(e)})


@router.get("/archive", response_model=list[ArchiveEntryResponse])
def get_archive(
    limit: int = Query(DEFAULT_ARCHIVE_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db)
):
    try:
        return list_archive(db, limit=limit)

    except Exception as e:
        logger.error(f"Failed to list archive: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
