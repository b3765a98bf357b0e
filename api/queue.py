"""
Queue API Endpoints（管理員）

職責：
1. 加入已核准項目，並立即觸發 on-enqueue 輪替檢查
2. 列出待上架項目
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import ItemSubmit, QueueEntryResponse
from core.queue_manager import QueueManager
from core.rotation_engine import RotationEngine
from core.exceptions import InvalidItem
from api.auth import require_admin

router = APIRouter(prefix="/api/queue", tags=["queue"])
logger = logging.getLogger(__name__)


def trigger_on_enqueue(db: Session) -> None:
    """
    新項目加入後檢查 Display 是否需要補上

    佇列寫入已經 commit，輪替失敗不影響加入結果，只記 log
    """
    try:
        result = RotationEngine.rotate_if_needed(db)
        if result.rotated:
            logger.info("New item promoted to display immediately")
    except Exception as e:
        logger.error(f"Error in on-enqueue rotation: {e}", exc_info=True)


@router.post("", response_model=QueueEntryResponse, status_code=201)
def enqueue_item(
    item: ItemSubmit,
    admin: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    加入已核准項目

    流程：
    1. 寫入佇列（transaction）
    2. on-enqueue 觸發：Display 為空或過期時立即上架
    3. 返回佇列記錄（若已上架，記錄已不在佇列中，但仍回傳內容）
    """
    try:
        entry = QueueManager.enqueue(db, item)
        response = QueueEntryResponse.model_validate(entry)
        logger.info(f"Item {entry.id} approved by {admin}")

        trigger_on_enqueue(db)
        return response

    except InvalidItem as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to enqueue item: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=list[QueueEntryResponse])
def list_queue(admin: str = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return QueueManager.list_pending(db)

    except Exception as e:
        logger.error(f"Failed to list queue: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
