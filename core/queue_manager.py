"""
Queue Manager：已核准項目的佇列

職責：
1. 加入佇列（記錄 enqueued_at，作為 FIFO 排序依據）
2. 依 FIFO 順序列出待上架項目

注意：
- 取出 head 與刪除由 RotationEngine 在輪替 transaction 內完成
- 加入佇列後的 on-enqueue 觸發由 API 層負責（加入成功與否不受輪替影響）
"""
from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from models import QueueEntry
from schemas import ItemSubmit, MIN_CLUES, MAX_CLUES
from core.exceptions import InvalidItem
from services.calendar_service import utcnow
from database import transactional

logger = logging.getLogger(__name__)


class QueueManager:

    @staticmethod
    @transactional
    def enqueue(db: Session, item: ItemSubmit, now: Optional[datetime] = None) -> QueueEntry:
        """
        加入一個已核准的項目

        參數：
            db: SQLAlchemy Session
            item: 已驗證的項目內容
            now: 當前時間（測試用）

        返回：
            新建立的 QueueEntry

        異常：
            InvalidItem: 線索數量不在 3-10 之間
        """
        if not MIN_CLUES <= len(item.clues) <= MAX_CLUES:
            raise InvalidItem(
                f"Item must have {MIN_CLUES}-{MAX_CLUES} clues, got {len(item.clues)}"
            )

        now = now or utcnow()
        entry = QueueEntry(
            name=item.name,
            submitted_by=item.submitted_by,
            clues=list(item.clues),
            alternate_names=list(item.alternate_names),
            created_at=item.created_at or now,
            approved_at=item.approved_at or now,
            enqueued_at=now
        )
        db.add(entry)
        db.flush()  # 取得 entry.id

        logger.info(f"Enqueued item {entry.id} ({entry.name}) submitted by {entry.submitted_by}")
        return entry

    @staticmethod
    def has_pending(db: Session) -> bool:
        return db.query(QueueEntry.id).first() is not None

    @staticmethod
    def list_pending(db: Session) -> List[QueueEntry]:
        return db.query(QueueEntry).order_by(
            QueueEntry.enqueued_at.asc(),
            QueueEntry.id.asc()
        ).all()
