"""
Presence Tracker：參與者在線狀態

- ping：更新（或建立）參與者的 last_active_at
- count_live：門檻時間內有 ping 的人數
- sweep_stale：刪除過期記錄（由排程執行，不在讀取路徑上）
"""
from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.orm import Session

from models import PresenceRecord
from services.calendar_service import ensure_utc, utcnow
from database import transactional

logger = logging.getLogger(__name__)


class PresenceTracker:

    @staticmethod
    @transactional
    def ping(db: Session, participant_id: str, now: Optional[datetime] = None) -> PresenceRecord:
        now = now or utcnow()
        record = db.query(PresenceRecord).filter(
            PresenceRecord.participant_id == participant_id
        ).first()

        if record is None:
            record = PresenceRecord(participant_id=participant_id, last_active_at=now)
            db.add(record)
        else:
            record.last_active_at = now
        return record

    @staticmethod
    def count_live(db: Session, now: datetime, threshold_seconds: int) -> int:
        cutoff = ensure_utc(now) - timedelta(seconds=threshold_seconds)
        return db.query(PresenceRecord).filter(
            PresenceRecord.last_active_at > cutoff
        ).count()

    @staticmethod
    @transactional
    def sweep_stale(db: Session, now: datetime, threshold_seconds: int) -> int:
        """
        刪除超過門檻未 ping 的記錄

        返回：
            刪除筆數
        """
        cutoff = ensure_utc(now) - timedelta(seconds=threshold_seconds)
        deleted = db.query(PresenceRecord).filter(
            PresenceRecord.last_active_at <= cutoff
        ).delete(synchronize_session=False)

        if deleted:
            logger.info(f"Cleaned up {deleted} inactive participants")
        return deleted
