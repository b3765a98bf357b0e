"""
Stats Tracker：每個展示週期的解題統計

規則：
- counters[discriminator] 記錄「在第幾條線索時解出」的人數
- 每個參與者每個週期最多只算一次（由 ContributionMarker 是否存在決定）
- 計數 +1 與建立標記在同一個 transaction 內

並發安全：
- 同一個參與者同時送出兩次：marker 主鍵衝突，後提交的那個整個 rollback，
  回傳 accepted=False（冪等，不是錯誤）
- 不同參與者同時送出：StatsRecord 行級鎖排隊
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import ContributionMarker, StatsRecord, STATS_RECORD_ID
from core.locks import with_stats_lock
from services.calendar_service import utcnow
from database import transactional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContributionResult:
    accepted: bool


class StatsTracker:
    """單一週期的統計管理器"""

    @staticmethod
    def submit_contribution(
        db: Session,
        participant_id: str,
        discriminator: int,
        now: Optional[datetime] = None
    ) -> ContributionResult:
        """
        記錄一次解題（冪等）

        流程：
        1. 已有該參與者的標記 -> accepted=False，不動計數
        2. 否則 counters[discriminator] += 1，並建立標記
        3. 若與同一參與者的另一個請求競爭而撞主鍵 -> accepted=False

        參數：
            db: SQLAlchemy Session
            participant_id: 不透明的參與者 ID（由呼叫端決定怎麼產生）
            discriminator: 線索索引（>= 0）
            now: 當前時間（測試用）

        返回：
            ContributionResult
        """
        if discriminator < 0:
            raise ValueError(f"discriminator must be non-negative, got {discriminator}")

        try:
            return StatsTracker._record(db, participant_id, discriminator, now or utcnow())
        except IntegrityError:
            logger.info(f"Concurrent duplicate contribution from {participant_id} ignored")
            return ContributionResult(accepted=False)

    @staticmethod
    @transactional
    def _record(db: Session, participant_id: str, discriminator: int, now: datetime) -> ContributionResult:
        # 1. 先鎖統計，再檢查標記
        stats = with_stats_lock(db).first()

        marker = db.query(ContributionMarker).filter(
            ContributionMarker.participant_id == participant_id
        ).first()
        if marker:
            logger.debug(f"Participant {participant_id} already contributed this cycle")
            return ContributionResult(accepted=False)

        # 2. 計數 +1（JSON 欄位需要整個重新指定才會被偵測到變更）
        if stats is None:
            stats = StatsRecord(id=STATS_RECORD_ID, counters={}, started_at=now)
            db.add(stats)

        key = str(discriminator)
        counters = dict(stats.counters or {})
        counters[key] = counters.get(key, 0) + 1
        stats.counters = counters

        # 3. 建立標記（主鍵 = participant_id）
        db.add(ContributionMarker(
            participant_id=participant_id,
            discriminator=discriminator,
            contributed_at=now
        ))
        db.flush()

        logger.info(f"Contribution accepted for clue {discriminator} (count={counters[key]})")
        return ContributionResult(accepted=True)

    @staticmethod
    def get_counters(db: Session) -> Dict[int, int]:
        """
        取得當前週期的計數（唯讀）

        返回：
            {discriminator: count}，沒有任何提交時為空 dict
        """
        stats = db.query(StatsRecord).filter(StatsRecord.id == STATS_RECORD_ID).first()
        if stats is None:
            return {}
        return {int(key): int(value) for key, value in (stats.counters or {}).items()}
