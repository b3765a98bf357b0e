"""
Rotation Engine：每日展示項目的輪替

職責：
1. 判斷目前的 Display 是否過期（冪等閘門）
2. 歸檔舊項目（含最終統計快照）並重置統計
3. 從佇列取出最舊的項目（FIFO），設定為新的 Display
4. 從佇列刪除該項目

觸發來源（全部呼叫同一個 rotate_if_needed）：
- 每日 00:00 的排程
- 每小時的備援排程
- 新項目加入佇列時
- 公開的 on-demand endpoint

並發安全：
- 整個 read-decide-write 流程在同一個 transaction 內
- Display 槽位行級鎖：所有輪替在這一行上排隊
- 第二個拿到鎖的人會看到剛寫入、尚未過期的記錄，直接返回 rotated=False
- 任何一步失敗都會整個 rollback，槽位只可能是 舊 / 新 / 空 三種狀態之一
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import (
    ContributionMarker,
    DisplaySlot,
    QueueEntry,
    RotationReason,
    StatsRecord,
    DISPLAY_SLOT_ID,
    STATS_RECORD_ID,
)
from core.locks import with_display_lock, with_queue_head_lock, with_stats_lock
from core.exceptions import DisplaySlotUnavailable
from services.archive_service import archive_display, build_stats_snapshot
from services.calendar_service import day_bounds, is_expired, utcnow
from database import transactional, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationResult:
    rotated: bool
    reason: RotationReason


class RotationEngine:
    """Display 槽位狀態機"""

    @staticmethod
    def get_current_display(db: Session) -> Optional[DisplaySlot]:
        """
        取得目前的 Display（唯讀，不上鎖）

        返回：
            DisplaySlot，或 None（槽位不存在或為空）
        """
        slot = db.query(DisplaySlot).filter(DisplaySlot.id == DISPLAY_SLOT_ID).first()
        if slot is None or slot.is_empty:
            return None
        return slot

    @staticmethod
    @transactional
    def ensure_slot(db: Session) -> DisplaySlot:
        """
        建立空槽（啟動時呼叫一次）

        槽位一旦存在就永遠存在，之後所有輪替都能鎖住同一行
        """
        slot = db.query(DisplaySlot).filter(DisplaySlot.id == DISPLAY_SLOT_ID).first()
        if slot is None:
            slot = DisplaySlot(id=DISPLAY_SLOT_ID)
            db.add(slot)
            logger.info("Created empty display slot")
        return slot

    @staticmethod
    @transactional
    def rotate_if_needed(db: Session, now: Optional[datetime] = None) -> RotationResult:
        """
        若 Display 為空或已過期，執行輪替

        流程：
        1. 鎖定 Display 槽位
        2. 未過期 -> 返回 NOT_EXPIRED（不做任何寫入）
        3. 否則執行 _rotate（歸檔 -> 取 head -> 安裝 -> 刪除 head）

        參數：
            db: SQLAlchemy Session
            now: 當前時間（測試用，預設為 UTC now）

        返回：
            RotationResult

        注意：
            - 使用 @transactional，自動處理 commit/rollback
            - 佇列為空且 Display 本來就是空的 -> 不寫入任何東西
        """
        now = now or utcnow()
        slot = with_display_lock(db).first()

        if slot is not None and not slot.is_empty and not is_expired(slot.expires_at, now):
            logger.debug(f"Display {slot.source_id} valid until {slot.expires_at}, no rotation needed")
            return RotationResult(rotated=False, reason=RotationReason.NOT_EXPIRED)

        if slot is None or slot.is_empty:
            logger.info("No display item found, attempting rotation")
        else:
            logger.info(f"Display {slot.source_id} expired at {slot.expires_at}, attempting rotation")

        return RotationEngine._rotate(db, slot, now)

    @staticmethod
    @transactional
    def force_rotate(db: Session, now: Optional[datetime] = None) -> RotationResult:
        """
        無條件輪替（管理員操作），跳過過期檢查

        其餘行為與 rotate_if_needed 相同；佇列為空時，舊項目仍會被歸檔，
        槽位會被清空
        """
        now = now or utcnow()
        slot = with_display_lock(db).first()
        logger.info(f"Forced rotation requested (current display: {slot.source_id if slot else None})")
        return RotationEngine._rotate(db, slot, now)

    @staticmethod
    def _rotate(db: Session, slot: Optional[DisplaySlot], now: datetime) -> RotationResult:
        # 1. 歸檔舊項目 + 清除統計
        if slot is not None and not slot.is_empty:
            RotationEngine._archive_current(db, slot, now)

        # 2. 取出最舊的項目（FIFO）
        head = with_queue_head_lock(db).first()
        if head is None:
            if slot is not None and not slot.is_empty:
                slot.clear()
                db.flush()
            logger.info("No queued items available for rotation")
            return RotationResult(rotated=False, reason=RotationReason.QUEUE_EMPTY)

        # 3. 安裝新項目，expiry = 今天（不是項目建立那天）的日終
        if slot is None:
            slot = RotationEngine._create_slot(db)
        expires_at = day_bounds(now, settings.utc_offset_minutes).end
        slot.install(head, displayed_at=now, expires_at=expires_at)

        # 4. 新週期的統計從零開始
        RotationEngine._start_cycle(db, head, now)

        # 5. 從佇列刪除
        db.delete(head)
        db.flush()

        logger.info(f"Display rotated to {head.id} ({head.name}), expires at {expires_at.isoformat()}")
        return RotationResult(rotated=True, reason=RotationReason.ROTATED)

    @staticmethod
    def _create_slot(db: Session) -> DisplaySlot:
        """
        異常：
            DisplaySlotUnavailable: 另一個輪替同時建立了槽位
        """
        slot = DisplaySlot(id=DISPLAY_SLOT_ID)
        db.add(slot)
        try:
            db.flush()
        except IntegrityError as e:
            raise DisplaySlotUnavailable("Display slot was created concurrently") from e
        return slot

    @staticmethod
    def _archive_current(db: Session, slot: DisplaySlot, now: datetime) -> None:
        stats = with_stats_lock(db).first()
        snapshot = build_stats_snapshot(stats, db)
        archive_display(slot, snapshot, archived_at=now, db=db)

        if stats is not None:
            db.delete(stats)
        cleared = db.query(ContributionMarker).delete(synchronize_session=False)
        db.flush()

        logger.info(
            f"Archived display {slot.source_id} with {snapshot['solver_count']} solvers "
            f"({cleared} dedup markers cleared)"
        )

    @staticmethod
    def _start_cycle(db: Session, head: QueueEntry, now: datetime) -> None:
        # 槽位空著的期間仍可能有人提交，先把殘留的標記清掉
        db.query(ContributionMarker).delete(synchronize_session=False)

        stats = with_stats_lock(db).first()
        if stats is None:
            db.add(StatsRecord(id=STATS_RECORD_ID, source_id=head.id, counters={}, started_at=now))
        else:
            stats.source_id = head.id
            stats.counters = {}
            stats.started_at = now
        db.flush()
