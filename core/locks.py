"""
並發控制工具

提供 Database-level 的鎖定機制，防止競態條件（Race Condition）

主要使用 PostgreSQL 的 SELECT ... FOR UPDATE 來實現悲觀鎖（Pessimistic Locking）

SQLite 會忽略 FOR UPDATE；在 SQLite 上由資料庫層級的寫入鎖 + busy timeout 序列化寫入
"""
from sqlalchemy.orm import Session, Query

from models import (
    DisplaySlot,
    QueueEntry,
    StatsRecord,
    DISPLAY_SLOT_ID,
    STATS_RECORD_ID,
)


def with_display_lock(db: Session) -> Query:
    """
    鎖定 Display 槽位（行級鎖）

    使用場景：
    - 輪替（rotate_if_needed / force_rotate）的整個 read-decide-write 流程
    - 所有輪替都在這一行上排隊，第二個進來的會看到剛寫入、尚未過期的記錄

    範例：
        slot = with_display_lock(db).first()
        if slot and not is_expired(slot.expires_at, now):
            return RotationResult(rotated=False, ...)

    參數：
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 來取得結果）

    注意：
        - nowait=False 表示如果鎖被佔用，會等待（等待上限由 store_timeout_seconds 控制）
        - populate_existing：拿到鎖後一律重讀，不沿用 session 內的舊物件
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(DisplaySlot).filter(
        DisplaySlot.id == DISPLAY_SLOT_ID
    ).populate_existing().with_for_update(nowait=False)


def with_queue_head_lock(db: Session) -> Query:
    """
    鎖定佇列中最舊的項目（FIFO head）

    排序：enqueued_at 由舊到新，相同時間以 id 決定順序

    返回：
        Query object（呼叫 .first() 取得 head）
    """
    return db.query(QueueEntry).order_by(
        QueueEntry.enqueued_at.asc(),
        QueueEntry.id.asc()
    ).limit(1).populate_existing().with_for_update(nowait=False)


def with_stats_lock(db: Session) -> Query:
    """
    鎖定當前週期的 StatsRecord

    使用場景：
    - submit_contribution 的 read-modify-write（計數 +1）
    """
    return db.query(StatsRecord).filter(
        StatsRecord.id == STATS_RECORD_ID
    ).populate_existing().with_for_update(nowait=False)
