"""
排程觸發器

每個 job 都是獨立、無狀態的短任務：
- 自己開 Session，自己關
- 失敗只記 log，不往外拋（下一次排程會重試）

Jobs：
- exact_rotation：每天當地 00:00
- fallback_rotation：固定間隔（預設每小時），補救漏掉的 00:00
- presence_sweep：固定間隔清除過期的在線記錄
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from core.rotation_engine import RotationEngine
from core.presence_tracker import PresenceTracker
from services.calendar_service import offset_timezone, utcnow
from database import SessionLocal, Settings

logger = logging.getLogger(__name__)


def run_rotation(trigger_name: str) -> None:
    db = SessionLocal()
    try:
        result = RotationEngine.rotate_if_needed(db)
        logger.info(f"[{trigger_name}] rotation check finished: rotated={result.rotated} reason={result.reason.value}")
    except Exception as e:
        logger.error(f"[{trigger_name}] rotation failed, will retry on next trigger: {e}", exc_info=True)
    finally:
        db.close()


def run_presence_sweep(threshold_seconds: int) -> None:
    db = SessionLocal()
    try:
        PresenceTracker.sweep_stale(db, utcnow(), threshold_seconds)
    except Exception as e:
        logger.error(f"Presence sweep failed: {e}", exc_info=True)
    finally:
        db.close()


def build_scheduler(settings: Settings) -> BackgroundScheduler:
    """
    建立（但不啟動）排程器

    注意：
        - max_instances=1 + coalesce：同一個 job 不會自己跟自己重疊
        - 不同 job 之間仍可能同時執行，由 RotationEngine 的 transaction 負責安全
    """
    tz = offset_timezone(settings.utc_offset_minutes)
    scheduler = BackgroundScheduler(timezone=tz)

    scheduler.add_job(
        run_rotation,
        CronTrigger(hour=0, minute=0, timezone=tz),
        args=["exact"],
        id="exact_rotation",
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )
    scheduler.add_job(
        run_rotation,
        IntervalTrigger(minutes=settings.fallback_rotation_minutes, timezone=tz),
        args=["fallback"],
        id="fallback_rotation",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_presence_sweep,
        IntervalTrigger(minutes=settings.presence_sweep_minutes, timezone=tz),
        args=[settings.presence_threshold_seconds],
        id="presence_sweep",
        max_instances=1,
        coalesce=True,
    )
    return scheduler
