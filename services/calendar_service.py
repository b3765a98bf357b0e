"""
日曆服務：把任意時間點換算成固定 UTC 偏移下的「民用日」邊界

純計算邏輯，不涉及資料庫
"""
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional


class DayBounds(NamedTuple):
    start: datetime
    end: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    naive datetime 一律視為 UTC

    SQLite 不保存時區，讀回來的 DateTime 是 naive 的
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_bounds(now: datetime, utc_offset_minutes: int) -> DayBounds:
    """
    計算 now 所在民用日的開始與結束

    規則：
    - 先套用固定 UTC 偏移，得到當地日期
    - start = 當地 00:00:00.000，end = 當地 23:59:59.999
    - 兩者都轉回 UTC 的絕對時間點

    參數：
        now: 任意時間點（naive 視為 UTC）
        utc_offset_minutes: 偏移分鐘數（IST = 330）

    返回：
        DayBounds(start, end)

    範例（IST）：
        day_bounds(2024-03-01 20:00Z, 330)
        -> 當地 2024-03-02 01:30，所以
           start = 2024-03-01 18:30:00Z
           end   = 2024-03-02 18:29:59.999Z
    """
    tz = timezone(timedelta(minutes=utc_offset_minutes))
    local_now = ensure_utc(now).astimezone(tz)

    start_local = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end_local = local_now.replace(hour=23, minute=59, second=59, microsecond=999000)

    return DayBounds(
        start=start_local.astimezone(timezone.utc),
        end=end_local.astimezone(timezone.utc),
    )


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """沒有 expiry 的記錄一律視為已過期"""
    if expires_at is None:
        return True
    return ensure_utc(now) > ensure_utc(expires_at)


def offset_timezone(utc_offset_minutes: int) -> timezone:
    return timezone(timedelta(minutes=utc_offset_minutes))
