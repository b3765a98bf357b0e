"""
資料模型

Item 的生命週期是一條單向管線：
    queue_entries -> display_slot -> archive_entries

- QueueEntry：等待上架的已核准項目（FIFO，依 enqueued_at 排序）
- DisplaySlot：唯一的「當前展示」槽位（id 固定為 "current"，空槽以 NULL 欄位表示）
- ArchiveEntry：歷史紀錄，附帶最終統計快照，建立後不再修改
- StatsRecord / ContributionMarker：單一週期的計數與去重標記
- PresenceRecord：參與者在線狀態
"""
from datetime import datetime, timezone
import enum
import uuid

from sqlalchemy import Column, String, Integer, DateTime, JSON, Index

from database import Base

DISPLAY_SLOT_ID = "current"
STATS_RECORD_ID = "current"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RotationReason(str, enum.Enum):
    ROTATED = "rotated"
    NOT_EXPIRED = "not_expired"
    QUEUE_EMPTY = "queue_empty"


class QueueEntry(Base):
    __tablename__ = "queue_entries"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    submitted_by = Column(String(200), nullable=False)
    clues = Column(JSON, nullable=False)
    alternate_names = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    approved_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    enqueued_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_queue_entries_fifo", "enqueued_at", "id"),
    )


class DisplaySlot(Base):
    __tablename__ = "display_slot"

    id = Column(String(16), primary_key=True, default=DISPLAY_SLOT_ID)
    source_id = Column(String(36), nullable=True)
    name = Column(String(200), nullable=True)
    submitted_by = Column(String(200), nullable=True)
    clues = Column(JSON, nullable=True)
    alternate_names = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    displayed_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_empty(self) -> bool:
        return self.source_id is None

    def install(self, entry: QueueEntry, displayed_at: datetime, expires_at: datetime) -> None:
        self.source_id = entry.id
        self.name = entry.name
        self.submitted_by = entry.submitted_by
        self.clues = list(entry.clues)
        self.alternate_names = list(entry.alternate_names or [])
        self.created_at = entry.created_at
        self.approved_at = entry.approved_at
        self.displayed_at = displayed_at
        self.expires_at = expires_at

    def clear(self) -> None:
        self.source_id = None
        self.name = None
        self.submitted_by = None
        self.clues = None
        self.alternate_names = None
        self.created_at = None
        self.approved_at = None
        self.displayed_at = None
        self.expires_at = None


class ArchiveEntry(Base):
    __tablename__ = "archive_entries"

    id = Column(String(36), primary_key=True, default=_new_id)
    source_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    submitted_by = Column(String(200), nullable=False)
    clues = Column(JSON, nullable=False)
    alternate_names = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    displayed_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    final_stats = Column(JSON, nullable=False, default=dict)
    archived_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)


class StatsHistory(Base):
    """每個週期的統計備份（與 ArchiveEntry.final_stats 內容相同，方便獨立查詢）"""
    __tablename__ = "stats_history"

    source_id = Column(String(36), primary_key=True)
    stats = Column(JSON, nullable=False, default=dict)
    archived_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class StatsRecord(Base):
    __tablename__ = "stats_records"

    id = Column(String(16), primary_key=True, default=STATS_RECORD_ID)
    source_id = Column(String(36), nullable=True)
    # JSON 物件的 key 只能是字串，discriminator 以 str(int) 儲存
    counters = Column(JSON, nullable=False, default=dict)
    started_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ContributionMarker(Base):
    __tablename__ = "contribution_markers"

    participant_id = Column(String(128), primary_key=True)
    discriminator = Column(Integer, nullable=False)
    contributed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class PresenceRecord(Base):
    __tablename__ = "presence_records"

    participant_id = Column(String(128), primary_key=True)
    last_active_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
