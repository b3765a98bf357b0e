"""
API Request / Response Schemas（Pydantic）
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import RotationReason

MIN_CLUES = 3
MAX_CLUES = 10


# ============ Queue ============

class ItemSubmit(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    submitted_by: str = Field(..., min_length=1, max_length=200)
    clues: List[str] = Field(..., min_length=MIN_CLUES, max_length=MAX_CLUES)
    alternate_names: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    @field_validator("name", "submitted_by")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("clues")
    @classmethod
    def clues_not_blank(cls, value: List[str]) -> List[str]:
        cleaned = [clue.strip() for clue in value]
        if any(not clue for clue in cleaned):
            raise ValueError("clues must not be blank")
        return cleaned

    @field_validator("alternate_names")
    @classmethod
    def dedupe_alternate_names(cls, value: List[str]) -> List[str]:
        # 當作 set 使用，但保留第一次出現的順序
        seen = []
        for alias in value:
            alias = alias.strip()
            if alias and alias not in seen:
                seen.append(alias)
        return seen


class QueueEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    submitted_by: str
    clues: List[str]
    alternate_names: List[str] = []
    created_at: datetime
    approved_at: datetime
    enqueued_at: datetime


# ============ Display / Rotation ============

class DisplayResponse(BaseModel):
    available: bool
    reason: Optional[RotationReason] = None
    source_id: Optional[str] = None
    name: Optional[str] = None
    submitted_by: Optional[str] = None
    clues: Optional[List[str]] = None
    alternate_names: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    displayed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class RotationResponse(BaseModel):
    rotated: bool
    reason: Optional[RotationReason] = None


class ArchiveEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    source_id: str
    name: str
    submitted_by: str
    clues: List[str]
    alternate_names: List[str] = []
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    displayed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    final_stats: dict
    archived_at: datetime


# ============ Stats ============

class ContributionSubmit(BaseModel):
    discriminator: int = Field(..., ge=0, le=MAX_CLUES - 1)
    participant_id: Optional[str] = Field(default=None, min_length=1, max_length=128)


class ContributionResponse(BaseModel):
    accepted: bool


class CountersResponse(BaseModel):
    counters: Dict[int, int]


# ============ Presence ============

class PingSubmit(BaseModel):
    participant_id: Optional[str] = Field(default=None, min_length=1, max_length=128)


class PingResponse(BaseModel):
    success: bool


class LiveCountResponse(BaseModel):
    live: int
    threshold_seconds: int
