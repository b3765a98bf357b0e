"""
Archive service.

Builds the final stats snapshot that travels with an outgoing display item,
and lists archived items for the history view.
"""
from datetime import datetime
from typing import Dict, Any, List, Optional

from sqlalchemy.orm import Session

from models import ArchiveEntry, ContributionMarker, DisplaySlot, StatsHistory, StatsRecord
from services.calendar_service import ensure_utc

DEFAULT_ARCHIVE_LIMIT = 30


def build_stats_snapshot(stats: Optional[StatsRecord], db: Session) -> Dict[str, Any]:
    """
    Freeze the live counters into a plain dict.

    An absent StatsRecord (nobody contributed this cycle) still produces a
    well-formed, empty snapshot.
    """
    solver_count = db.query(ContributionMarker).count()
    if stats is None:
        return {"clue_counts": {}, "solver_count": solver_count, "started_at": None}

    return {
        "clue_counts": dict(stats.counters or {}),
        "solver_count": solver_count,
        "started_at": ensure_utc(stats.started_at).isoformat() if stats.started_at else None,
    }


def archive_display(slot: DisplaySlot, snapshot: Dict[str, Any], archived_at: datetime, db: Session) -> ArchiveEntry:
    """
    Append the outgoing display item to the archive.

    A second copy of the snapshot goes to stats_history keyed by the source
    item id. Flushes only; the caller owns the transaction.
    """
    entry = ArchiveEntry(
        source_id=slot.source_id,
        name=slot.name,
        submitted_by=slot.submitted_by,
        clues=list(slot.clues or []),
        alternate_names=list(slot.alternate_names or []),
        created_at=slot.created_at,
        approved_at=slot.approved_at,
        displayed_at=slot.displayed_at,
        expires_at=slot.expires_at,
        final_stats=snapshot,
        archived_at=archived_at,
    )
    db.add(entry)

    db.add(StatsHistory(source_id=slot.source_id, stats=snapshot, archived_at=archived_at))

    db.flush()
    return entry


def list_archive(db: Session, limit: int = DEFAULT_ARCHIVE_LIMIT) -> List[ArchiveEntry]:
    """Newest first."""
    return (
        db.query(ArchiveEntry)
        .order_by(ArchiveEntry.archived_at.desc(), ArchiveEntry.id.desc())
        .limit(limit)
        .all()
    )
