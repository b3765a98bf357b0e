from datetime import timedelta

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

import core.triggers as triggers
from core.queue_manager import QueueManager
from core.rotation_engine import RotationEngine
from database import Settings


def test_build_scheduler_registers_all_jobs():
    settings = Settings(fallback_rotation_minutes=60, presence_sweep_minutes=15)

    scheduler = triggers.build_scheduler(settings)
    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {"exact_rotation", "fallback_rotation", "presence_sweep"}
    assert isinstance(jobs["exact_rotation"].trigger, CronTrigger)
    assert isinstance(jobs["fallback_rotation"].trigger, IntervalTrigger)
    assert jobs["fallback_rotation"].trigger.interval == timedelta(minutes=60)
    assert jobs["presence_sweep"].trigger.interval == timedelta(minutes=15)
    assert jobs["presence_sweep"].args == (settings.presence_threshold_seconds,)


def test_run_rotation_uses_its_own_session(session_factory, make_item, monkeypatch):
    setup = session_factory()
    QueueManager.enqueue(setup, make_item("A"))
    setup.close()
    monkeypatch.setattr(triggers, "SessionLocal", session_factory)

    triggers.run_rotation("fallback")

    check = session_factory()
    assert RotationEngine.get_current_display(check).name == "A"
    check.close()


def test_run_rotation_absorbs_failures(session_factory, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(triggers, "SessionLocal", session_factory)
    monkeypatch.setattr(RotationEngine, "rotate_if_needed", staticmethod(boom))

    triggers.run_rotation("exact")


def test_run_presence_sweep_absorbs_failures(session_factory, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(triggers, "SessionLocal", session_factory)
    monkeypatch.setattr(triggers.PresenceTracker, "sweep_stale", staticmethod(boom))

    triggers.run_presence_sweep(600)
