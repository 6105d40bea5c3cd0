"""Tests for the job lock."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from pr_radar.exceptions import JobLockedError
from pr_radar.job_lock import JobLock
from pr_radar.store import Store


class _Clock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class TestJobLock:
    def test_empty_job_name(self, store: Store) -> None:
        with pytest.raises(ValueError):
            JobLock(store, "")

    def test_acquire_and_release(self, store: Store, now: datetime) -> None:
        lock = JobLock(store, "nightly", owner="w1", clock=_Clock(now))
        assert not lock.is_locked()
        assert lock.acquire()
        assert lock.is_locked()
        assert lock.release()
        assert not lock.is_locked()

    def test_two_processes_exclude_each_other(self, tmp_path: Path, now: datetime) -> None:
        store_a = Store(tmp_path / "shared.db")
        store_b = Store(tmp_path / "shared.db")
        try:
            lock_a = JobLock(store_a, "nightly", owner="a", clock=_Clock(now))
            lock_b = JobLock(store_b, "nightly", owner="b", clock=_Clock(now))
            assert lock_a.acquire()
            assert not lock_b.acquire()
            assert lock_b.is_locked()
            lock_a.release()
            assert lock_b.acquire()
        finally:
            store_a.close()
            store_b.close()

    def test_expired_lock_is_released_by_checker(self, store: Store, now: datetime) -> None:
        clock = _Clock(now)
        crashed = JobLock(store, "nightly", owner="crashed", clock=clock)
        checker = JobLock(store, "nightly", owner="checker", clock=clock)
        assert crashed.acquire()

        clock.now = now + timedelta(minutes=59)
        assert checker.is_locked()

        clock.now = now + timedelta(minutes=61)
        assert not checker.is_locked()
        assert not store.get_lock("nightly").is_locked  # type: ignore[union-attr]
        assert checker.acquire()

    def test_custom_ttl(self, store: Store, now: datetime) -> None:
        clock = _Clock(now)
        lock = JobLock(store, "nightly", ttl=timedelta(minutes=5), owner="a", clock=clock)
        other = JobLock(store, "nightly", ttl=timedelta(minutes=5), owner="b", clock=clock)
        lock.acquire()
        clock.now = now + timedelta(minutes=6)
        assert other.acquire()

    async def test_hold_releases_on_error(self, store: Store, now: datetime) -> None:
        lock = JobLock(store, "nightly", owner="a", clock=_Clock(now))
        with pytest.raises(RuntimeError):
            async with lock.hold():
                assert lock.is_locked()
                raise RuntimeError("job failed")
        assert not lock.is_locked()

    async def test_hold_raises_when_held(self, store: Store, now: datetime) -> None:
        clock = _Clock(now)
        JobLock(store, "nightly", owner="a", clock=clock).acquire()
        other = JobLock(store, "nightly", owner="b", clock=clock)
        with pytest.raises(JobLockedError, match="nightly"):
            async with other.hold():
                pass
        assert store.get_lock("nightly").locked_by == "a"  # type: ignore[union-attr]
