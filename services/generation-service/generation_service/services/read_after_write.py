from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

import structlog

logger = structlog.get_logger(__name__)

WriteSource = Literal["creation", "update", "manual"]


@dataclass(frozen=True)
class ReadAfterWriteConfig:
    consistency_window_seconds: float = 60.0
    max_entries: int = 1000
    cleanup_interval_seconds: float = 300.0


@dataclass
class WriteRecord:
    program_id: str
    user_id: str
    written_at: float
    source: WriteSource
    replicated: bool = False


@dataclass
class TrackerStats:
    tracked: int
    pending: int
    replicated: int
    max_entries: int
    evictions: int = 0
    cleanups: int = 0
    oldest_age_seconds: float | None = field(default=None)


class ReadAfterWriteTracker:
    """Routes reads of freshly written programs to the primary database.

    A write stays "fresh" for the consistency window or until it is marked
    replicated. Entries are kept in write order; the oldest are evicted once
    ``max_entries`` is reached.
    """

    def __init__(self, config: ReadAfterWriteConfig | None = None, clock: Callable[[], float] = time.monotonic):
        self.config = config or ReadAfterWriteConfig()
        self._clock = clock
        self._entries: OrderedDict[str, WriteRecord] = OrderedDict()
        self._last_cleanup = clock()
        self._evictions = 0
        self._cleanups = 0

    def record_write(self, program_id: str, user_id: str, source: WriteSource = "creation") -> WriteRecord:
        self._maybe_cleanup()
        now = self._clock()
        self._entries.pop(program_id, None)
        record = WriteRecord(program_id=program_id, user_id=user_id, written_at=now, source=source)
        self._entries[program_id] = record
        while len(self._entries) > self.config.max_entries:
            evicted_id, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("read_after_write_evicted", program_id=evicted_id)
        logger.debug("read_after_write_recorded", program_id=program_id, user_id=user_id, source=source)
        return record

    def should_read_from_primary(self, program_id: str, user_id: str | None = None) -> bool:
        self._maybe_cleanup()
        record = self._entries.get(program_id)
        if record is None or record.replicated:
            return False
        if user_id is not None and record.user_id != user_id:
            return False
        if self._clock() - record.written_at > self.config.consistency_window_seconds:
            self._entries.pop(program_id, None)
            return False
        return True

    def mark_as_replicated(self, program_id: str) -> bool:
        record = self._entries.get(program_id)
        if record is None:
            return False
        record.replicated = True
        return True

    def cleanup_stale_entries(self) -> int:
        now = self._clock()
        stale = [
            program_id
            for program_id, record in self._entries.items()
            if record.replicated or now - record.written_at > self.config.consistency_window_seconds
        ]
        for program_id in stale:
            del self._entries[program_id]
        self._last_cleanup = now
        self._cleanups += 1
        if stale:
            logger.info("read_after_write_cleanup", removed=len(stale), remaining=len(self._entries))
        return len(stale)

    def stats(self) -> TrackerStats:
        now = self._clock()
        replicated = sum(1 for record in self._entries.values() if record.replicated)
        oldest = next(iter(self._entries.values()), None)
        return TrackerStats(
            tracked=len(self._entries),
            pending=len(self._entries) - replicated,
            replicated=replicated,
            max_entries=self.config.max_entries,
            evictions=self._evictions,
            cleanups=self._cleanups,
            oldest_age_seconds=(now - oldest.written_at) if oldest else None,
        )

    def _maybe_cleanup(self) -> None:
        if self._clock() - self._last_cleanup >= self.config.cleanup_interval_seconds:
            self.cleanup_stale_entries()
