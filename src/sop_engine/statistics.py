"""
Generation statistics.

One instance per process, owned by whoever builds the DocumentGenerator
and passed in explicitly. Every update happens under a single lock so the
running average is never computed from a stale read.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Point-in-time copy of the counters."""
    total_generated: int = 0
    total_errors: int = 0
    total_rejected: int = 0
    average_generation_time_ms: float = 0.0
    generations_by_type: Dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if not self.total_generated:
            return 0.0
        return (self.total_generated - (self.total_errors - self.total_rejected)) / self.total_generated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalGenerated": self.total_generated,
            "totalErrors": self.total_errors,
            "totalRejected": self.total_rejected,
            "averageGenerationTimeMs": round(self.average_generation_time_ms, 2),
            "generationsByType": dict(self.generations_by_type),
            "successRate": round(self.success_rate, 4),
        }


class GenerationStatistics:
    """
    Thread-safe counters for generation attempts.

    - record_success(): attempt rendered; updates mean and per-type count
    - record_failure(): attempt reached a backend and failed
    - record_rejection(): request failed validation, no backend ran

    The mean covers successful generations only.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._reset_unlocked()

    def _reset_unlocked(self):
        self._total_generated = 0
        self._total_errors = 0
        self._total_rejected = 0
        self._successful = 0
        self._average_ms = 0.0
        self._by_type: Dict[str, int] = {}

    def record_success(self, document_type: str, generation_time_ms: float):
        with self._lock:
            self._total_generated += 1
            self._successful += 1
            self._average_ms += (generation_time_ms - self._average_ms) / self._successful
            self._by_type[document_type] = self._by_type.get(document_type, 0) + 1

    def record_failure(self, document_type: str):
        with self._lock:
            self._total_generated += 1
            self._total_errors += 1

    def record_rejection(self):
        with self._lock:
            self._total_errors += 1
            self._total_rejected += 1

    def snapshot(self) -> StatisticsSnapshot:
        with self._lock:
            return StatisticsSnapshot(
                total_generated=self._total_generated,
                total_errors=self._total_errors,
                total_rejected=self._total_rejected,
                average_generation_time_ms=self._average_ms,
                generations_by_type=dict(self._by_type),
            )

    def reset(self):
        with self._lock:
            self._reset_unlocked()
