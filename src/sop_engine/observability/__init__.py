"""
Observability - Tracing, Metrics and Structured Logging for Generation

This module provides structured observability for the generation pipeline:
1. Span per pipeline phase (validation, formatting, template, render, persistence)
2. Latency and error-rate metrics per backend and document type
3. Structured JSON log lines for generation, compliance and storage events
4. Metrics export (Prometheus text format)

Usage:
    from sop_engine.observability import Tracer, SpanKind

    tracer = Tracer()
    with tracer.start_span("render", SpanKind.RENDER) as span:
        pdf = renderer.render(document_type, data, options)
        span.set_attribute("file_size", len(pdf))
"""

from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from .caching import TemplateCache, template_key

logger = logging.getLogger(__name__)


# =============================================================================
# SPANS
# =============================================================================

class SpanKind(Enum):
    """Pipeline phase being traced."""
    VALIDATION = "validation"
    FORMATTING = "formatting"
    TEMPLATE = "template"
    RENDER = "render"
    PERSISTENCE = "persistence"
    GENERATION = "generation"


class SpanStatus(Enum):
    OK = "ok"
    ERROR = "error"


@dataclass
class Span:
    """
    One timed pipeline phase.

    Wall-clock start is kept for display; the duration comes from a
    monotonic clock so it never goes negative across clock adjustments.
    """
    name: str
    kind: SpanKind
    trace_id: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    parent_span_id: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: Optional[float] = None
    status: SpanStatus = SpanStatus.OK
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    _t0: float = field(default_factory=time.perf_counter, repr=False)

    @property
    def finished(self) -> bool:
        return self.duration_ms is not None

    def set_attribute(self, key: str, value: Any):
        self.attributes[key] = value

    def set_error(self, error: BaseException):
        """Mark the span failed. Engine errors keep their error_type."""
        self.status = SpanStatus.ERROR
        self.error_type = getattr(error, "error_type", None) or type(error).__name__
        self.error_message = str(error)

    def finish(self):
        if not self.finished:
            self.duration_ms = (time.perf_counter() - self._t0) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "started_at": self.started_at.isoformat(),
            "duration_ms": round(self.duration_ms, 3) if self.finished else None,
            "status": self.status.value,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "attributes": dict(self.attributes),
        }

    def to_log_line(self) -> str:
        duration = f"{self.duration_ms:.1f}ms" if self.finished else "open"
        line = f"{self.kind.value}:{self.name} {duration} trace={self.trace_id[:8]}"
        if self.attributes:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(self.attributes.items()))
        if self.status == SpanStatus.ERROR:
            line += f" error={self.error_type}"
        return line


# =============================================================================
# TRACER
# =============================================================================

class Tracer:
    """
    Records nested spans for each generation.

    The active span stack is thread-local, so concurrent generations never
    share a parent. Finished spans are kept in a bounded ring for inspection
    and handed to export_callback, if one is set.
    """

    def __init__(
        self,
        service_name: str = "sop-engine",
        export_logs: bool = True,
        export_callback: Optional[Callable[[Span], None]] = None,
        max_retained: int = 1000,
    ):
        self.service_name = service_name
        self.export_logs = export_logs
        self.export_callback = export_callback

        self._active = threading.local()
        self._finished: Deque[Span] = deque(maxlen=max_retained)
        self._lock = threading.Lock()

    def _stack(self) -> List[Span]:
        stack = getattr(self._active, "stack", None)
        if stack is None:
            stack = self._active.stack = []
        return stack

    @property
    def current_span(self) -> Optional[Span]:
        stack = self._stack()
        return stack[-1] if stack else None

    @contextmanager
    def start_span(self, name: str, kind: SpanKind, attributes: Optional[Dict[str, Any]] = None):
        """Open a span under the current one. Exceptions mark it failed and propagate."""
        parent = self.current_span
        span = Span(
            name=name,
            kind=kind,
            trace_id=parent.trace_id if parent else uuid.uuid4().hex,
            parent_span_id=parent.span_id if parent else None,
            attributes=dict(attributes or {}),
        )

        stack = self._stack()
        stack.append(span)
        try:
            yield span
        except BaseException as e:
            span.set_error(e)
            raise
        finally:
            span.finish()
            stack.pop()
            self._record(span)

    def _record(self, span: Span):
        with self._lock:
            self._finished.append(span)

        if self.export_logs:
            logger.debug(f"[{self.service_name}] {span.to_log_line()}")

        if self.export_callback is not None:
            try:
                self.export_callback(span)
            except Exception as e:
                logger.warning(f"Span exporter raised {type(e).__name__}: {e}")

    def get_recent_spans(self, limit: int = 100) -> List[Span]:
        with self._lock:
            return list(self._finished)[-limit:]

    def get_trace(self, trace_id: str) -> List[Span]:
        """Finished spans of one generation, outermost last."""
        with self._lock:
            return [s for s in self._finished if s.trace_id == trace_id]


# =============================================================================
# METRICS
# =============================================================================

@dataclass
class LatencySeries:
    """Counts plus a bounded window of recent latencies for one label set."""
    count: int = 0
    errors: int = 0
    total_ms: float = 0.0
    window: Deque[float] = field(default_factory=lambda: deque(maxlen=2048))

    def observe(self, duration_ms: float, error: bool):
        self.count += 1
        self.total_ms += duration_ms
        self.window.append(duration_ms)
        if error:
            self.errors += 1

    def quantile(self, q: float) -> float:
        """Nearest-rank quantile over the recent window."""
        if not self.window:
            return 0.0
        ordered = sorted(self.window)
        rank = min(int(q * len(ordered)), len(ordered) - 1)
        return ordered[rank]

    def summary(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "mean_latency_ms": self.total_ms / self.count if self.count else 0.0,
            "p50_latency_ms": self.quantile(0.5),
            "p95_latency_ms": self.quantile(0.95),
            "error_rate": self.errors / self.count if self.count else 0.0,
        }


LabelSet = Tuple[Tuple[str, str], ...]


class MetricsCollector:
    """
    Generation metrics keyed by metric name and label set.

    Exported in Prometheus text format via to_prometheus().
    """

    QUANTILES = (0.5, 0.95)

    def __init__(self):
        self._series: Dict[Tuple[str, LabelSet], LatencySeries] = {}
        self._lock = threading.Lock()

    def record(
        self,
        metric_name: str,
        duration_ms: float,
        error: bool = False,
        labels: Optional[Dict[str, str]] = None,
    ):
        key = (metric_name, tuple(sorted((labels or {}).items())))
        with self._lock:
            series = self._series.get(key)
            if series is None:
                series = self._series[key] = LatencySeries()
            series.observe(duration_ms, error)

    @staticmethod
    def _render_labels(labels: LabelSet, extra: Optional[Tuple[str, str]] = None) -> str:
        pairs = list(labels) + ([extra] if extra else [])
        if not pairs:
            return ""
        return "{" + ",".join(f'{k}="{v}"' for k, v in pairs) + "}"

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {
                f"{name}{self._render_labels(labels)}": series.summary()
                for (name, labels), series in self._series.items()
            }

    def to_prometheus(self) -> str:
        with self._lock:
            items = sorted(self._series.items())

        lines: List[str] = []
        declared = set()
        for (name, labels), series in items:
            if name not in declared:
                declared.add(name)
                lines.append(f"# TYPE {name}_total counter")
                lines.append(f"# TYPE {name}_errors_total counter")
                lines.append(f"# TYPE {name}_latency_ms summary")
            lines.append(f"{name}_total{self._render_labels(labels)} {series.count}")
            lines.append(f"{name}_errors_total{self._render_labels(labels)} {series.errors}")
            for q in self.QUANTILES:
                rendered = self._render_labels(labels, ("quantile", str(q)))
                lines.append(f"{name}_latency_ms{rendered} {series.quantile(q):.2f}")
        return "\n".join(lines)

    def reset(self):
        with self._lock:
            self._series.clear()


# =============================================================================
# STRUCTURED GENERATION LOGGER
# =============================================================================

class GenerationLogger:
    """
    Structured logger for generation events.

    Each call emits one JSON log line and records a metric observation.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or MetricsCollector()

    def log_generation(
        self,
        document_type: str,
        backend: str,
        latency_ms: float,
        file_size: int = 0,
        success: bool = True,
        error: Optional[str] = None,
    ):
        self.metrics.record(
            "sop_generation",
            duration_ms=latency_ms,
            error=not success,
            labels={"document_type": document_type, "backend": backend},
        )

        log_data = {
            "event": "generation",
            "document_type": document_type,
            "backend": backend,
            "latency_ms": round(latency_ms, 2),
            "file_size": file_size,
            "success": success,
        }

        if error:
            log_data["error"] = error
            logger.warning(f"Generation failed: {json.dumps(log_data)}")
        else:
            logger.info(f"Generation: {json.dumps(log_data)}")

    def log_rejection(self, document_type: str, field_name: Optional[str], error: str):
        self.metrics.record(
            "sop_validation",
            duration_ms=0.0,
            error=True,
            labels={"document_type": document_type or "unknown"},
        )
        log_data = {
            "event": "rejected",
            "document_type": document_type,
            "field": field_name,
            "error": error,
        }
        logger.warning(f"Request rejected: {json.dumps(log_data)}")

    def log_compliance(self, standard: str, is_compliant: bool, missing_fields: List[str]):
        log_data = {
            "event": "compliance",
            "standard": standard,
            "compliant": is_compliant,
            "missing_count": len(missing_fields),
        }
        if not is_compliant:
            log_data["missing"] = missing_fields[:10]
            logger.warning(f"Compliance advisory: {json.dumps(log_data)}")
        else:
            logger.debug(f"Compliance: {json.dumps(log_data)}")

    def log_persistence(self, filename: str, latency_ms: float, success: bool, error: Optional[str] = None):
        self.metrics.record("sop_persistence", duration_ms=latency_ms, error=not success)
        log_data = {
            "event": "persistence",
            "filename": filename,
            "latency_ms": round(latency_ms, 2),
            "success": success,
        }
        if error:
            log_data["error"] = error
            logger.error(f"Persistence failed: {json.dumps(log_data)}")
        else:
            logger.info(f"Persistence: {json.dumps(log_data)}")


__all__ = [
    # Tracing
    "Span",
    "SpanKind",
    "SpanStatus",
    "Tracer",
    # Metrics
    "LatencySeries",
    "MetricsCollector",
    # Logging
    "GenerationLogger",
    # Caching
    "TemplateCache",
    "template_key",
]
