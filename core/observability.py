"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Log format for the whole process (configured once, on import)
2. Tracer: timing and outcome of one stage (plan request, upstream call)
3. PipelineMetrics: stage counts/latencies and upstream schema drift
"""
import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("codeflex")


@dataclass
class StageTrace:
    """One traced stage execution."""
    stage_name: str
    label: str = ""
    started_at: datetime = field(default_factory=datetime.now)
    duration_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def finish(self, error: Optional[BaseException] = None):
        self.duration_ms = (datetime.now() - self.started_at).total_seconds() * 1000
        if error is not None:
            self.error = f"{type(error).__name__}: {error}"


@dataclass
class PipelineMetrics:
    """Aggregated metrics for plan generation."""
    stage_counts: Dict[str, int] = field(default_factory=dict)
    stage_failures: Dict[str, int] = field(default_factory=dict)
    stage_latencies: Dict[str, List[float]] = field(default_factory=dict)
    schema_defaults: Dict[str, int] = field(default_factory=dict)

    @property
    def total_requests(self) -> int:
        return sum(self.stage_counts.values())

    @property
    def success_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return 1 - sum(self.stage_failures.values()) / self.total_requests

    def record(self, trace: StageTrace):
        name = trace.stage_name
        self.stage_counts[name] = self.stage_counts.get(name, 0) + 1
        if not trace.success:
            self.stage_failures[name] = self.stage_failures.get(name, 0) + 1
        if trace.duration_ms is not None:
            self.stage_latencies.setdefault(name, []).append(trace.duration_ms)

    def record_default(self, field_path: str):
        """Count a default substituted for a missing or mistyped upstream value."""
        self.schema_defaults[field_path] = self.schema_defaults.get(field_path, 0) + 1

    def summary(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "success_rate": f"{self.success_rate:.1%}",
            "stage_avg_latency_ms": {
                name: round(sum(values) / len(values))
                for name, values in self.stage_latencies.items() if values
            },
            "stage_failures": dict(self.stage_failures),
            "schema_defaults": dict(self.schema_defaults),
        }

    def reset(self):
        self.stage_counts.clear()
        self.stage_failures.clear()
        self.stage_latencies.clear()
        self.schema_defaults.clear()


# Global metrics instance
metrics = PipelineMetrics()


class Tracer:
    """Context manager timing one stage; exceptions always propagate."""

    def __init__(self, stage_name: str, label: Any = None):
        self.trace = StageTrace(stage_name=stage_name, label=str(label)[:200] if label else "")

    def __enter__(self) -> StageTrace:
        logger.info(f"▶ {self.trace.stage_name} {self.trace.label}".rstrip())
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.trace.finish(exc_val)
        if self.trace.success:
            logger.info(f"✔ {self.trace.stage_name} completed in {self.trace.duration_ms:.0f}ms")
        else:
            logger.error(f"✖ {self.trace.stage_name} failed after {self.trace.duration_ms:.0f}ms: {self.trace.error}")
        metrics.record(self.trace)
        return False


def log_profile(profile, stage: str):
    """Debug-log which profile fields are known at a stage."""
    logger.debug(f"[{stage}] Filled: {profile.filled_fields}")
    logger.debug(f"[{stage}] Missing: {profile.missing_fields}")


def get_metrics_summary() -> Dict[str, Any]:
    return metrics.summary()
