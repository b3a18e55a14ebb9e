"""Lightweight in-memory metrics (Prometheus text format)."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple


def _sanitize_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\"", "\\\"")


def _format_labels(label_names: List[str], values: Tuple[str, ...]) -> str:
    if not label_names:
        return ""
    parts = [f'{name}="{_sanitize_label_value(val)}"' for name, val in zip(label_names, values)]
    return "{" + ",".join(parts) + "}"


class Counter:
    """Monotonic counter keyed by label values; `value()` reads one series back."""

    def __init__(self, name: str, help_text: str, label_names: Optional[Iterable[str]] = None):
        self.name = name
        self.help_text = help_text
        self.label_names = list(label_names or [])
        self._values: Dict[Tuple[str, ...], float] = {}
        self._lock = threading.Lock()

    def inc(self, labels: Optional[Dict[str, str]] = None, amount: float = 1.0):
        key = self._label_tuple(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + float(amount)

    def value(self, labels: Optional[Dict[str, str]] = None) -> float:
        with self._lock:
            return self._values.get(self._label_tuple(labels), 0.0)

    def _label_tuple(self, labels: Optional[Dict[str, str]]) -> Tuple[str, ...]:
        labels = labels or {}
        return tuple(str(labels.get(name, "")) for name in self.label_names)

    def export(self) -> List[str]:
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} counter"]
        with self._lock:
            for label_values, value in self._values.items():
                labels = _format_labels(self.label_names, label_values)
                lines.append(f"{self.name}{labels} {value}")
        return lines

    def reset(self):
        with self._lock:
            self._values.clear()


scores_written_total = Counter(
    "quickplay_scores_written_total", "Raw game sessions recorded", ["game"]
)
leaderboard_views_skipped_total = Counter(
    "quickplay_leaderboard_views_skipped_total",
    "Sessions kept out of the daily/best views because score or datePlayed was malformed",
    ["game"],
)
summaries_updated_total = Counter(
    "quickplay_statistics_updates_total", "Statistics summaries created or updated", ["game", "transition"]
)
activity_events_total = Counter(
    "quickplay_activity_events_total", "Activity notifications committed", ["type"]
)
trigger_failures_total = Counter(
    "quickplay_trigger_failures_total", "Trigger handlers that raised", ["topic"]
)
daily_reset_runs_total = Counter(
    "quickplay_daily_reset_runs_total", "Daily-best reset sweeps by outcome", ["status"]
)

_ALL = [
    scores_written_total,
    leaderboard_views_skipped_total,
    summaries_updated_total,
    activity_events_total,
    trigger_failures_total,
    daily_reset_runs_total,
]


def render_prometheus() -> str:
    lines: List[str] = []
    for metric in _ALL:
        lines.extend(metric.export())
    return "\n".join(lines) + "\n"


def reset_all() -> None:
    for metric in _ALL:
        metric.reset()
