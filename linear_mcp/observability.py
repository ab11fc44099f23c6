from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict

from .config import Settings


class StructuredFormatter(logging.Formatter):
    """Single-line JSON-ish records; missing structured fields default to ''."""

    FIELDS = ("tool", "correlation_id", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        for name in self.FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "")
        return super().format(record)


def setup_logger(settings: Settings) -> logging.Logger:
    """
    Configure the `linear_mcp` logger tree.

    Records go to stderr: on the stdio transport stdout carries the protocol.
    """
    logger = logging.getLogger("linear_mcp")
    if logger.handlers:
        return logger
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","tool":"%(tool)s",'
        '"correlation_id":"%(correlation_id)s","duration_ms":"%(duration_ms)s","msg":"%(message)s"}'
    ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


@dataclass
class ToolMetrics:
    calls: int = 0
    errors: int = 0
    total_latency_ms: float = 0.0

    def observe(self, duration_ms: float, error: bool) -> None:
        self.calls += 1
        self.total_latency_ms += float(duration_ms)
        if error:
            self.errors += 1

    @property
    def avg_latency_ms(self) -> float:
        if self.calls == 0:
            return 0.0
        return self.total_latency_ms / self.calls


class InMemoryMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: Dict[str, ToolMetrics] = {}

    def record(self, tool: str, duration_ms: float, error: bool) -> None:
        with self._lock:
            metrics = self._tools.get(tool)
            if metrics is None:
                metrics = ToolMetrics()
                self._tools[tool] = metrics
            metrics.observe(duration_ms, error)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {
                name: {
                    "calls": float(m.calls),
                    "errors": float(m.errors),
                    "avg_latency_ms": float(m.avg_latency_ms),
                }
                for name, m in self._tools.items()
            }

    def render_prometheus(self) -> str:
        lines = [
            "# HELP linear_mcp_tool_calls_total Total number of tool calls",
            "# TYPE linear_mcp_tool_calls_total counter",
        ]
        snapshot = self.snapshot()
        for tool, m in snapshot.items():
            lines.append(f'linear_mcp_tool_calls_total{{tool="{tool}"}} {m["calls"]}')
        lines.append("# HELP linear_mcp_tool_errors_total Total number of failed tool calls")
        lines.append("# TYPE linear_mcp_tool_errors_total counter")
        for tool, m in snapshot.items():
            lines.append(f'linear_mcp_tool_errors_total{{tool="{tool}"}} {m["errors"]}')
        lines.append("# HELP linear_mcp_tool_avg_latency_ms Average tool latency in milliseconds")
        lines.append("# TYPE linear_mcp_tool_avg_latency_ms gauge")
        for tool, m in snapshot.items():
            lines.append(f'linear_mcp_tool_avg_latency_ms{{tool="{tool}"}} {m["avg_latency_ms"]}')
        return "\n".join(lines) + "\n"
