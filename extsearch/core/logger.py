"""Structured logging: console lines plus an optional JSON-lines event log."""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, TextIO

from extsearch.core.config import config


def _format_duration(ms: float) -> str:
    if ms < 0:
        return "0ms"
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    if ms >= 1:
        return f"{ms:.0f}ms"
    if ms > 0:
        return "<1ms"
    return "0ms"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed engine)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    # 38;5;N = foreground 256-color
    codes = {
        "dim": "\033[38;5;239m",
        "engine": "\033[38;5;81m",
        "ok": "\033[38;5;78m",
        "fail": "\033[38;5;203m",
        "skip": "\033[38;5;221m",
        "duration": "\033[38;5;221m",
        "query": "\033[38;5;246m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class ExtSearchLogger:
    def __init__(self, log_events: bool | None = None):
        self._file_lock = threading.Lock()
        self._log_file_handle: TextIO | None = None
        self.log_file = config.logs_dir / "search.log"
        if config.log_events if log_events is None else log_events:
            config.logs_dir.mkdir(parents=True, exist_ok=True)
            self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("extsearch")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(getattr(logging, config.log_level, logging.INFO))
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)

    def log_event(self, event: LogEvent) -> None:
        if self._log_file_handle is None:
            return
        with self._file_lock:
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def close(self) -> None:
        with self._file_lock:
            if self._log_file_handle is not None:
                self._log_file_handle.close()
                self._log_file_handle = None

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        self.log_event(LogEvent(event_type=event_type, timestamp=self._timestamp(), data=data))

    def search_start(self, query: str, engine_ids: list[str]) -> None:
        self._emit("SEARCH_START", {"query": query[:500], "engines": engine_ids})
        preview = f"{query[:100]}{'...' if len(query) > 100 else ''}"
        self.console.info(
            f"Search: {_c('query')}{preview}{_reset()}  "
            f"[{', '.join(engine_ids) or 'no engines'}]"
        )

    def query_optimized(self, original: str, optimized: str, target: str) -> None:
        if original == optimized:
            return
        self._emit(
            "QUERY_OPTIMIZED",
            {"original": original[:500], "optimized": optimized[:500], "target": target},
        )
        self.console.debug(f"  │ Query optimized ({target}): {original!r} → {optimized!r}")

    def engine_skipped(self, engine_id: str, reason: str) -> None:
        self._emit("ENGINE_SKIPPED", {"engine": engine_id, "reason": reason})
        self.console.info(
            f"  │ {_c('skip')}⏭ Skip{_reset()}  {_c('engine')}{engine_id}{_reset()}  {reason}"
        )

    def engine_result(
        self,
        engine_id: str,
        success: bool,
        latency_ms: float,
        result_count: int,
        *,
        error: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "engine": engine_id,
            "success": success,
            "latency_ms": round(latency_ms, 1),
            "result_count": result_count,
        }
        if not success and error:
            data["error"] = error[:500]
        self._emit("ENGINE_RESULT", data)
        dur = f"{_c('duration')}{_format_duration(latency_ms)}{_reset()}"
        if success:
            status = f"{_c('ok')}[ok]{_reset()}"
            self.console.info(
                f"  │ {_c('engine')}{engine_id}{_reset()}  {dur}  {result_count} results  {status}"
            )
        else:
            status = f"{_c('fail')}[failed]{_reset()}"
            reason = _short_reason(error)
            self.console.warning(
                f"  │ {_c('engine')}{engine_id}{_reset()}  {dur}  {status}  {reason}"
            )

    def search_done(
        self, total_ms: float, result_count: int, responded: int, attempted: int, partial: bool
    ) -> None:
        self._emit(
            "SEARCH_DONE",
            {
                "total_ms": round(total_ms, 1),
                "result_count": result_count,
                "responded": responded,
                "attempted": attempted,
                "partial": partial,
            },
        )
        dur = f"{_c('duration')}{_format_duration(total_ms)}{_reset()}"
        marker = f"  {_c('fail')}(partial){_reset()}" if partial else ""
        self.console.info(
            f"✓ Done  {result_count} results  {responded}/{attempted} sources  total {dur}{marker}"
        )


logger = ExtSearchLogger()
