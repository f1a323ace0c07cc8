"""
app/core/logging.py — loguru structured JSON logging setup
Every suggestion, vote, quota denial, admin action and store failure is logged
as a single JSON record on stdout.
"""
from __future__ import annotations

import json
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure loguru for structured JSON output to stdout.
    Container platforms capture stdout, so no file sink is added.
    """
    # Remove default loguru handler
    logger.remove()

    logger.add(
        sys.stdout,
        level=log_level.upper(),
        format="{message}",  # Raw message (we format as JSON ourselves)
        serialize=True,       # loguru built-in JSON serialization
        backtrace=True,
        diagnose=False,       # Disable in production for safety
        colorize=False,
    )


def _build_log_record(
    component: str,
    operation: str,
    extra: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a base structured log record."""
    record: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "operation": operation,
    }
    if extra:
        record.update(extra)
    return record


# ──────────────────────────────────────────────────────────────────────────────
# Event helpers
# ──────────────────────────────────────────────────────────────────────────────

def log_suggestion(
    client_key: str,
    topic_id: Optional[int],
    is_admin: bool,
    accepted: bool,
    reason: Optional[str] = None,
) -> None:
    """Every suggestion attempt that reaches the duplicate gate is logged."""
    record = _build_log_record("topic_service", "suggest", {
        "client_key": client_key,
        "topic_id": topic_id,
        "is_admin": is_admin,
        "accepted": accepted,
        "reason": reason,
    })
    logger.info(json.dumps(record, ensure_ascii=False))


def log_vote(client_key: str, topic_id: int, new_count: int) -> None:
    record = _build_log_record("topic_service", "vote", {
        "client_key": client_key,
        "topic_id": topic_id,
        "votos": new_count,
    })
    logger.info(json.dumps(record))


def log_quota_denied(client_key: str, kind: str, ceiling: int) -> None:
    record = _build_log_record("quota_tracker", "deny", {
        "client_key": client_key,
        "kind": kind,
        "ceiling": ceiling,
    })
    logger.warning(json.dumps(record))


def log_admin_action(
    operation: str,
    topic_id: Optional[int] = None,
    success: bool = True,
    fields: Optional[list[str]] = None,
) -> None:
    """Admin login attempts, edits and deletes."""
    record = _build_log_record("admin", operation, {
        "topic_id": topic_id,
        "success": success,
        "fields": fields,
    })
    logger.info(json.dumps(record))


def log_store_operation(
    backend: str,
    operation: str,
    success: bool,
    latency_ms: float,
    error: Optional[str] = None,
) -> None:
    record = _build_log_record("topic_store", operation, {
        "backend": backend,
        "success": success,
        "latency_ms": round(latency_ms, 2),
        "error": error,
    })
    logger.debug(json.dumps(record))


def log_error(
    component: str,
    operation: str,
    error: Exception,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Every error must be logged with full context."""
    tb = traceback.format_exc()
    record = _build_log_record(component, operation, {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "stack_trace": tb[:2000] if tb else "",
        "context": context or {},
    })
    logger.error(json.dumps(record, ensure_ascii=False))
