#!/usr/bin/env python3
"""
perfdash Audit Logger

One JSON line per operator action on the dashboard (range edits, exports,
theme and visibility toggles, data deletion), written to the
"perfdash.audit" logger so it can be routed separately from app logs.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from fastapi import Request


def _request_context(request: Request) -> Dict[str, Any]:
    """Who asked and how: peer address, route and whether htmx sent it."""
    return {
        "peer": request.client.host if request.client else None,
        "route": f"{request.method} {request.url.path}",
        "query": request.url.query or None,
        "htmx": request.headers.get("hx-request") == "true",
    }


class AuditLogger:
    """Operator action log for the dashboard."""

    def __init__(self, logger_name: str = "perfdash.audit"):
        self.logger = logging.getLogger(logger_name)

    def _log_event(self, category: str, fields: Dict[str, Any], request: Optional[Request] = None):
        record = {
            "at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "category": category,
            **fields,
        }
        if request is not None:
            record["origin"] = _request_context(request)

        self.logger.info(json.dumps(record, default=str, sort_keys=True))

    def ui_action(self, action: str, details: Dict[str, Any], request: Optional[Request] = None):
        """Log a dashboard action ("range_change", "export_csv", "toggle_theme", ...)."""
        self._log_event("ui_action", {"action": action, "details": details}, request)

    def data_deletion(self, success: bool, details: Dict[str, Any], request: Optional[Request] = None):
        """Log a delete-all-data attempt."""
        self._log_event("data_deletion", {"success": success, "details": details}, request)


audit_logger = AuditLogger()
