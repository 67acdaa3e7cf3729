"""Lambda handler for the dashboard — returns the report once it is complete.

Partial job state is never exposed; callers get ``{"ready": false}`` until the
final report has been published.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from salesagg.config import load_settings
from salesagg.errors import SalesAggError
from salesagg.pipeline.bootstrap import build_store
from salesagg.pipeline.scheduler import read_progress, read_status

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))


def _response(body: dict[str, Any], status_code: int = 200) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", "Cache-Control": "no-store"},
        "body": json.dumps(body),
    }


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Return ``{ready, data?}``, or job progress with ``?view=progress``."""
    params = (event or {}).get("queryStringParameters") or {}
    try:
        store = build_store(load_settings())
        if params.get("view") == "progress":
            return _response(read_progress(store).to_dict())
        return _response(read_status(store))
    except SalesAggError as exc:
        logger.error("Status query failed (%s): %s", exc.kind, exc.message)
        return _response({"ready": False, "error": exc.to_dict()}, 500)
