"""Lambda handler that advances the aggregation job by one chunk.

Triggered on a schedule or by the dashboard while the report is not ready.
Thin wrapper around ChunkScheduler. All business logic lives in src/salesagg/.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from salesagg.config import load_settings
from salesagg.errors import SalesAggError
from salesagg.pipeline.bootstrap import build_scheduler

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))


def _response(body: dict[str, Any], status_code: int = 200) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", "Cache-Control": "no-store"},
        "body": json.dumps(body),
    }


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Process the next chunk; publish the report after the last one."""
    try:
        scheduler = build_scheduler(load_settings())
        result = scheduler.step()
    except SalesAggError as exc:
        logger.error("Warm step failed (%s): %s", exc.kind, exc.message)
        return _response({"ok": False, "error": exc.to_dict()}, 500)

    return _response({"ok": True, **result.to_dict()})
