"""Lambda handler that clears all job and report state. Idempotent."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from salesagg.config import load_settings
from salesagg.errors import SalesAggError
from salesagg.pipeline.bootstrap import build_store
from salesagg.pipeline.scheduler import reset_state

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    try:
        body = reset_state(build_store(load_settings()))
        status_code = 200
    except SalesAggError as exc:
        logger.error("Reset failed (%s): %s", exc.kind, exc.message)
        body = {"ok": False, "error": exc.to_dict()}
        status_code = 500

    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", "Cache-Control": "no-store"},
        "body": json.dumps(body),
    }
