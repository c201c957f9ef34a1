"""Transport-independent request handling for analysis requests.

Both request shapes (single ``code``/``fileName`` and multi-target
``analysisTargets``) return the same response keys; failures add an
``error`` object so callers never need a separate code path.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import INTERNAL_ERROR, AnalysisError, InvalidRequest
from .logging import get_logger
from .models import DEFAULT_VERSION
from .orchestrator import Orchestrator

_LOGGER = get_logger("api")

STATUS_OK = 200
STATUS_INVALID = 400
STATUS_INTERNAL = 500


def error_response(code: str, message: str, *, version: str = DEFAULT_VERSION) -> Dict[str, Any]:
    return {
        "diagnostics": [],
        "diagnosticsByFile": {},
        "durationsByFile": {},
        "duration": 0,
        "rulesExecuted": [],
        "version": version,
        "error": {"code": code, "message": message},
    }


def handle_request(
    payload: Any, orchestrator: Optional[Orchestrator] = None
) -> Tuple[int, Dict[str, Any]]:
    """Analyze a decoded JSON request body and return ``(status, body)``."""
    try:
        if not isinstance(payload, Mapping):
            raise InvalidRequest("Request body must be a JSON object")
        engine = orchestrator or Orchestrator()
        targets = payload.get("analysisTargets")
        if isinstance(targets, list) and targets:
            _LOGGER.info("Analyze request received with %d targets", len(targets))
            result = engine.analyze_many(targets, payload.get("context"))
        else:
            if not isinstance(payload.get("code"), str) or not payload.get("fileName"):
                raise InvalidRequest("Missing required fields: code, fileName")
            _LOGGER.info("Analyze request received for %s", payload.get("fileName"))
            target = {
                "code": payload.get("code"),
                "fileName": payload.get("fileName"),
                "fileKey": payload.get("fileKey"),
                "context": payload.get("context"),
            }
            result = engine.analyze_single(target)
    except InvalidRequest as exc:
        _LOGGER.info("Rejected analyze request: %s", exc)
        return STATUS_INVALID, error_response(exc.code, str(exc))
    except AnalysisError as exc:
        _LOGGER.error("Analysis failed: %s", exc)
        return STATUS_INTERNAL, error_response(exc.code, str(exc))
    except Exception as exc:
        _LOGGER.exception("Unexpected error during analysis")
        return STATUS_INTERNAL, error_response(INTERNAL_ERROR, str(exc) or "Unknown error")
    _LOGGER.info(
        "Analyze request completed: %d diagnostics in %.3fms", len(result.diagnostics), result.duration
    )
    return STATUS_OK, result.to_dict()


__all__ = ["STATUS_INTERNAL", "STATUS_INVALID", "STATUS_OK", "error_response", "handle_request"]
