"""Helpers shared by the success middleware and the error handlers"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import Request

from app.schemas.response import ResponseFeedback, ResponseMeta

REQUEST_ID_HEADER = "X-Request-ID"
FALLBACK_FEEDBACK_CODE = "LAYOUT.FALLBACK_MODE"


def build_meta(request: Request) -> ResponseMeta:
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    return ResponseMeta(requestId=request_id, timestamp=datetime.now(timezone.utc))


def build_feedback(payload: Any) -> list[ResponseFeedback]:
    """
    Lift the fallback warning of a layout payload into envelope feedback

    Only layout bodies (``fallback_mode`` + ``warning``) produce feedback.
    """
    if not isinstance(payload, dict) or not payload.get("fallback_mode"):
        return []

    warning = payload.get("warning")
    if not warning:
        return []

    return [ResponseFeedback(code=FALLBACK_FEEDBACK_CODE, level="warning", message=warning)]
