"""Wraps successful JSON responses in the shared envelope"""

import json
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.response_utils import REQUEST_ID_HEADER, build_feedback, build_meta
from app.schemas.response import ResponseEnvelope


class SuccessEnvelopeMiddleware(BaseHTTPMiddleware):
    """
    2xx JSON 응답을 ResponseEnvelope로 감싼다.

    Bodies that already carry a ``success`` key (error envelopes, health
    checks built by hand) pass through untouched. The request id is echoed
    back in the ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        if not self._should_wrap(response):
            return response

        body = await self._read_body(response)
        if not body:
            return response

        try:
            payload = json.loads(body)
        except ValueError:
            return response

        if isinstance(payload, dict) and "success" in payload:
            return response

        meta = build_meta(request)
        envelope = ResponseEnvelope(
            success=True,
            data=payload,
            meta=meta,
            feedback=build_feedback(payload),
        )

        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() != "content-length"
        }
        headers[REQUEST_ID_HEADER] = meta.request_id
        return JSONResponse(
            status_code=response.status_code,
            content=jsonable_encoder(envelope, by_alias=True),
            headers=headers,
        )

    async def _read_body(self, response: Response) -> bytes:
        body = getattr(response, "body", None)
        if body:
            return body

        body_iterator = getattr(response, "body_iterator", None)
        if body_iterator is None:
            return b""

        chunks = [chunk async for chunk in body_iterator]
        return b"".join(chunks)

    @staticmethod
    def _should_wrap(response: Response) -> bool:
        if response.status_code >= 400 or response.status_code in (204, 304):
            return False
        return "application/json" in response.headers.get("content-type", "")
