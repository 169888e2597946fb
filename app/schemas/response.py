"""
Response envelope schemas

Every JSON body leaves the service as ``{success, data, error, meta, feedback}``.
Layout payloads carrying a fallback warning also surface it as feedback so
clients can show a banner without inspecting ``data``.
"""

from datetime import datetime
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")

FeedbackLevel = Literal["info", "warning", "error"]


class ResponseMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId")
    timestamp: datetime


class ResponseFeedback(BaseModel):
    """사용자에게 노출할 부가 안내 (예: 폴백 모드 경고)"""

    code: str
    level: FeedbackLevel
    message: str


class ResponseError(BaseModel):
    code: str
    message: str
    details: Optional[dict] = None
    hint: Optional[str] = None


class ResponseEnvelope(BaseModel, Generic[T]):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[T] = None
    error: Optional[ResponseError] = None
    meta: ResponseMeta
    feedback: list[ResponseFeedback] = Field(default_factory=list)
