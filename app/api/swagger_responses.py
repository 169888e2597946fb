"""
FastAPI Swagger 문서화를 위한 공통 응답 구조 정의

각 엔드포인트의 @router 데코레이터에서 사용하여
Swagger UI에 공통 응답 envelope 구조를 표시합니다.
"""

from typing import Any, Dict

_META_EXAMPLE = {
    "requestId": "req-uuid-xxx",
    "timestamp": "2026-01-15T10:35:00Z",
}


def success_response_example(
    status_code: int = 200,
    data_example: Any = None,
) -> Dict[int, Dict[str, Any]]:
    """
    성공 응답 예시 생성

    Args:
        status_code: HTTP 상태 코드 (200, 201, 204 등)
        data_example: 응답 data 필드의 예시 값

    Returns:
        FastAPI responses 매개변수에 전달할 딕셔너리
    """
    if status_code == 204:
        # No Content
        return {}

    return {
        status_code: {
            "description": {
                200: "성공",
                201: "생성 성공",
            }.get(status_code, "성공"),
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": data_example or {},
                        "error": None,
                        "meta": _META_EXAMPLE,
                        "feedback": [],
                    }
                }
            },
        }
    }


def _error_example(
    description: str,
    code: str,
    message: str,
    hint: str | None = None,
) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "data": None,
                    "error": {
                        "code": code,
                        "message": message,
                        "details": None,
                        "hint": hint,
                    },
                    "meta": _META_EXAMPLE,
                    "feedback": [],
                }
            }
        },
    }


def error_response_examples() -> Dict[int, Dict[str, Any]]:
    """
    공통 에러 응답 예시들

    Returns:
        FastAPI responses 매개변수에 전달할 딕셔너리
    """
    return {
        400: _error_example(
            "Bad Request - 유효하지 않은 입력",
            "ValidationError",
            "Target position must not be negative",
        ),
        401: _error_example(
            "Unauthorized - 인증 실패",
            "HTTP.401",
            "Could not validate credentials",
        ),
        403: _error_example(
            "Forbidden - 권한 없음",
            "PermissionDeniedError",
            "Only organization super admins can reorganize departments.",
        ),
        404: _error_example(
            "Not Found - 부서를 찾을 수 없음",
            "RecordNotFoundError",
            "Department 'sales' not found",
        ),
        409: _error_example(
            "Conflict - 변경 사항이 저장되지 않음",
            "ZeroRowsAffectedError",
            "move did not update any rows. The change was not saved.",
            hint="새로고침 후 다시 시도해주세요",
        ),
        422: _error_example(
            "Unprocessable Entity - 필드 검증 실패",
            "ValidationError",
            "body.target_position: Input should be greater than or equal to 0",
        ),
        500: _error_example(
            "Internal Server Error - 서버 오류",
            "INTERNAL.UNEXPECTED",
            "Unexpected server error.",
            hint="관리자에게 문의해주세요",
        ),
        502: _error_example(
            "Bad Gateway - 저장소 일시 오류",
            "TransientFailureError",
            "Assignment store request failed.",
        ),
        503: _error_example(
            "Service Unavailable - 읽기 전용 기본 레이아웃",
            "FallbackModeError",
            "Database table not found. Drag-and-drop is disabled. Using default department layout.",
            hint='마이그레이션 적용 후 "Check Again"을 사용하세요',
        ),
    }


def combined_responses(
    status_code: int = 200,
    data_example: Any = None,
    include_errors: list[int] | None = None,
) -> Dict[int, Dict[str, Any]]:
    """
    성공 응답과 에러 응답을 함께 정의

    Args:
        status_code: 성공 HTTP 상태 코드
        data_example: 응답 data 필드의 예시 값
        include_errors: 포함할 에러 상태 코드 리스트 (기본값: [401, 403, 404, 500])

    Returns:
        FastAPI responses 매개변수에 전달할 딕셔너리
    """
    if include_errors is None:
        include_errors = [401, 403, 404, 500]

    responses = success_response_example(status_code, data_example)
    error_examples = error_response_examples()

    for error_code in include_errors:
        if error_code in error_examples:
            responses[error_code] = error_examples[error_code]

    return responses
