from datetime import datetime, timezone
from typing import Any, Optional, Dict, NoReturn
from uuid import uuid4

from fastapi import HTTPException, Request, status as http_status

from app.core.exceptions import (
    AppError,
    ConsultationStateError,
    ForbiddenError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from app.schemas.common import ApiResponse, ResponseMeta, ErrorDetail
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Most specific classes first
APP_ERROR_STATUS = [
    (ValidationError, http_status.HTTP_400_BAD_REQUEST, "Validation Failed"),
    (ForbiddenError, http_status.HTTP_403_FORBIDDEN, "Forbidden"),
    (NotFoundError, http_status.HTTP_404_NOT_FOUND, "Not Found"),
    (InvalidStatusTransitionError, http_status.HTTP_409_CONFLICT, "Invalid Status Transition"),
    (ConsultationStateError, http_status.HTTP_409_CONFLICT, "Conflict"),
]


def _request_id(request: Optional[Request]) -> str:
    if request is not None:
        for attr in ("correlation_id", "request_id"):
            value = getattr(request.state, attr, None)
            if value:
                return value
    return str(uuid4())


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1"
) -> Dict[str, Any]:
    """Create a standardized API response as a dictionary.

    Returns a dict to be compatible with FastAPI's response_model=dict.
    """
    meta = ResponseMeta(
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
        api_version=api_version
    )

    data_dict: Dict[str, Any] = {}
    if isinstance(data, dict):
        data_dict = data
    elif hasattr(data, "model_dump"):
        data_dict = data.model_dump(mode="json")
    elif isinstance(data, list):
        data_dict = {"items": [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in data]}
    elif data is not None:
        data_dict = {"value": data}

    response = ApiResponse(
        status=status,
        message=message,
        data=data_dict,
        meta=meta
    )
    return response.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None,
    errors: Optional[list[str]] = None,
) -> ErrorDetail:
    """Create a standardized error detail (RFC 7807)."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc),
        errors=errors,
    )


def raise_http_error(error: Exception, request: Optional[Request] = None) -> NoReturn:
    """Translate an application error into an HTTPException with a problem body.

    Unknown exceptions become a 500 and are logged with their traceback.
    """
    status_code = http_status.HTTP_500_INTERNAL_SERVER_ERROR
    title = "Internal Server Error"
    detail = "An unexpected error occurred"
    errors = None

    for error_type, mapped_status, mapped_title in APP_ERROR_STATUS:
        if isinstance(error, error_type):
            status_code, title, detail = mapped_status, mapped_title, str(error)
            break
    else:
        if isinstance(error, AppError):
            detail = str(error)
        LOGGER.error(f"Unhandled error: {error}", exc_info=error)

    if isinstance(error, ValidationError):
        errors = error.errors

    error_detail = create_error_detail(
        title=title,
        status=status_code,
        detail=detail,
        request=request,
        errors=errors,
    )
    raise HTTPException(status_code=status_code, detail=error_detail.model_dump(mode="json")) from error
