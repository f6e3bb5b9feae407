from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.endpoints.consultations import get_consultation_service, get_user_service
from app.core.auth import get_current_user
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.consultation import (
    ConsultationResponse,
    VersionComparisonResponse,
    VersionListResponse,
    VersionResponse,
)
from app.services.consultation_service import ConsultationService
from app.services.user_service import UserService
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, raise_http_error

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{consultation_id}/versions",
    response_model=ApiResponse,
    summary="List consultation versions",
    operation_id="list_consultation_versions",
)
async def list_versions(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
    page: int = Query(1),
    limit: Optional[int] = Query(None),
) -> ApiResponse:
    """Version history, newest first."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        result = await consultation_service.get_version_history(
            consultation_id, user.id, page=page, limit=limit
        )
    except Exception as e:
        raise_http_error(e, request)

    data = VersionListResponse(
        total=result["total"],
        versions=[VersionResponse.model_validate(v) for v in result["versions"]],
        page=result["page"],
        limit=result["limit"],
        total_pages=result["total_pages"],
    )
    return create_api_response(
        data=data,
        message="Version history retrieved successfully",
        request=request,
    )


@router.get(
    "/{consultation_id}/versions/compare",
    response_model=ApiResponse,
    summary="Compare two versions",
    operation_id="compare_consultation_versions",
)
async def compare_versions(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
    v1: int = Query(..., ge=1, description="Older version number"),
    v2: int = Query(..., ge=1, description="Newer version number"),
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        comparison = await consultation_service.compare_versions(consultation_id, user.id, v1, v2)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=VersionComparisonResponse(**comparison),
        message="Versions compared successfully",
        request=request,
    )


@router.get(
    "/{consultation_id}/versions/{version_number}",
    response_model=ApiResponse,
    summary="Get a consultation version",
    operation_id="get_consultation_version",
)
async def get_version(
    request: Request,
    consultation_id: UUID,
    version_number: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        version = await consultation_service.get_version(consultation_id, user.id, version_number)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=VersionResponse.model_validate(version),
        message="Version retrieved successfully",
        request=request,
    )


@router.post(
    "/{consultation_id}/versions/{version_number}/rollback",
    response_model=ApiResponse,
    summary="Roll back to a version",
    operation_id="rollback_consultation_version",
)
async def rollback_to_version(
    request: Request,
    consultation_id: UUID,
    version_number: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Restore sections and status from a version; the rollback is itself versioned."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation, _ = await consultation_service.rollback_to_version(
            consultation_id, user.id, version_number
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message=f"Consultation rolled back to version {version_number}",
        request=request,
    )
