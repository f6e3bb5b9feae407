from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.api.v1.endpoints.consultations import get_consultation_service, get_user_service
from app.core.auth import get_current_user
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.consultation import (
    ConsultationResponse,
    DraftConflictResponse,
    DraftResponse,
    DraftSaveRequest,
)
from app.services.consultation_service import ConsultationService
from app.services.user_service import UserService
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, raise_http_error

LOGGER = get_logger(__name__)

router = APIRouter()


async def _save_draft(
    request: Request,
    consultation_id: UUID,
    payload: DraftSaveRequest,
    current_user: CurrentUser,
    user_service: UserService,
    consultation_service: ConsultationService,
) -> dict:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        draft = await consultation_service.save_draft(
            consultation_id,
            user.id,
            payload.provided_sections(),
            draft_notes=payload.draft_notes,
            auto_saved=payload.auto_saved,
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=DraftResponse.model_validate(draft),
        message="Draft saved successfully",
        request=request,
    )


@router.get(
    "/{consultation_id}/drafts",
    response_model=ApiResponse,
    summary="Get the current user's draft",
    operation_id="get_consultation_draft",
)
async def get_draft(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        draft = await consultation_service.get_draft(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=DraftResponse.model_validate(draft),
        message="Draft retrieved successfully",
        request=request,
    )


@router.post(
    "/{consultation_id}/drafts",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a draft",
    operation_id="create_consultation_draft",
)
async def create_draft(
    request: Request,
    consultation_id: UUID,
    payload: DraftSaveRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Autosave wizard input; replaces any existing draft for this user."""
    return await _save_draft(
        request, consultation_id, payload, current_user, user_service, consultation_service
    )


@router.put(
    "/{consultation_id}/drafts",
    response_model=ApiResponse,
    summary="Update a draft",
    operation_id="update_consultation_draft",
)
async def update_draft(
    request: Request,
    consultation_id: UUID,
    payload: DraftSaveRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    return await _save_draft(
        request, consultation_id, payload, current_user, user_service, consultation_service
    )


@router.delete(
    "/{consultation_id}/drafts",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a draft",
    operation_id="delete_consultation_draft",
)
async def delete_draft(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> Response:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        await consultation_service.delete_draft(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{consultation_id}/drafts/promote",
    response_model=ApiResponse,
    summary="Promote a draft into the consultation",
    operation_id="promote_consultation_draft",
)
async def promote_draft(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Copy the draft onto the saved consultation and delete the draft."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation, changed_fields = await consultation_service.promote_draft(
            consultation_id, user.id
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Draft promoted successfully" if changed_fields else "Draft matched saved data",
        request=request,
    )


@router.get(
    "/{consultation_id}/drafts/conflict",
    response_model=ApiResponse,
    summary="Check for a newer draft",
    operation_id="check_consultation_draft_conflict",
)
async def check_draft_conflict(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
    since: datetime = Query(..., description="Last time the client loaded the consultation"),
) -> ApiResponse:
    """Tell the client whether its draft was saved elsewhere after it last loaded."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        has_conflict, draft_updated_at = await consultation_service.has_conflicting_draft(
            consultation_id, user.id, since
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=DraftConflictResponse(has_conflict=has_conflict, draft_updated_at=draft_updated_at),
        message="Newer draft found" if has_conflict else "No conflicting draft",
        request=request,
    )
