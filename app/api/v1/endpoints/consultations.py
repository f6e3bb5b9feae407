from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_async_session as get_session
from app.repositories.consultation_repository import ConsultationFilters
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.consultation import (
    ConsultationCreateRequest,
    ConsultationListResponse,
    ConsultationResponse,
    ConsultationUpdateRequest,
    FormOptionsResponse,
    StatusUpdateRequest,
    StepValidationRequest,
    StepValidationResponse,
    WizardStateResponse,
)
from app.services import wizard_service
from app.services.consultation_service import ConsultationService
from app.services.user_service import UserService
from app.utils.consultation_options import get_form_options
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, raise_http_error

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_consultation_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ConsultationService:
    return ConsultationService(db_session)


async def get_user_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> UserService:
    return UserService(db_session)


@router.get(
    "/options",
    response_model=ApiResponse,
    summary="Get wizard form options",
    operation_id="get_consultation_form_options",
)
async def get_consultation_options(request: Request) -> ApiResponse:
    """Return the preset option lists used by the intake wizard."""
    return create_api_response(
        data=FormOptionsResponse(options=get_form_options()),
        message="Form options retrieved successfully",
        request=request,
    )


@router.post(
    "/wizard/validate-step",
    response_model=ApiResponse,
    summary="Validate a wizard step",
    operation_id="validate_consultation_wizard_step",
)
async def validate_wizard_step(request: Request, payload: StepValidationRequest) -> ApiResponse:
    """Check whether the data entered for a step is enough to move on."""
    errors = wizard_service.validate_step(payload.step, payload.data)
    return create_api_response(
        data=StepValidationResponse(step=payload.step, valid=not errors, errors=errors),
        message="Step is valid" if not errors else "Step has validation errors",
        request=request,
    )


@router.post(
    "/",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a consultation",
    operation_id="create_consultation",
)
async def create_consultation(
    request: Request,
    payload: ConsultationCreateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Create a draft consultation, optionally with initial section data."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        LOGGER.info(f"Creating consultation for user: {user.id}")
        consultation = await consultation_service.create_consultation(
            user.id, payload.provided_sections()
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Consultation created successfully",
        request=request,
    )


@router.get(
    "/",
    response_model=ApiResponse,
    summary="List consultations",
    operation_id="list_consultations",
)
async def list_consultations(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
) -> ApiResponse:
    """List the current user's consultations, optionally filtered by status or search term."""
    filters = ConsultationFilters(status=status_filter, search=search or None)
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        result = await consultation_service.list_consultations(
            user.id, page=page, limit=limit, filters=filters
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationListResponse(**result),
        message="Consultations retrieved successfully" if result["count"] else "No consultations found",
        request=request,
    )


@router.get(
    "/filter",
    response_model=ApiResponse,
    summary="Filter consultations",
    operation_id="filter_consultations",
)
async def filter_consultations(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    industry: Optional[str] = Query(None),
    urgency_level: Optional[str] = Query(None),
    min_completion: Optional[int] = Query(None, ge=0, le=100),
    max_completion: Optional[int] = Query(None, ge=0, le=100),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
) -> ApiResponse:
    """Filter consultations by industry, urgency, completion range and creation date."""
    filters = ConsultationFilters(
        status=status_filter,
        industry=industry,
        urgency_level=urgency_level,
        min_completion=min_completion,
        max_completion=max_completion,
        created_from=created_from,
        created_to=created_to,
    )
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        result = await consultation_service.list_consultations(
            user.id, page=page, limit=limit, filters=filters
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationListResponse(**result),
        message="Consultations retrieved successfully" if result["count"] else "No consultations found",
        request=request,
    )


@router.get(
    "/{consultation_id}",
    response_model=ApiResponse,
    summary="Get a consultation",
    operation_id="get_consultation",
)
async def get_consultation(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation, owner = await consultation_service.get_consultation(
            consultation_id, user.id
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.from_consultation(consultation, owner),
        message="Consultation retrieved successfully",
        request=request,
    )


@router.put(
    "/{consultation_id}",
    response_model=ApiResponse,
    summary="Update a consultation",
    operation_id="update_consultation",
)
async def update_consultation(
    request: Request,
    consultation_id: UUID,
    payload: ConsultationUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Replace the supplied sections; a version is recorded when anything changed."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation, changed_fields = await consultation_service.update_consultation(
            consultation_id, user.id, payload.provided_sections()
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Consultation updated successfully" if changed_fields else "No changes detected",
        request=request,
    )


@router.delete(
    "/{consultation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a consultation",
    operation_id="delete_consultation",
)
async def delete_consultation(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> Response:
    """Delete a consultation together with its drafts and version history."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        await consultation_service.delete_consultation(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{consultation_id}/status",
    response_model=ApiResponse,
    summary="Change consultation status",
    operation_id="update_consultation_status",
)
async def update_consultation_status(
    request: Request,
    consultation_id: UUID,
    payload: StatusUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation = await consultation_service.update_status(
            consultation_id, user.id, payload.status
        )
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message=f"Consultation status changed to {consultation.status}",
        request=request,
    )


@router.post(
    "/{consultation_id}/complete",
    response_model=ApiResponse,
    summary="Complete a consultation",
    operation_id="complete_consultation",
)
async def complete_consultation(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Mark a fully filled consultation as completed."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation = await consultation_service.complete_consultation(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Consultation completed successfully",
        request=request,
    )


@router.post(
    "/{consultation_id}/archive",
    response_model=ApiResponse,
    summary="Archive a consultation",
    operation_id="archive_consultation",
)
async def archive_consultation(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation = await consultation_service.archive_consultation(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Consultation archived successfully",
        request=request,
    )


@router.post(
    "/{consultation_id}/restore",
    response_model=ApiResponse,
    summary="Restore an archived consultation",
    operation_id="restore_consultation",
)
async def restore_consultation(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Move an archived consultation back to draft."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        consultation = await consultation_service.restore_consultation(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=ConsultationResponse.model_validate(consultation),
        message="Consultation restored successfully",
        request=request,
    )


@router.get(
    "/{consultation_id}/wizard",
    response_model=ApiResponse,
    summary="Get wizard progress",
    operation_id="get_consultation_wizard_state",
)
async def get_wizard_state(
    request: Request,
    consultation_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    consultation_service: Annotated[ConsultationService, Depends(get_consultation_service)],
) -> ApiResponse:
    """Step completion, current step and whether the consultation can be completed."""
    try:
        user = await user_service.get_or_create_user_from_jwt(current_user)
        state = await consultation_service.get_wizard_state(consultation_id, user.id)
    except Exception as e:
        raise_http_error(e, request)

    return create_api_response(
        data=WizardStateResponse(**state),
        message="Wizard state retrieved successfully",
        request=request,
    )
