"""HTTP surface for calendar sessions."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError

from famcal.core.errors import CalendarError, ErrorCategory, classify_error
from famcal.models.service_models import CalendarMonth, SessionOverview
from famcal.services import activity_service, calendar_service, chat_service, session_service
from famcal.services.session_service import CalendarSession


router = APIRouter(prefix="/calendar", tags=["calendar"])
logger = logging.getLogger(__name__)

_STATUS_BY_CATEGORY = {
    ErrorCategory.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCategory.AUTHENTICATION_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCategory.INVALID_MEMBER: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.WRITE_FAILED: status.HTTP_502_BAD_GATEWAY,
}


class SessionRequest(BaseModel):
    """Sign-in request."""

    member: str


class SessionResponse(BaseModel):
    """Issued session."""

    token: str
    member: str
    status: str


class ActivityRequest(BaseModel):
    """New one-off activity."""

    text: str
    date: str
    time: str


class FixedActivityRequest(BaseModel):
    """New daily activity."""

    text: str
    time: str = ""


class MessageRequest(BaseModel):
    """New chat message."""

    text: str


def _http_error(exc: CalendarError) -> HTTPException:
    response = classify_error(exc)
    status_code = _STATUS_BY_CATEGORY.get(response.category, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(
        status_code=status_code,
        detail={"category": response.category.value, "message": response.message, "suggestion": response.suggestion},
    )


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=jsonable_encoder(exc.errors(include_url=False)),
    )


def require_session(token: str = Path(...)) -> CalendarSession:
    """Resolve the path token to a live session or answer 401."""
    try:
        return session_service.load_session(token)
    except CalendarError as e:
        logger.warning("calendar_auth_failed", extra={"error": str(e)})
        raise _http_error(e) from e


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionRequest) -> SessionResponse:
    """Sign a family member in and start their live session."""
    try:
        session = await session_service.open_session(request.member)
    except CalendarError as e:
        logger.error("calendar_session_open_failed", extra={"member": request.member, "error": str(e)})
        raise _http_error(e) from e

    return SessionResponse(token=session.token or "", member=session.member, status=session.status.value)


@router.delete("/sessions/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(token: str) -> None:
    """Close a session; its subscriptions and reminder job stop together."""
    try:
        session_service.close_session(token)
    except CalendarError as e:
        raise _http_error(e) from e


@router.get("/sessions/{token}/overview")
async def get_overview(session: CalendarSession = Depends(require_session)) -> SessionOverview:
    """Schedule, checklist, chat and upcoming events for the signed-in member."""
    return session.overview()


@router.post("/sessions/{token}/activities", status_code=status.HTTP_202_ACCEPTED)
async def post_activity(
    request: ActivityRequest,
    session: CalendarSession = Depends(require_session),
) -> dict[str, Any]:
    """Add a one-off activity for the session's member."""
    try:
        activity_id = await activity_service.add_activity(
            member=session.member, text=request.text, date=request.date, time=request.time
        )
    except ValidationError as e:
        raise _validation_error(e) from e
    except CalendarError as e:
        raise _http_error(e) from e
    return {"accepted": activity_id is not None, "id": activity_id}


@router.delete("/sessions/{token}/activities/{activity_id}", status_code=status.HTTP_202_ACCEPTED)
async def remove_activity(activity_id: str, session: CalendarSession = Depends(require_session)) -> dict[str, Any]:  # noqa: ARG001
    """Delete a one-off activity."""
    await activity_service.delete_activity(activity_id)
    return {"accepted": True}


@router.post("/sessions/{token}/fixed-activities", status_code=status.HTTP_202_ACCEPTED)
async def post_fixed_activity(
    request: FixedActivityRequest,
    session: CalendarSession = Depends(require_session),
) -> dict[str, Any]:
    """Add a daily activity for the session's member."""
    try:
        activity_id = await activity_service.add_fixed_activity(
            member=session.member, text=request.text, time=request.time
        )
    except ValidationError as e:
        raise _validation_error(e) from e
    except CalendarError as e:
        raise _http_error(e) from e
    return {"accepted": activity_id is not None, "id": activity_id}


@router.delete("/sessions/{token}/fixed-activities/{activity_id}", status_code=status.HTTP_202_ACCEPTED)
async def remove_fixed_activity(
    activity_id: str,
    session: CalendarSession = Depends(require_session),  # noqa: ARG001
) -> dict[str, Any]:
    """Delete a daily activity."""
    await activity_service.delete_fixed_activity(activity_id)
    return {"accepted": True}


@router.post("/sessions/{token}/fixed-activities/{activity_id}/toggle", status_code=status.HTTP_202_ACCEPTED)
async def toggle_fixed_activity(activity_id: str, session: CalendarSession = Depends(require_session)) -> dict[str, Any]:
    """Flip today's completion state of a daily activity as this session currently shows it."""
    currently_checked = session.ledger.is_checked(activity_id)
    await session.ledger.toggle(activity_id, currently_checked, session.member)
    return {"accepted": True, "was_checked": currently_checked}


@router.post("/sessions/{token}/messages", status_code=status.HTTP_202_ACCEPTED)
async def post_message(request: MessageRequest, session: CalendarSession = Depends(require_session)) -> dict[str, Any]:
    """Send a chat message as the session's member."""
    try:
        message_id = await chat_service.send_message(member=session.member, text=request.text)
    except ValidationError as e:
        raise _validation_error(e) from e
    except CalendarError as e:
        raise _http_error(e) from e
    return {"accepted": message_id is not None, "id": message_id}


@router.get("/sessions/{token}/calendar/{year}/{month}")
async def get_month(year: int, month: int, session: CalendarSession = Depends(require_session)) -> CalendarMonth:
    """Month grid built from the session's latest activity snapshots."""
    try:
        return calendar_service.build_month(
            year, month, session.evaluator.activities, session.evaluator.fixed_activities
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
