from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from seatline.errors import (
    DomainRuleError,
    NotFoundError,
    PermissionDeniedError,
    SeatlineError,
    ValidationError,
)
from seatline.events.capacity import get_capacity_info
from seatline.events.dtos import EventNotFoundError, RSVPOutcomeDTO, RSVPStatus
from seatline.events.features.rsvp.write_model import RSVPWriteModel, SqlRSVPWriteModel
from seatline.events.repository.read_models import EventReadModel, SqlEventReadModel
from seatline.events.urls import CAPACITY_URL, RSVP_URL, WITHDRAW_RSVP_URL
from seatline.notifications import get_trigger_service

router = APIRouter()


class RSVPSubmit(BaseModel):
    user_id: UUID
    status: RSVPStatus


class RSVPResponse(BaseModel):
    event_id: UUID
    user_id: UUID
    status: RSVPStatus
    was_waitlisted: bool
    was_promoted: bool
    promoted_users: list[UUID] = []

    @classmethod
    def from_outcome(cls, outcome: RSVPOutcomeDTO) -> "RSVPResponse":
        return cls(
            event_id=outcome.rsvp.event_id,
            user_id=outcome.rsvp.user_id,
            status=outcome.rsvp.status,
            was_waitlisted=outcome.was_waitlisted,
            was_promoted=outcome.was_promoted,
            promoted_users=outcome.promoted_users,
        )


class CapacityResponse(BaseModel):
    capacity: int | None
    going_count: int
    waitlisted_count: int
    available_spots: int
    is_at_capacity: bool
    has_waitlist: bool


def get_rsvp_write_model() -> RSVPWriteModel:
    """Dependency to get RSVP write model instance."""
    return SqlRSVPWriteModel(notifier=get_trigger_service())


def get_event_read_model() -> EventReadModel:
    return SqlEventReadModel()


def to_http_exception(error: SeatlineError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    if isinstance(error, DomainRuleError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.post(RSVP_URL, response_model=RSVPResponse, status_code=status.HTTP_201_CREATED)
async def submit_rsvp(
    event_id: UUID,
    rsvp_data: RSVPSubmit,
    write_model: RSVPWriteModel = Depends(get_rsvp_write_model),
) -> RSVPResponse:
    """
    RSVP to an event. A going request for a full event lands on the waitlist.
    """
    try:
        outcome = await write_model.submit_rsvp(event_id, rsvp_data.user_id, rsvp_data.status)
    except SeatlineError as e:
        raise to_http_exception(e)
    return RSVPResponse.from_outcome(outcome)


@router.put(RSVP_URL, response_model=RSVPResponse)
async def update_rsvp(
    event_id: UUID,
    rsvp_data: RSVPSubmit,
    write_model: RSVPWriteModel = Depends(get_rsvp_write_model),
) -> RSVPResponse:
    try:
        outcome = await write_model.update_rsvp(event_id, rsvp_data.user_id, rsvp_data.status)
    except SeatlineError as e:
        raise to_http_exception(e)
    return RSVPResponse.from_outcome(outcome)


@router.delete(WITHDRAW_RSVP_URL, response_model=RSVPResponse)
async def withdraw_rsvp(
    event_id: UUID,
    user_id: UUID,
    write_model: RSVPWriteModel = Depends(get_rsvp_write_model),
) -> RSVPResponse:
    try:
        outcome = await write_model.withdraw_rsvp(event_id, user_id)
    except SeatlineError as e:
        raise to_http_exception(e)
    return RSVPResponse.from_outcome(outcome)


@router.get(CAPACITY_URL, response_model=CapacityResponse)
async def get_capacity(
    event_id: UUID,
    read_model: EventReadModel = Depends(get_event_read_model),
) -> CapacityResponse:
    event = await read_model.get_event(event_id)
    if event is None:
        raise to_http_exception(EventNotFoundError(event_id))
    info = get_capacity_info(event, await read_model.get_event_rsvps(event_id))
    return CapacityResponse(
        capacity=info.capacity,
        going_count=info.going_count,
        waitlisted_count=info.waitlisted_count,
        available_spots=info.available_spots,
        is_at_capacity=info.is_at_capacity,
        has_waitlist=info.has_waitlist,
    )
