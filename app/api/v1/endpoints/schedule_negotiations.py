"""
Schedule Negotiation API Endpoints

Handles:
- Customer and installer schedule proposals for a booking
- Accepting / rejecting the other party's proposal
- Deleting stale proposals (never the current one)
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.endpoints.bookings import get_booking_or_404
from app.core.database import get_db
from app.core.security import Actor, get_current_actor, require_booking_party
from app.models.models import ScheduleNegotiation
from app.schemas.schemas import (
    ScheduleNegotiationCreate,
    ScheduleNegotiationRespond,
    ScheduleNegotiationResponse,
)
from app.services.notification_service import NotificationService
from app.utils.negotiation_rules import (
    PROPOSER_ROLES,
    SPECIFIC_TIME_SLOT,
    can_delete,
    expected_responder,
    pending_awaiting,
    pending_from,
)

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSED_BOOKING_STATUSES = ("completed", "cancelled")


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _booking_negotiations(db: Session, booking_id: int) -> List[ScheduleNegotiation]:
    return db.query(ScheduleNegotiation).filter(
        ScheduleNegotiation.booking_id == booking_id
    ).order_by(
        ScheduleNegotiation.proposed_at.desc(),
        ScheduleNegotiation.id.desc()
    ).all()


def _get_negotiation_or_404(db: Session, negotiation_id: int) -> ScheduleNegotiation:
    negotiation = db.query(ScheduleNegotiation).filter(
        ScheduleNegotiation.id == negotiation_id
    ).first()
    if not negotiation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule negotiation not found"
        )
    return negotiation


@router.post("/schedule-negotiations", response_model=ScheduleNegotiationResponse, status_code=status.HTTP_201_CREATED)
def create_schedule_negotiation(
    proposal_data: ScheduleNegotiationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    Propose an installation date and time slot.

    The proposer role comes from the token. A proposer may only have one
    open proposal per booking; an open proposal from the other party is
    marked as counter_proposed.
    """
    if actor.role not in PROPOSER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the customer or the installer can propose a schedule"
        )

    booking = get_booking_or_404(db, proposal_data.booking_id)
    require_booking_party(actor, booking)

    if booking.installer_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No installer has been assigned to this booking yet"
        )
    if booking.status in CLOSED_BOOKING_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot schedule a {booking.status} booking"
        )

    proposed_date = _naive_utc(proposal_data.proposed_date)
    now = datetime.utcnow()
    if proposed_date.date() < now.date():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Proposed date cannot be in the past"
        )

    existing = _booking_negotiations(db, booking.id)
    if pending_from(existing, actor.role):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already have a pending proposal for this booking"
        )

    # A new proposal answers any open proposal from the other party
    for negotiation in pending_awaiting(existing, actor.role):
        negotiation.status = "counter_proposed"
        negotiation.responded_at = now

    is_specific = proposal_data.proposed_time_slot == SPECIFIC_TIME_SLOT
    negotiation = ScheduleNegotiation(
        booking_id=booking.id,
        installer_id=booking.installer_id,
        proposed_by=actor.role,
        proposed_date=proposed_date,
        proposed_time_slot=proposal_data.proposed_time_slot,
        proposed_start_time=proposal_data.proposed_start_time if is_specific else None,
        proposed_end_time=proposal_data.proposed_end_time if is_specific else None,
        proposal_message=(proposal_data.proposal_message or "").strip() or None,
        status="pending",
        proposed_at=now
    )

    db.add(negotiation)
    db.commit()
    db.refresh(negotiation)

    logger.info(f"Schedule proposal {negotiation.id} created by {actor.role} {actor.id} for booking {booking.id}")
    NotificationService().notify_schedule_proposed(booking, negotiation)

    return negotiation


@router.get("/bookings/{booking_id}/schedule-negotiations", response_model=List[ScheduleNegotiationResponse])
def get_booking_schedule_negotiations(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """All proposals for a booking, newest first"""
    booking = get_booking_or_404(db, booking_id)
    require_booking_party(actor, booking, allow_admin=True)
    return _booking_negotiations(db, booking.id)


@router.get("/bookings/{booking_id}/active-negotiation", response_model=Optional[ScheduleNegotiationResponse])
def get_active_negotiation(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """The most recent pending proposal for a booking, or null"""
    booking = get_booking_or_404(db, booking_id)
    require_booking_party(actor, booking, allow_admin=True)
    for negotiation in _booking_negotiations(db, booking.id):
        if negotiation.status == "pending":
            return negotiation
    return None


@router.get("/installer/{installer_id}/schedule-negotiations", response_model=List[ScheduleNegotiationResponse])
def get_installer_schedule_negotiations(
    installer_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """All proposals across an installer's bookings, newest first"""
    if not actor.is_admin and not (actor.role == "installer" and actor.id == installer_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return db.query(ScheduleNegotiation).filter(
        ScheduleNegotiation.installer_id == installer_id
    ).order_by(
        ScheduleNegotiation.proposed_at.desc(),
        ScheduleNegotiation.id.desc()
    ).all()


@router.patch("/schedule-negotiations/{negotiation_id}", response_model=ScheduleNegotiationResponse)
def respond_to_schedule_negotiation(
    negotiation_id: int,
    response_data: ScheduleNegotiationRespond,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    Accept or reject a pending proposal.

    Only the party that did not make the proposal may answer it. Accepting
    also schedules the booking in the same transaction.
    """
    negotiation = _get_negotiation_or_404(db, negotiation_id)
    booking = negotiation.booking
    require_booking_party(actor, booking)

    if actor.role != expected_responder(negotiation.proposed_by):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot respond to your own proposal"
        )
    if booking.status in CLOSED_BOOKING_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot schedule a {booking.status} booking"
        )
    if negotiation.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"This proposal is already {negotiation.status}"
        )

    response_message = (response_data.response_message or "").strip() or None
    if response_data.status == "rejected" and not response_message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide a reason for declining"
        )

    negotiation.status = response_data.status
    negotiation.response_message = response_message
    negotiation.responded_at = datetime.utcnow()

    if response_data.status == "accepted":
        booking.scheduled_date = negotiation.proposed_date
        if negotiation.proposed_time_slot == SPECIFIC_TIME_SLOT:
            booking.scheduled_time_slot = f"{negotiation.proposed_start_time}-{negotiation.proposed_end_time}"
        else:
            booking.scheduled_time_slot = negotiation.proposed_time_slot
        booking.status = "scheduled"

    db.commit()
    db.refresh(negotiation)

    logger.info(f"Schedule proposal {negotiation.id} {negotiation.status} by {actor.role} {actor.id}")

    notifications = NotificationService()
    if negotiation.status == "accepted":
        notifications.notify_schedule_confirmed(booking, negotiation)
    else:
        notifications.notify_schedule_declined(booking, negotiation)

    return negotiation


@router.delete("/schedule-negotiations/{negotiation_id}")
def delete_schedule_negotiation(
    negotiation_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete a proposal message. The booking's latest proposal is protected."""
    negotiation = _get_negotiation_or_404(db, negotiation_id)
    booking = negotiation.booking
    require_booking_party(actor, booking)

    if not can_delete(negotiation, _booking_negotiations(db, booking.id)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The current schedule proposal cannot be deleted"
        )

    db.delete(negotiation)
    db.commit()

    logger.info(f"Schedule proposal {negotiation_id} deleted by {actor.role} {actor.id}")
    return {"message": "Schedule negotiation deleted successfully"}
