from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import Actor, get_current_actor, require_booking_party
from app.models.models import Booking
from app.schemas.schemas import BookingResponse

router = APIRouter()


def get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )
    return booking


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Get a booking (customer, assigned installer or admin)"""
    booking = get_booking_or_404(db, booking_id)
    require_booking_party(actor, booking, allow_admin=True)
    return booking
