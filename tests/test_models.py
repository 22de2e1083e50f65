"""
Unit tests for models
"""
import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError
from app.models.models import (
    User,
    Booking,
    ScheduleNegotiation,
    InstallerPhotoProgress,
    SupportTicket,
    TicketMessage,
)


@pytest.mark.unit
class TestUserModel:
    """Tests for User model"""

    def test_create_user(self, db):
        user = User(email="test@example.ie", full_name="Test User")
        db.add(user)
        db.commit()
        db.refresh(user)

        assert user.id is not None
        assert user.is_admin == 0
        assert user.created_at is not None

    def test_user_email_unique(self, db, test_customer):
        """Test that user email must be unique"""
        db.add(User(email=test_customer.email, full_name="Duplicate"))

        with pytest.raises(IntegrityError):
            db.commit()


@pytest.mark.unit
class TestBookingModel:
    """Tests for Booking model"""

    def test_defaults(self, db, test_customer):
        booking = Booking(
            customer_id=test_customer.id,
            contact_name="Aoife Murphy",
            contact_email="aoife@example.ie"
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)

        assert booking.status == "pending"
        assert booking.tv_count == 1
        assert booking.installer_id is None
        assert booking.photo_quality_stars is None

    def test_delete_cascades_to_negotiations_and_photos(self, db, test_booking):
        db.add(ScheduleNegotiation(
            booking_id=test_booking.id,
            installer_id=test_booking.installer_id,
            proposed_by="customer",
            proposed_date=datetime.utcnow() + timedelta(days=2),
            proposed_time_slot="09:00"
        ))
        db.add(InstallerPhotoProgress(
            booking_id=test_booking.id,
            installer_id=test_booking.installer_id,
            tv_index=0
        ))
        db.commit()

        db.delete(test_booking)
        db.commit()

        assert db.query(ScheduleNegotiation).count() == 0
        assert db.query(InstallerPhotoProgress).count() == 0


@pytest.mark.unit
class TestScheduleNegotiationModel:
    """Tests for ScheduleNegotiation model"""

    def test_defaults(self, db, test_booking):
        negotiation = ScheduleNegotiation(
            booking_id=test_booking.id,
            installer_id=test_booking.installer_id,
            proposed_by="installer",
            proposed_date=datetime.utcnow() + timedelta(days=2),
            proposed_time_slot="15:00"
        )
        db.add(negotiation)
        db.commit()
        db.refresh(negotiation)

        assert negotiation.status == "pending"
        assert negotiation.proposed_at is not None
        assert negotiation.responded_at is None
        assert negotiation.booking.id == test_booking.id


@pytest.mark.unit
class TestPhotoProgressModel:
    """Tests for InstallerPhotoProgress model"""

    def test_one_row_per_tv(self, db, test_booking):
        for _ in range(2):
            db.add(InstallerPhotoProgress(
                booking_id=test_booking.id,
                installer_id=test_booking.installer_id,
                tv_index=1
            ))

        with pytest.raises(IntegrityError):
            db.commit()


@pytest.mark.unit
class TestSupportTicketModel:
    """Tests for SupportTicket model"""

    def test_defaults(self, db, test_customer):
        ticket = SupportTicket(user_id=test_customer.id, subject="Hi", message="Question")
        db.add(ticket)
        db.commit()
        db.refresh(ticket)

        assert ticket.status == "open"
        assert ticket.priority == "medium"
        assert ticket.category == "general"
        assert ticket.closed_at is None
        assert ticket.requester.email == test_customer.email

    def test_messages_ordered_oldest_first(self, db, test_ticket, test_admin_user):
        now = datetime.utcnow()
        db.add(TicketMessage(ticket_id=test_ticket.id, user_id=test_admin_user.id, message="second",
                             is_admin_reply=True, created_at=now))
        db.add(TicketMessage(ticket_id=test_ticket.id, user_id=test_ticket.user_id, message="first",
                             created_at=now - timedelta(minutes=5)))
        db.commit()
        db.refresh(test_ticket)

        assert [m.message for m in test_ticket.messages] == ["first", "second"]
        assert test_ticket.messages[0].is_admin_reply is False
