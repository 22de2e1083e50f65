from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


# ==================== PARTIES ====================

class User(Base):
    """Customers and platform admins"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String)
    phone = Column(String, nullable=True)
    is_admin = Column(Integer, default=0)  # 1 for tradesbook back-office admin
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    bookings = relationship("Booking", back_populates="customer")
    support_tickets = relationship("SupportTicket", back_populates="requester")


class Installer(Base):
    __tablename__ = "installers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    business_name = Column(String, nullable=False)
    contact_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    bookings = relationship("Booking", back_populates="installer")


# ==================== BOOKINGS ====================

class Booking(Base):
    """A TV installation job, possibly covering several TVs"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    installer_id = Column(Integer, ForeignKey("installers.id"), nullable=True, index=True)  # NULL until a lead is purchased

    contact_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    tv_count = Column(Integer, nullable=False, default=1)

    status = Column(String, default="pending", index=True)  # pending, assigned, scheduled, in_progress, completed, cancelled
    scheduled_date = Column(DateTime, nullable=True)
    scheduled_time_slot = Column(String, nullable=True)

    # Completion photos
    photos_submitted_at = Column(DateTime, nullable=True)
    photo_quality_stars = Column(Integer, nullable=True)  # 0-3

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("User", back_populates="bookings")
    installer = relationship("Installer", back_populates="bookings")
    schedule_negotiations = relationship("ScheduleNegotiation", back_populates="booking", cascade="all, delete-orphan")
    photo_progress = relationship("InstallerPhotoProgress", back_populates="booking", cascade="all, delete-orphan")


class ScheduleNegotiation(Base):
    """
    A proposed installation date/time sent by the customer or the installer.
    Only status, response_message and responded_at change after creation;
    a counter proposal is a new row.
    """
    __tablename__ = "schedule_negotiations"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    installer_id = Column(Integer, ForeignKey("installers.id"), nullable=False, index=True)

    proposed_by = Column(String, nullable=False)  # customer, installer
    proposed_date = Column(DateTime, nullable=False)
    proposed_time_slot = Column(String, nullable=False)  # 09:00 .. 17:00 or "specific-time"
    proposed_start_time = Column(String, nullable=True)  # HH:MM, only for specific-time
    proposed_end_time = Column(String, nullable=True)

    status = Column(String, default="pending", index=True)  # pending, accepted, rejected, counter_proposed
    proposal_message = Column(Text, nullable=True)
    response_message = Column(Text, nullable=True)

    proposed_at = Column(DateTime, default=datetime.utcnow, index=True)
    responded_at = Column(DateTime, nullable=True)

    # Relationships
    booking = relationship("Booking", back_populates="schedule_negotiations")
    installer = relationship("Installer")


class InstallerPhotoProgress(Base):
    """Before/after photo state for one TV of a booking"""
    __tablename__ = "installer_photo_progress"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    installer_id = Column(Integer, ForeignKey("installers.id"), nullable=False)
    tv_index = Column(Integer, nullable=False)  # 0-based

    before_photo_url = Column(Text, nullable=True)  # URL or data: URL
    after_photo_url = Column(Text, nullable=True)
    before_photo_source = Column(String, nullable=True)  # camera, upload
    after_photo_source = Column(String, nullable=True)  # camera only
    is_completed = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    booking = relationship("Booking", back_populates="photo_progress")

    __table_args__ = (
        UniqueConstraint('booking_id', 'tv_index', name='uq_photo_progress_booking_tv'),
    )


# ==================== SUPPORT ====================

class SupportTicket(Base):
    """Support tickets raised by customers, answered by admins"""
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String, default="general")  # general, technical, billing, booking, installer, complaint, feature
    priority = Column(String, default="medium")  # low, medium, high, urgent
    status = Column(String, default="open", index=True)  # open, in_progress, closed
    assigned_to = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    closed_at = Column(DateTime, nullable=True)

    # Relationships
    requester = relationship("User", back_populates="support_tickets")
    messages = relationship(
        "TicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketMessage.created_at",
    )


class TicketMessage(Base):
    __tablename__ = "ticket_messages"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)
    is_admin_reply = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    ticket = relationship("SupportTicket", back_populates="messages")
    author = relationship("User")
