from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, List, Literal
import re

from app.utils.negotiation_rules import TIME_SLOT_VALUES, SPECIFIC_TIME_SLOT


ProposerRole = Literal["customer", "installer"]
NegotiationStatus = Literal["pending", "accepted", "rejected", "counter_proposed"]
PhotoSource = Literal["camera", "upload"]
WorkflowStage = Literal["before", "after", "both"]
TicketStatus = Literal["open", "in_progress", "closed"]
TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketCategory = Literal["general", "technical", "billing", "booking", "installer", "complaint", "feature"]

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _photo_or_none(v: Optional[str]) -> Optional[str]:
    # An empty photo string is the same as no photo
    if v is not None and not v.strip():
        return None
    return v


# Auth schemas
class TokenData(BaseModel):
    actor_id: int
    role: str


# Party schemas
class UserResponse(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    is_admin: int = 0

    class Config:
        from_attributes = True


class InstallerResponse(BaseModel):
    id: int
    email: EmailStr
    business_name: str
    contact_name: Optional[str] = None

    class Config:
        from_attributes = True


# Booking schemas
class BookingResponse(BaseModel):
    id: int
    customer_id: int
    installer_id: Optional[int] = None
    contact_name: str
    contact_email: str
    address: Optional[str] = None
    tv_count: int
    status: str
    scheduled_date: Optional[datetime] = None
    scheduled_time_slot: Optional[str] = None
    photos_submitted_at: Optional[datetime] = None
    photo_quality_stars: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Schedule negotiation schemas
class ScheduleNegotiationCreate(BaseModel):
    booking_id: int
    proposed_date: datetime
    proposed_time_slot: str
    proposed_start_time: Optional[str] = None
    proposed_end_time: Optional[str] = None
    proposal_message: Optional[str] = None

    @field_validator("proposed_time_slot")
    @classmethod
    def check_time_slot(cls, v: str) -> str:
        if v not in TIME_SLOT_VALUES and v != SPECIFIC_TIME_SLOT:
            raise ValueError(f"proposed_time_slot must be one of {', '.join(TIME_SLOT_VALUES)} or {SPECIFIC_TIME_SLOT}")
        return v

    @model_validator(mode="after")
    def check_specific_time(self):
        if self.proposed_time_slot != SPECIFIC_TIME_SLOT:
            return self
        start, end = self.proposed_start_time, self.proposed_end_time
        if not start or not end:
            raise ValueError("proposed_start_time and proposed_end_time are required for a custom time range")
        if not _HHMM.match(start) or not _HHMM.match(end):
            raise ValueError("Times must be in HH:MM format")
        if start >= end:
            raise ValueError("proposed_start_time must be before proposed_end_time")
        return self


class ScheduleNegotiationRespond(BaseModel):
    """Accept or reject a pending proposal"""
    status: Literal["accepted", "rejected"]
    response_message: Optional[str] = None


class ScheduleNegotiationResponse(BaseModel):
    id: int
    booking_id: int
    installer_id: int
    proposed_by: ProposerRole
    proposed_date: datetime
    proposed_time_slot: str
    proposed_start_time: Optional[str] = None
    proposed_end_time: Optional[str] = None
    status: NegotiationStatus
    proposal_message: Optional[str] = None
    response_message: Optional[str] = None
    proposed_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Photo progress schemas
class PhotoProgressSave(BaseModel):
    """
    Upsert for one TV slot. Fields left out are kept as stored;
    fields sent as null clear the stored photo.
    """
    booking_id: int
    tv_index: int = Field(ge=0)
    before_photo_url: Optional[str] = None
    after_photo_url: Optional[str] = None
    before_photo_source: Optional[PhotoSource] = None
    after_photo_source: Optional[PhotoSource] = None

    @field_validator("before_photo_url", "after_photo_url")
    @classmethod
    def empty_url_clears(cls, v: Optional[str]) -> Optional[str]:
        return _photo_or_none(v)


class PhotoProgressResponse(BaseModel):
    id: int
    booking_id: int
    installer_id: int
    tv_index: int
    before_photo_url: Optional[str] = None
    after_photo_url: Optional[str] = None
    before_photo_source: Optional[str] = None
    after_photo_source: Optional[str] = None
    is_completed: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PhotoSummary(BaseModel):
    before_count: int
    after_count: int
    total_photos_completed: int
    total_photos_needed: int
    completion_rate: float
    quality_stars: int


class PhotoProgressList(BaseModel):
    booking_id: int
    tv_count: int
    progress: List[PhotoProgressResponse]
    summary: PhotoSummary


class PhotoProgressSaveResult(BaseModel):
    progress: PhotoProgressResponse
    summary: PhotoSummary


class BeforeAfterPhoto(BaseModel):
    tv_index: int = Field(ge=0)
    before_photo: Optional[str] = None
    after_photo: Optional[str] = None
    before_source: PhotoSource = "camera"
    after_source: PhotoSource = "camera"

    @field_validator("before_photo", "after_photo")
    @classmethod
    def empty_photo_is_missing(cls, v: Optional[str]) -> Optional[str]:
        return _photo_or_none(v)


class BeforeAfterPhotoUpload(BaseModel):
    booking_id: int
    workflow_stage: WorkflowStage = "both"
    photos: List[BeforeAfterPhoto]


class BeforeAfterPhotoUploadResult(BaseModel):
    booking_id: int
    photos_submitted_at: datetime
    progress: List[PhotoProgressResponse]
    summary: PhotoSummary


# Support ticket schemas
class SupportTicketCreate(BaseModel):
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    category: TicketCategory = "general"
    priority: TicketPriority = "medium"

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _required_text(v)


class SupportTicketResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    subject: str
    message: str
    category: str
    priority: str
    status: str
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None
    user_email: Optional[str] = None  # For admin view
    user_name: Optional[str] = None

    class Config:
        from_attributes = True


class TicketMessageCreate(BaseModel):
    message: str = Field(min_length=1)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _required_text(v)


class TicketMessageResponse(BaseModel):
    id: int
    ticket_id: int
    user_id: Optional[int] = None
    message: str
    is_admin_reply: bool
    created_at: datetime
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    class Config:
        from_attributes = True


class TicketReply(BaseModel):
    """Admin reply, optionally changing status in the same operation"""
    message: str = Field(min_length=1)
    status: Optional[TicketStatus] = None

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _required_text(v)


class TicketReplyResult(BaseModel):
    ticket: SupportTicketResponse
    message: TicketMessageResponse


class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    assigned_to: Optional[str] = None


class SupportStats(BaseModel):
    total: int
    open: int
    in_progress: int
    closed: int
