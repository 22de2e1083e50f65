from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from datetime import datetime
import logging

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.models.models import SupportTicket, TicketMessage
from app.schemas.schemas import (
    SupportTicketCreate,
    SupportTicketResponse,
    TicketMessageCreate,
    TicketMessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ticket_or_404(db: Session, ticket_id: int) -> SupportTicket:
    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Support ticket not found"
        )
    return ticket


def with_requester(ticket: SupportTicket) -> SupportTicket:
    """Attach requester name/email for responses"""
    if ticket.requester:
        ticket.user_email = ticket.requester.email
        ticket.user_name = ticket.requester.full_name
    return ticket


def with_author(message: TicketMessage) -> TicketMessage:
    if message.author:
        message.user_email = message.author.email
        message.user_name = message.author.full_name
    return message


def set_ticket_status(ticket: SupportTicket, new_status: str):
    """Change status; closing stamps closed_at, reopening clears it"""
    ticket.status = new_status
    ticket.updated_at = datetime.utcnow()
    if new_status == "closed":
        ticket.closed_at = datetime.utcnow()
    else:
        ticket.closed_at = None


def _require_user(actor: Actor):
    if actor.role == "installer":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Installers raise support requests through the installer helpdesk"
        )


def _get_own_ticket(db: Session, ticket_id: int, actor: Actor) -> SupportTicket:
    ticket = get_ticket_or_404(db, ticket_id)
    if ticket.user_id != actor.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Support ticket not found"
        )
    return ticket


@router.post("/tickets", response_model=SupportTicketResponse, status_code=status.HTTP_201_CREATED)
def create_support_ticket(
    ticket_data: SupportTicketCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Open a new support ticket"""
    _require_user(actor)

    ticket = SupportTicket(
        user_id=actor.id,
        subject=ticket_data.subject.strip(),
        message=ticket_data.message.strip(),
        category=ticket_data.category,
        priority=ticket_data.priority,
        status="open"
    )

    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    logger.info(f"Support ticket {ticket.id} opened by user {actor.id}")
    return with_requester(ticket)


@router.get("/tickets", response_model=List[SupportTicketResponse])
def get_my_support_tickets(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Support tickets raised by the current user, newest first"""
    _require_user(actor)
    tickets = db.query(SupportTicket).filter(
        SupportTicket.user_id == actor.id
    ).order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()
    return [with_requester(t) for t in tickets]


@router.get("/tickets/{ticket_id}", response_model=SupportTicketResponse)
def get_my_support_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    _require_user(actor)
    return with_requester(_get_own_ticket(db, ticket_id, actor))


@router.get("/tickets/{ticket_id}/messages", response_model=List[TicketMessageResponse])
def get_my_ticket_messages(
    ticket_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Message thread of one of the user's tickets, oldest first"""
    _require_user(actor)
    ticket = _get_own_ticket(db, ticket_id, actor)
    return [with_author(m) for m in ticket.messages]


@router.post("/tickets/{ticket_id}/messages", response_model=TicketMessageResponse, status_code=status.HTTP_201_CREATED)
def add_ticket_message(
    ticket_id: int,
    message_data: TicketMessageCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Follow-up from the requester on an open ticket"""
    _require_user(actor)
    ticket = _get_own_ticket(db, ticket_id, actor)
    if ticket.status == "closed":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This ticket is closed. Please open a new ticket."
        )

    message = TicketMessage(
        ticket_id=ticket.id,
        user_id=actor.id,
        message=message_data.message.strip(),
        is_admin_reply=False
    )
    ticket.updated_at = datetime.utcnow()
    db.add(message)
    db.commit()
    db.refresh(message)
    return with_author(message)
