"""
Admin Support Ticket API Endpoints

Handles:
- Ticket listing with status / priority / free-text filters
- Admin replies, optionally changing status in the same operation
- Standalone status and assignment changes
- Ticket deletion (messages are deleted with the ticket)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.v1.endpoints.support import get_ticket_or_404, set_ticket_status, with_author, with_requester
from app.core.database import get_db
from app.core.security import Actor, get_current_admin
from app.models.models import SupportTicket, TicketMessage, User
from app.schemas.schemas import (
    SupportStats,
    SupportTicketResponse,
    TicketMessageResponse,
    TicketPriority,
    TicketReply,
    TicketReplyResult,
    TicketStatus,
    TicketStatusUpdate,
)
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tickets", response_model=List[SupportTicketResponse])
def get_all_support_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority_filter: Optional[TicketPriority] = Query(None, alias="priority"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """All support tickets, newest first"""
    query = db.query(SupportTicket).outerjoin(User, SupportTicket.user_id == User.id)

    if status_filter:
        query = query.filter(SupportTicket.status == status_filter)
    if priority_filter:
        query = query.filter(SupportTicket.priority == priority_filter)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                SupportTicket.subject.ilike(search_term),
                SupportTicket.message.ilike(search_term),
                User.email.ilike(search_term)
            )
        )

    tickets = query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()
    return [with_requester(t) for t in tickets]


@router.get("/stats", response_model=SupportStats)
def get_support_stats(
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Ticket counts by status"""
    counts = dict(
        db.query(SupportTicket.status, func.count(SupportTicket.id)).group_by(SupportTicket.status).all()
    )
    return {
        "total": sum(counts.values()),
        "open": counts.get("open", 0),
        "in_progress": counts.get("in_progress", 0),
        "closed": counts.get("closed", 0)
    }


@router.get("/tickets/{ticket_id}", response_model=SupportTicketResponse)
def get_support_ticket_details(
    ticket_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    return with_requester(get_ticket_or_404(db, ticket_id))


@router.get("/tickets/{ticket_id}/messages", response_model=List[TicketMessageResponse])
def get_support_ticket_messages(
    ticket_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Message thread of a ticket, oldest first"""
    ticket = get_ticket_or_404(db, ticket_id)
    return [with_author(m) for m in ticket.messages]


@router.post("/tickets/{ticket_id}/reply", response_model=TicketReplyResult)
def reply_to_support_ticket(
    ticket_id: int,
    reply_data: TicketReply,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """
    Append an admin reply. A status sent along with the reply is applied in
    the same commit when it differs from the current one.
    """
    ticket = get_ticket_or_404(db, ticket_id)

    message = TicketMessage(
        ticket_id=ticket.id,
        user_id=admin.id,
        message=reply_data.message.strip(),
        is_admin_reply=True
    )
    db.add(message)

    if reply_data.status and reply_data.status != ticket.status:
        logger.info(f"Ticket {ticket.id} status {ticket.status} -> {reply_data.status} with reply")
        set_ticket_status(ticket, reply_data.status)

    db.commit()
    db.refresh(ticket)
    db.refresh(message)

    logger.info(f"Admin {admin.id} replied to ticket {ticket.id}")
    NotificationService().notify_ticket_reply(ticket, message.message)

    return {
        "ticket": with_requester(ticket),
        "message": with_author(message)
    }


@router.put("/tickets/{ticket_id}/status", response_model=SupportTicketResponse)
def update_support_ticket_status(
    ticket_id: int,
    status_data: TicketStatusUpdate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Change status and/or assignment without a message"""
    ticket = get_ticket_or_404(db, ticket_id)

    status_changed = status_data.status != ticket.status
    if status_changed:
        set_ticket_status(ticket, status_data.status)
    if status_data.assigned_to is not None:
        ticket.assigned_to = status_data.assigned_to or None

    db.commit()
    db.refresh(ticket)

    logger.info(f"Admin {admin.id} set ticket {ticket.id} status={ticket.status} assigned_to={ticket.assigned_to}")
    if status_changed:
        NotificationService().notify_ticket_status(ticket)

    return with_requester(ticket)


@router.delete("/tickets/{ticket_id}")
def delete_support_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Permanently delete a ticket and its messages"""
    ticket = get_ticket_or_404(db, ticket_id)
    message_count = len(ticket.messages)

    db.delete(ticket)
    db.commit()

    logger.info(f"Admin {admin.id} deleted ticket {ticket_id} with {message_count} messages")
    return {"message": "Support ticket deleted successfully"}
