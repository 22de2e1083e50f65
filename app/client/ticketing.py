"""
Admin ticket desk: filter, read and answer support tickets
"""
import logging
from typing import Dict, Iterable, List, Optional

from app.client.booking_client import BookingServiceClient
from app.client.exceptions import ValidationFailed
from app.schemas.schemas import SupportTicketResponse, TicketMessageResponse, TicketReplyResult

logger = logging.getLogger(__name__)


def filter_tickets(
    tickets: Iterable[SupportTicketResponse],
    status: str = "all",
    priority: str = "all",
    search: str = ""
) -> List[SupportTicketResponse]:
    """Status/priority match exactly ("all" matches anything); search is case-insensitive"""
    term = (search or "").strip().lower()
    result = []
    for ticket in tickets:
        if status != "all" and ticket.status != status:
            continue
        if priority != "all" and ticket.priority != priority:
            continue
        if term:
            haystack = " ".join(
                value for value in (ticket.subject, ticket.message, ticket.user_email) if value
            ).lower()
            if term not in haystack:
                continue
        result.append(ticket)
    return result


class TicketDesk:
    def __init__(self, client: BookingServiceClient):
        self.client = client
        self.tickets: List[SupportTicketResponse] = []
        self._messages: Dict[int, List[TicketMessageResponse]] = {}

    def refresh(self) -> List[SupportTicketResponse]:
        self.tickets = self.client.list_tickets()
        return self.tickets

    def filtered(self, status: str = "all", priority: str = "all", search: str = "") -> List[SupportTicketResponse]:
        return filter_tickets(self.tickets, status, priority, search)

    def get(self, ticket_id: int) -> Optional[SupportTicketResponse]:
        return next((t for t in self.tickets if t.id == ticket_id), None)

    def messages(self, ticket_id: int) -> List[TicketMessageResponse]:
        self._messages[ticket_id] = self.client.ticket_messages(ticket_id)
        return self._messages[ticket_id]

    def _replace(self, ticket: SupportTicketResponse):
        self.tickets = [ticket if t.id == ticket.id else t for t in self.tickets]

    def reply(self, ticket_id: int, message: str, status: Optional[str] = None) -> TicketReplyResult:
        """Post an admin reply; the status is sent only when it changes"""
        if not message or not message.strip():
            raise ValidationFailed("Reply message cannot be empty")

        current = self.get(ticket_id)
        if status is not None and current is not None and current.status == status:
            status = None

        result = self.client.reply_to_ticket(ticket_id, message.strip(), status)
        self._replace(result.ticket)
        self._messages.setdefault(ticket_id, []).append(result.message)
        logger.info(f"Replied to ticket {ticket_id} (status={result.ticket.status})")
        return result

    def set_status(self, ticket_id: int, status: str, assigned_to: Optional[str] = None) -> SupportTicketResponse:
        ticket = self.client.set_ticket_status(ticket_id, status, assigned_to)
        self._replace(ticket)
        return ticket

    def delete(self, ticket_id: int, confirm: bool = False) -> bool:
        """Delete a ticket and its messages; nothing is sent unless confirmed"""
        if not confirm:
            return False
        self.client.delete_ticket(ticket_id)
        self.tickets = [t for t in self.tickets if t.id != ticket_id]
        self._messages.pop(ticket_id, None)
        logger.info(f"Deleted ticket {ticket_id}")
        return True
