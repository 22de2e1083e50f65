"""
Schedule negotiation workflow for one booking, seen from one party.

The workflow never reconciles local state: after every mutation it
re-fetches the booking's proposals, so the server's order is authoritative.
"""
import logging
from datetime import datetime
from typing import List, Optional

from app.client.booking_client import BookingServiceClient
from app.client.exceptions import NotAuthorized, ValidationFailed
from app.core.config import settings
from app.schemas.schemas import BookingResponse, ScheduleNegotiationResponse
from app.utils.negotiation_rules import (
    PROPOSER_ROLES,
    ProposalGroup,
    can_delete,
    expected_responder,
    group_by_installer,
    latest_proposal,
    pending_awaiting,
    pending_from,
)

logger = logging.getLogger(__name__)

OUTCOMES = {"accept": "accepted", "reject": "rejected"}


class NegotiationWorkflow:
    def __init__(
        self,
        client: BookingServiceClient,
        booking_id: int,
        role: str,
        visible_per_group: int = settings.NEGOTIATIONS_VISIBLE_PER_GROUP
    ):
        if role not in PROPOSER_ROLES:
            raise ValueError(f"role must be one of {PROPOSER_ROLES}")
        self.client = client
        self.booking_id = booking_id
        self.role = role
        self.visible_per_group = visible_per_group
        self.proposals: List[ScheduleNegotiationResponse] = []
        self.booking: Optional[BookingResponse] = None

    def refresh(self) -> List[ScheduleNegotiationResponse]:
        self.proposals = self.client.list_proposals(self.booking_id)
        return self.proposals

    def list_proposals(self) -> List[ScheduleNegotiationResponse]:
        """Proposals newest first; an empty list is a normal state"""
        return self.refresh()

    def refresh_booking(self) -> BookingResponse:
        self.booking = self.client.get_booking(self.booking_id)
        return self.booking

    @property
    def latest(self) -> Optional[ScheduleNegotiationResponse]:
        return latest_proposal(self.proposals)

    def pending_for_me(self) -> List[ScheduleNegotiationResponse]:
        return pending_awaiting(self.proposals, self.role)

    def has_pending_proposal(self) -> bool:
        return pending_from(self.proposals, self.role) is not None

    def can_respond(self, proposal: ScheduleNegotiationResponse) -> bool:
        return proposal.status == "pending" and expected_responder(proposal.proposed_by) == self.role

    def can_delete(self, proposal: ScheduleNegotiationResponse) -> bool:
        return can_delete(proposal, self.proposals)

    def groups(self) -> List[ProposalGroup]:
        return group_by_installer(self.proposals, self.visible_per_group)

    def _find(self, proposal_id: int) -> Optional[ScheduleNegotiationResponse]:
        for proposal in self.proposals:
            if proposal.id == proposal_id:
                return proposal
        return None

    # ==================== MUTATIONS ====================

    def propose(
        self,
        proposed_date: datetime,
        time_slot: str,
        message: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None
    ) -> ScheduleNegotiationResponse:
        proposal = self.client.create_proposal(
            self.booking_id,
            proposed_date,
            time_slot,
            proposal_message=message,
            proposed_start_time=start_time,
            proposed_end_time=end_time
        )
        logger.info(f"{self.role} proposed {proposed_date:%Y-%m-%d} {time_slot} for booking {self.booking_id}")
        self.refresh()
        return proposal

    def respond(self, proposal_id: int, outcome: str, message: Optional[str] = None) -> ScheduleNegotiationResponse:
        """Accept or reject the other party's pending proposal"""
        if outcome not in OUTCOMES:
            raise ValidationFailed(f"outcome must be one of {', '.join(OUTCOMES)}")

        proposal = self._find(proposal_id)
        if proposal is not None and expected_responder(proposal.proposed_by) != self.role:
            raise NotAuthorized("You cannot respond to your own proposal")

        updated = self.client.respond_to_proposal(proposal_id, OUTCOMES[outcome], message)
        logger.info(f"{self.role} {updated.status} proposal {proposal_id}")
        self.refresh()
        # Accepting changes the booking's schedule and status
        self.refresh_booking()
        return updated

    def accept(self, proposal_id: int, message: Optional[str] = None) -> ScheduleNegotiationResponse:
        return self.respond(proposal_id, "accept", message)

    def reject(self, proposal_id: int, message: str) -> ScheduleNegotiationResponse:
        return self.respond(proposal_id, "reject", message)

    def delete(self, proposal_id: int):
        """Delete a stale proposal; the booking's latest one is refused"""
        latest = self.latest
        if latest is not None and latest.id == proposal_id:
            raise ValidationFailed("The current schedule proposal cannot be deleted")
        self.client.delete_proposal(proposal_id)
        logger.info(f"{self.role} deleted proposal {proposal_id}")
        self.refresh()
