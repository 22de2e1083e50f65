"""
Rules for schedule negotiation between a customer and an installer.

Each proposal is authored by one party and answered by the other. The most
recently created proposal of a booking is its "current" schedule and can
never be deleted. Latest-ness is always decided over the whole booking, not
over a per-installer slice of it.

All helpers accept any objects exposing the ScheduleNegotiation attributes
(ORM rows on the server, parsed response models in the client).
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

PROPOSER_ROLES = ("customer", "installer")

# Two-hour installation windows, keyed by start time
TIME_SLOTS = [
    ("09:00", "9:00 AM - 11:00 AM"),
    ("11:00", "11:00 AM - 1:00 PM"),
    ("13:00", "1:00 PM - 3:00 PM"),
    ("15:00", "3:00 PM - 5:00 PM"),
    ("17:00", "5:00 PM - 7:00 PM"),
]
TIME_SLOT_VALUES = [value for value, _ in TIME_SLOTS]
SPECIFIC_TIME_SLOT = "specific-time"


def time_slot_label(proposal) -> str:
    """Human readable time window of a proposal"""
    if proposal.proposed_time_slot == SPECIFIC_TIME_SLOT:
        return f"{proposal.proposed_start_time} - {proposal.proposed_end_time}"
    return dict(TIME_SLOTS).get(proposal.proposed_time_slot, proposal.proposed_time_slot)


def _sort_key(proposal):
    return (proposal.proposed_at, proposal.id)


def sort_newest_first(proposals: Iterable) -> List:
    return sorted(proposals, key=_sort_key, reverse=True)


def latest_proposal(proposals: Iterable):
    """The most recently created proposal, or None for an empty booking"""
    proposals = list(proposals)
    if not proposals:
        return None
    return max(proposals, key=_sort_key)


def expected_responder(proposed_by: str) -> str:
    """The role allowed to answer a proposal made by `proposed_by`"""
    if proposed_by not in PROPOSER_ROLES:
        raise ValueError(f"Unknown proposer role: {proposed_by}")
    return "installer" if proposed_by == "customer" else "customer"


def can_respond(proposal, role: str) -> bool:
    return proposal.status == "pending" and role == expected_responder(proposal.proposed_by)


def can_delete(proposal, proposals: Sequence) -> bool:
    """Every proposal except the booking-wide latest one may be deleted"""
    latest = latest_proposal(proposals)
    return latest is not None and latest.id != proposal.id


def pending_awaiting(proposals: Iterable, role: str) -> List:
    """Pending proposals that `role` is expected to answer, newest first"""
    return [
        p for p in sort_newest_first(proposals)
        if p.status == "pending" and expected_responder(p.proposed_by) == role
    ]


def pending_from(proposals: Iterable, proposer: str) -> Optional[object]:
    """The open proposal already sent by `proposer`, if any"""
    for p in sort_newest_first(proposals):
        if p.status == "pending" and p.proposed_by == proposer:
            return p
    return None


@dataclass
class ProposalGroup:
    """Proposals for one installer, newest first, split for display"""
    installer_id: int
    proposals: List = field(default_factory=list)
    visible: int = 2

    @property
    def shown(self) -> List:
        return self.proposals[:self.visible]

    @property
    def hidden(self) -> List:
        return self.proposals[self.visible:]

    @property
    def has_more(self) -> bool:
        return len(self.proposals) > self.visible


def group_by_installer(proposals: Iterable, visible: int = 2) -> List[ProposalGroup]:
    """
    Group proposals by installer. Groups are ordered by their newest
    proposal; within a group only `visible` are shown by default.
    """
    groups = {}
    for p in sort_newest_first(proposals):
        group = groups.get(p.installer_id)
        if group is None:
            group = groups[p.installer_id] = ProposalGroup(installer_id=p.installer_id, visible=visible)
        group.proposals.append(p)
    return list(groups.values())
