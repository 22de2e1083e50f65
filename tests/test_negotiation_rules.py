"""
Unit tests for schedule negotiation rules
"""
import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace

from app.utils.negotiation_rules import (
    can_delete,
    can_respond,
    expected_responder,
    group_by_installer,
    latest_proposal,
    pending_awaiting,
    pending_from,
    sort_newest_first,
    time_slot_label,
)

BASE = datetime(2026, 3, 1, 9, 0)


def proposal(id, installer_id=1, proposed_by="customer", status="pending", minutes=0, slot="11:00", **extra):
    values = dict(
        id=id,
        installer_id=installer_id,
        proposed_by=proposed_by,
        status=status,
        proposed_at=BASE + timedelta(minutes=minutes),
        proposed_time_slot=slot,
        proposed_start_time=None,
        proposed_end_time=None,
    )
    values.update(extra)
    return SimpleNamespace(**values)


@pytest.mark.unit
class TestNegotiationRules:
    """Tests for responder, latest and pending rules"""

    def test_expected_responder(self):
        assert expected_responder("customer") == "installer"
        assert expected_responder("installer") == "customer"
        with pytest.raises(ValueError):
            expected_responder("admin")

    def test_can_respond(self):
        p = proposal(1, proposed_by="customer")
        assert can_respond(p, "installer")
        assert not can_respond(p, "customer")
        assert not can_respond(proposal(2, status="accepted"), "installer")

    def test_latest_proposal(self):
        proposals = [proposal(1, minutes=0), proposal(3, minutes=10), proposal(2, minutes=5)]
        assert latest_proposal(proposals).id == 3
        assert latest_proposal([]) is None

    def test_latest_breaks_ties_by_id(self):
        proposals = [proposal(4, minutes=1), proposal(5, minutes=1)]
        assert latest_proposal(proposals).id == 5

    def test_sort_newest_first(self):
        proposals = [proposal(1, minutes=0), proposal(2, minutes=20), proposal(3, minutes=10)]
        assert [p.id for p in sort_newest_first(proposals)] == [2, 3, 1]

    def test_can_delete_uses_whole_booking(self):
        # Installer 1's newest proposal is not the booking's newest
        proposals = [
            proposal(1, installer_id=1, minutes=0),
            proposal(2, installer_id=1, minutes=5),
            proposal(3, installer_id=2, minutes=10),
        ]
        assert can_delete(proposals[1], proposals)
        assert can_delete(proposals[0], proposals)
        assert not can_delete(proposals[2], proposals)

    def test_pending_filters(self):
        proposals = [
            proposal(1, proposed_by="customer", minutes=0),
            proposal(2, proposed_by="installer", minutes=5),
            proposal(3, proposed_by="installer", status="rejected", minutes=6),
        ]
        assert [p.id for p in pending_awaiting(proposals, "customer")] == [2]
        assert [p.id for p in pending_awaiting(proposals, "installer")] == [1]
        assert pending_from(proposals, "customer").id == 1
        assert pending_from([proposals[2]], "installer") is None

    def test_time_slot_label(self):
        assert time_slot_label(proposal(1, slot="13:00")) == "1:00 PM - 3:00 PM"
        custom = proposal(2, slot="specific-time", proposed_start_time="10:30", proposed_end_time="12:00")
        assert time_slot_label(custom) == "10:30 - 12:00"


@pytest.mark.unit
class TestProposalGrouping:
    """Tests for per-installer grouping"""

    def test_groups_ordered_by_newest(self):
        proposals = [
            proposal(1, installer_id=7, minutes=0),
            proposal(2, installer_id=8, minutes=5),
            proposal(3, installer_id=7, minutes=10),
        ]
        groups = group_by_installer(proposals)
        assert [g.installer_id for g in groups] == [7, 8]
        assert [p.id for p in groups[0].proposals] == [3, 1]

    def test_visible_split(self):
        proposals = [proposal(i, minutes=i) for i in range(1, 6)]
        group = group_by_installer(proposals, visible=2)[0]
        assert [p.id for p in group.shown] == [5, 4]
        assert [p.id for p in group.hidden] == [3, 2, 1]
        assert group.has_more

    def test_small_group_has_no_more(self):
        group = group_by_installer([proposal(1)], visible=2)[0]
        assert not group.has_more
        assert group.hidden == []

    def test_empty(self):
        assert group_by_installer([]) == []
