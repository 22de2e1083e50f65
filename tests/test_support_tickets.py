"""
Unit tests for support ticket endpoints (requester and admin)
"""
import pytest
from fastapi import status
from app.models.models import SupportTicket, TicketMessage


@pytest.mark.unit
class TestTicketRequester:
    """Tests for customers raising and following up tickets"""

    def test_create_ticket(self, client, test_customer, customer_headers):
        response = client.post(
            "/api/v1/support/tickets",
            headers=customer_headers,
            json={"subject": "Refund", "message": "I was charged twice", "category": "billing"}
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["status"] == "open"
        assert data["priority"] == "medium"
        assert data["category"] == "billing"
        assert data["user_email"] == test_customer.email

    def test_create_ticket_empty_subject(self, client, test_customer, customer_headers):
        response = client.post(
            "/api/v1/support/tickets",
            headers=customer_headers,
            json={"subject": "", "message": "Help"}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.parametrize("field", ["subject", "message"])
    def test_create_ticket_blank_text(self, client, db, test_customer, customer_headers, field):
        payload = {"subject": "Refund", "message": "Charged twice"}
        payload[field] = "   "
        response = client.post("/api/v1/support/tickets", headers=customer_headers, json=payload)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert db.query(SupportTicket).count() == 0

    def test_follow_up_blank_message(self, client, db, test_ticket, customer_headers):
        response = client.post(
            f"/api/v1/support/tickets/{test_ticket.id}/messages",
            headers=customer_headers,
            json={"message": "   "}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert db.query(TicketMessage).filter(TicketMessage.ticket_id == test_ticket.id).count() == 0

    def test_installer_cannot_create(self, client, test_installer, installer_headers):
        response = client.post(
            "/api/v1/support/tickets",
            headers=installer_headers,
            json={"subject": "Help", "message": "Help"}
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_own_tickets(self, client, test_ticket, customer_headers, other_customer_headers):
        response = client.get("/api/v1/support/tickets", headers=customer_headers)
        assert response.status_code == status.HTTP_200_OK
        assert [t["id"] for t in response.json()] == [test_ticket.id]

        response = client.get("/api/v1/support/tickets", headers=other_customer_headers)
        assert response.json() == []

    def test_other_users_ticket_not_found(self, client, test_ticket, other_customer_headers):
        response = client.get(f"/api/v1/support/tickets/{test_ticket.id}", headers=other_customer_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_follow_up_message(self, client, test_ticket, customer_headers):
        response = client.post(
            f"/api/v1/support/tickets/{test_ticket.id}/messages",
            headers=customer_headers,
            json={"message": "Any update?"}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["is_admin_reply"] is False

        thread = client.get(f"/api/v1/support/tickets/{test_ticket.id}/messages", headers=customer_headers)
        assert [m["message"] for m in thread.json()] == ["Any update?"]

    def test_closed_ticket_rejects_messages(self, client, db, test_ticket, customer_headers):
        test_ticket.status = "closed"
        db.commit()

        response = client.post(
            f"/api/v1/support/tickets/{test_ticket.id}/messages",
            headers=customer_headers,
            json={"message": "Reopen please"}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.unit
class TestAdminTicketList:
    """Tests for the admin ticket list"""

    @pytest.fixture
    def tickets(self, db, test_customer, other_customer):
        rows = [
            SupportTicket(user_id=test_customer.id, subject="Card declined", message="Payment failed",
                          category="billing", priority="urgent", status="open"),
            SupportTicket(user_id=other_customer.id, subject="Wall type", message="Is plasterboard ok?",
                          category="technical", priority="low", status="in_progress"),
            SupportTicket(user_id=other_customer.id, subject="Thanks", message="Great job",
                          priority="medium", status="closed"),
        ]
        db.add_all(rows)
        db.commit()
        return rows

    def test_list_all(self, client, tickets, admin_headers):
        response = client.get("/api/v1/admin/support/tickets", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()) == 3

    def test_filter_by_status_and_priority(self, client, tickets, admin_headers):
        response = client.get(
            "/api/v1/admin/support/tickets",
            headers=admin_headers,
            params={"status": "open", "priority": "urgent"}
        )
        assert [t["subject"] for t in response.json()] == ["Card declined"]

    def test_search_matches_requester_email(self, client, tickets, admin_headers):
        response = client.get(
            "/api/v1/admin/support/tickets",
            headers=admin_headers,
            params={"search": "SEAN@"}
        )
        assert {t["subject"] for t in response.json()} == {"Wall type", "Thanks"}

    def test_search_matches_message(self, client, tickets, admin_headers):
        response = client.get(
            "/api/v1/admin/support/tickets",
            headers=admin_headers,
            params={"search": "plasterboard"}
        )
        assert [t["subject"] for t in response.json()] == ["Wall type"]

    def test_stats(self, client, tickets, admin_headers):
        response = client.get("/api/v1/admin/support/stats", headers=admin_headers)
        assert response.json() == {"total": 3, "open": 1, "in_progress": 1, "closed": 1}

    def test_customer_forbidden(self, client, tickets, customer_headers):
        response = client.get("/api/v1/admin/support/tickets", headers=customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_claim_without_flag_forbidden(self, client, test_customer):
        from app.core.security import create_access_token
        token = create_access_token(data={"sub": str(test_customer.id), "role": "admin"})
        response = client.get(
            "/api/v1/admin/support/tickets",
            headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.unit
class TestAdminTicketActions:
    """Tests for admin replies, status changes and deletion"""

    def test_reply_with_status_change(self, client, db, test_ticket, test_admin_user, admin_headers):
        response = client.post(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/reply",
            headers=admin_headers,
            json={"message": "We're on it", "status": "in_progress"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["ticket"]["status"] == "in_progress"
        assert data["message"]["is_admin_reply"] is True
        assert data["message"]["user_id"] == test_admin_user.id
        assert data["message"]["message"] == "We're on it"

        thread = client.get(f"/api/v1/admin/support/tickets/{test_ticket.id}/messages", headers=admin_headers)
        assert len(thread.json()) == 1

    def test_reply_without_status_keeps_status(self, client, test_ticket, admin_headers):
        response = client.post(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/reply",
            headers=admin_headers,
            json={"message": "Checking"}
        )
        assert response.json()["ticket"]["status"] == "open"

    def test_reply_empty_message(self, client, test_ticket, admin_headers):
        response = client.post(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/reply",
            headers=admin_headers,
            json={"message": ""}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_reply_blank_message(self, client, db, test_ticket, admin_headers):
        response = client.post(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/reply",
            headers=admin_headers,
            json={"message": "   ", "status": "closed"}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        db.refresh(test_ticket)
        assert test_ticket.status == "open"

    def test_close_sets_closed_at(self, client, test_ticket, admin_headers):
        response = client.put(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/status",
            headers=admin_headers,
            json={"status": "closed", "assigned_to": "Niamh"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "closed"
        assert data["closed_at"] is not None
        assert data["assigned_to"] == "Niamh"

        response = client.put(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/status",
            headers=admin_headers,
            json={"status": "open"}
        )
        assert response.json()["closed_at"] is None

    def test_invalid_status(self, client, test_ticket, admin_headers):
        response = client.put(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/status",
            headers=admin_headers,
            json={"status": "resolved"}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_delete_cascades_messages(self, client, db, test_ticket, admin_headers):
        client.post(
            f"/api/v1/admin/support/tickets/{test_ticket.id}/reply",
            headers=admin_headers,
            json={"message": "Reply"}
        )
        ticket_id = test_ticket.id

        response = client.delete(f"/api/v1/admin/support/tickets/{ticket_id}", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert db.query(SupportTicket).filter(SupportTicket.id == ticket_id).count() == 0
        assert db.query(TicketMessage).filter(TicketMessage.ticket_id == ticket_id).count() == 0

    def test_ticket_not_found(self, client, test_admin_user, admin_headers):
        response = client.get("/api/v1/admin/support/tickets/9999", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
