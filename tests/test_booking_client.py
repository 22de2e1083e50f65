"""
Unit tests for the booking service HTTP client
"""
import httpx
import pytest

from app.client.booking_client import BookingServiceClient
from app.client.exceptions import (
    BookingServiceError,
    Conflict,
    NotFound,
    ServiceUnavailable,
    ValidationFailed,
    error_for_status,
)


def client_for(handler, token="token"):
    http = httpx.Client(base_url="http://booking.test", transport=httpx.MockTransport(handler))
    return BookingServiceClient(token=token, http_client=http)


@pytest.mark.unit
class TestBookingServiceClient:
    """Tests for request handling and error mapping"""

    def test_sends_bearer_token_and_prefix(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        assert client_for(handler).list_proposals(42) == []
        assert seen["path"] == "/api/v1/bookings/42/schedule-negotiations"
        assert seen["auth"] == "Bearer token"

    def test_drops_empty_params(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        client_for(handler).list_tickets(status="open")
        assert seen["params"] == {"status": "open"}

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnavailable):
            client_for(handler).get_booking(1)

    def test_server_error(self):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(ServiceUnavailable) as exc_info:
            client_for(handler).get_booking(1)
        assert exc_info.value.status_code == 500

    def test_detail_is_surfaced(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Booking not found"})

        with pytest.raises(NotFound, match="Booking not found"):
            client_for(handler).get_booking(1)

    def test_validation_errors_are_flattened(self):
        def handler(request):
            return httpx.Response(422, json={"detail": [
                {"loc": ["body", "proposed_time_slot"], "msg": "Value error, bad slot", "type": "value_error"}
            ]})

        with pytest.raises(ValidationFailed) as exc_info:
            client_for(handler).respond_to_proposal(1, "accepted")
        assert exc_info.value.detail == "proposed_time_slot: Value error, bad slot"

    def test_delete_returns_body(self):
        def handler(request):
            assert request.method == "DELETE"
            return httpx.Response(200, json={"message": "Support ticket deleted successfully"})

        assert client_for(handler).delete_ticket(3) == {"message": "Support ticket deleted successfully"}

    def test_context_manager_closes_owned_client(self):
        with BookingServiceClient(base_url="http://booking.test") as client:
            assert not client.http.is_closed
        assert client.http.is_closed

    def test_get_booking_against_app(self, customer_api, test_booking):
        booking = customer_api.get_booking(test_booking.id)
        assert booking.id == test_booking.id
        assert booking.tv_count == 2


@pytest.mark.unit
class TestErrorMapping:
    """Tests for status code to exception mapping"""

    @pytest.mark.parametrize("code,error", [
        (400, ValidationFailed),
        (409, Conflict),
        (404, NotFound),
        (503, ServiceUnavailable),
    ])
    def test_mapping(self, code, error):
        assert isinstance(error_for_status(code, "x"), error)

    def test_unmapped_status(self):
        err = error_for_status(418, "teapot")
        assert type(err) is BookingServiceError
        assert err.status_code == 418
