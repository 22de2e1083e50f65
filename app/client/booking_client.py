"""
HTTP client for the tradesbook.ie booking service.

Every call is one request/response pair. Non-2xx responses are raised as
BookingServiceError subclasses; responses are parsed into the same pydantic
schemas the service uses.

Usage:
    with BookingServiceClient(token=token) as client:
        proposals = client.list_proposals(42)
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from app.client.exceptions import ServiceUnavailable, error_for_status
from app.core.config import settings
from app.schemas.schemas import (
    BeforeAfterPhotoUploadResult,
    BookingResponse,
    PhotoProgressList,
    PhotoProgressSaveResult,
    ScheduleNegotiationResponse,
    SupportTicketResponse,
    TicketMessageResponse,
    TicketReplyResult,
)

logger = logging.getLogger(__name__)


class BookingServiceClient:
    """Thin wrapper around an httpx.Client bound to the booking service API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        api_prefix: str = settings.API_V1_STR,
        http_client: Optional[httpx.Client] = None,
        timeout: float = settings.CLIENT_TIMEOUT_SECONDS
    ):
        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(
            base_url=base_url or settings.BOOKING_SERVICE_URL,
            timeout=timeout
        )
        self.api_prefix = api_prefix.rstrip("/")
        self.token = token

    def close(self):
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ==================== GENERIC REQUEST ====================

    def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and return the decoded JSON body (None when empty)"""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.http.request(
                method,
                f"{self.api_prefix}{path}",
                json=json,
                params=params,
                headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ServiceUnavailable(f"Could not reach the booking service: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.warning(f"{method} {path} -> {response.status_code}: {detail}")
            raise error_for_status(response.status_code, detail)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ==================== BOOKINGS ====================

    def get_booking(self, booking_id: int) -> BookingResponse:
        return BookingResponse.model_validate(self.request("GET", f"/bookings/{booking_id}"))

    # ==================== SCHEDULE NEGOTIATION ====================

    def list_proposals(self, booking_id: int) -> List[ScheduleNegotiationResponse]:
        data = self.request("GET", f"/bookings/{booking_id}/schedule-negotiations")
        return [ScheduleNegotiationResponse.model_validate(item) for item in data]

    def active_proposal(self, booking_id: int) -> Optional[ScheduleNegotiationResponse]:
        data = self.request("GET", f"/bookings/{booking_id}/active-negotiation")
        return ScheduleNegotiationResponse.model_validate(data) if data else None

    def installer_proposals(self, installer_id: int) -> List[ScheduleNegotiationResponse]:
        data = self.request("GET", f"/installer/{installer_id}/schedule-negotiations")
        return [ScheduleNegotiationResponse.model_validate(item) for item in data]

    def create_proposal(
        self,
        booking_id: int,
        proposed_date: datetime,
        proposed_time_slot: str,
        proposal_message: Optional[str] = None,
        proposed_start_time: Optional[str] = None,
        proposed_end_time: Optional[str] = None
    ) -> ScheduleNegotiationResponse:
        data = self.request("POST", "/schedule-negotiations", json={
            "booking_id": booking_id,
            "proposed_date": proposed_date.isoformat(),
            "proposed_time_slot": proposed_time_slot,
            "proposal_message": proposal_message,
            "proposed_start_time": proposed_start_time,
            "proposed_end_time": proposed_end_time
        })
        return ScheduleNegotiationResponse.model_validate(data)

    def respond_to_proposal(self, proposal_id: int, status: str, response_message: Optional[str] = None) -> ScheduleNegotiationResponse:
        data = self.request("PATCH", f"/schedule-negotiations/{proposal_id}", json={
            "status": status,
            "response_message": response_message
        })
        return ScheduleNegotiationResponse.model_validate(data)

    def delete_proposal(self, proposal_id: int):
        return self.request("DELETE", f"/schedule-negotiations/{proposal_id}")

    # ==================== PHOTO PROGRESS ====================

    def get_photo_progress(self, booking_id: int) -> PhotoProgressList:
        return PhotoProgressList.model_validate(self.request("GET", f"/installer/photo-progress/{booking_id}"))

    def save_photo_progress(self, booking_id: int, tv_index: int, **fields) -> PhotoProgressSaveResult:
        """
        Upsert one TV slot. Pass e.g. after_photo_url=None to clear a photo;
        photo fields not passed are left untouched on the server.
        """
        payload = {"booking_id": booking_id, "tv_index": tv_index}
        payload.update(fields)
        return PhotoProgressSaveResult.model_validate(self.request("POST", "/installer/photo-progress", json=payload))

    def upload_before_after_photos(self, booking_id: int, photos: List[Dict[str, Any]], workflow_stage: str = "both") -> BeforeAfterPhotoUploadResult:
        data = self.request("POST", "/installer/upload-before-after-photos", json={
            "booking_id": booking_id,
            "workflow_stage": workflow_stage,
            "photos": photos
        })
        return BeforeAfterPhotoUploadResult.model_validate(data)

    # ==================== SUPPORT (ADMIN) ====================

    def list_tickets(self, status: Optional[str] = None, priority: Optional[str] = None, search: Optional[str] = None) -> List[SupportTicketResponse]:
        data = self.request("GET", "/admin/support/tickets", params={
            "status": status,
            "priority": priority,
            "search": search
        })
        return [SupportTicketResponse.model_validate(item) for item in data]

    def ticket_messages(self, ticket_id: int) -> List[TicketMessageResponse]:
        data = self.request("GET", f"/admin/support/tickets/{ticket_id}/messages")
        return [TicketMessageResponse.model_validate(item) for item in data]

    def reply_to_ticket(self, ticket_id: int, message: str, status: Optional[str] = None) -> TicketReplyResult:
        data = self.request("POST", f"/admin/support/tickets/{ticket_id}/reply", json={
            "message": message,
            "status": status
        })
        return TicketReplyResult.model_validate(data)

    def set_ticket_status(self, ticket_id: int, status: str, assigned_to: Optional[str] = None) -> SupportTicketResponse:
        data = self.request("PUT", f"/admin/support/tickets/{ticket_id}/status", json={
            "status": status,
            "assigned_to": assigned_to
        })
        return SupportTicketResponse.model_validate(data)

    def delete_ticket(self, ticket_id: int):
        return self.request("DELETE", f"/admin/support/tickets/{ticket_id}")
