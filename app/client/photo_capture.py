"""
Installer-side before/after photo capture for a multi-TV booking.

Each capture is saved to the server before local state changes, so a
failed save leaves the session exactly as it was. `load()` restores a
session from the server after a reload.
"""
import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from app.client.booking_client import BookingServiceClient
from app.client.camera import CameraAcquirer
from app.client.exceptions import ValidationFailed
from app.schemas.schemas import BeforeAfterPhotoUploadResult
from app.utils.photo_rules import (
    PhotoRuleError,
    WORKFLOW_STAGES,
    completion_rate,
    is_ready_to_complete,
    quality_stars,
    required_photo_types,
    summarize,
    validate_photo_source,
)

logger = logging.getLogger(__name__)


@dataclass
class CapturedPhoto:
    tv_index: int
    photo_type: str
    image_url: str
    source: str = "camera"
    captured_at: datetime = field(default_factory=datetime.utcnow)


def to_data_url(image: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"


class PhotoCaptureSession:
    def __init__(
        self,
        client: BookingServiceClient,
        booking_id: int,
        tv_count: int,
        workflow_stage: str = "both",
        allow_before_upload: bool = True,
        tv_names: Optional[List[str]] = None,
        on_photos_complete: Optional[Callable[[List[dict]], None]] = None
    ):
        if workflow_stage not in WORKFLOW_STAGES:
            raise ValueError(f"workflow_stage must be one of {WORKFLOW_STAGES}")
        if tv_count < 1:
            raise ValueError("tv_count must be at least 1")
        self.client = client
        self.booking_id = booking_id
        self.tv_count = tv_count
        self.workflow_stage = workflow_stage
        self.allow_before_upload = allow_before_upload
        self.tv_names = tv_names or [f"TV {i + 1}" for i in range(tv_count)]
        self.on_photos_complete = on_photos_complete

        self.photos: Dict[Tuple[int, str], CapturedPhoto] = {}
        self.current_tv_index = 0
        self.current_photo_type = required_photo_types(workflow_stage)[0]
        self.submitted: Optional[BeforeAfterPhotoUploadResult] = None

    # ==================== STATE ====================

    def load(self) -> Dict[Tuple[int, str], CapturedPhoto]:
        """Replace local state with the progress saved on the server"""
        saved = self.client.get_photo_progress(self.booking_id)
        photos = {}
        for row in saved.progress:
            if row.tv_index >= self.tv_count:
                continue
            captured_at = row.updated_at or datetime.utcnow()
            if row.before_photo_url:
                photos[(row.tv_index, "before")] = CapturedPhoto(
                    row.tv_index, "before", row.before_photo_url, row.before_photo_source or "camera", captured_at
                )
            if row.after_photo_url:
                photos[(row.tv_index, "after")] = CapturedPhoto(
                    row.tv_index, "after", row.after_photo_url, row.after_photo_source or "camera", captured_at
                )
        self.photos = photos
        return self.photos

    def photo(self, tv_index: int, photo_type: str) -> Optional[CapturedPhoto]:
        return self.photos.get((tv_index, photo_type))

    def tv_name(self, tv_index: int) -> str:
        return self.tv_names[tv_index]

    def _check_slot(self, tv_index: int, photo_type: str):
        if tv_index < 0 or tv_index >= self.tv_count:
            raise ValidationFailed(f"tv_index must be between 0 and {self.tv_count - 1}")
        if photo_type not in required_photo_types(self.workflow_stage):
            raise ValidationFailed(f"{photo_type} photos are not part of the {self.workflow_stage} stage")

    def move_to(self, tv_index: int, photo_type: str):
        self._check_slot(tv_index, photo_type)
        self.current_tv_index = tv_index
        self.current_photo_type = photo_type

    def _advance(self, tv_index: int, photo_type: str):
        last_tv = self.tv_count - 1
        if self.workflow_stage == "both":
            if photo_type == "before":
                self.current_tv_index, self.current_photo_type = tv_index, "after"
            elif tv_index < last_tv:
                self.current_tv_index, self.current_photo_type = tv_index + 1, "before"
            else:
                self.current_tv_index, self.current_photo_type = tv_index, photo_type
        else:
            self.current_tv_index = min(tv_index + 1, last_tv)
            self.current_photo_type = photo_type

    # ==================== CAPTURE ====================

    def capture(
        self,
        tv_index: int,
        photo_type: str,
        image: bytes,
        source: str = "camera",
        mime_type: str = "image/jpeg"
    ) -> CapturedPhoto:
        self._check_slot(tv_index, photo_type)
        try:
            validate_photo_source(photo_type, source, self.allow_before_upload)
        except PhotoRuleError as e:
            raise ValidationFailed(str(e))

        image_url = to_data_url(image, mime_type)
        self.client.save_photo_progress(
            self.booking_id,
            tv_index,
            **{f"{photo_type}_photo_url": image_url, f"{photo_type}_photo_source": source}
        )

        photo = CapturedPhoto(tv_index, photo_type, image_url, source)
        self.photos[(tv_index, photo_type)] = photo
        logger.info(f"Captured {photo_type} photo for {self.tv_name(tv_index)} of booking {self.booking_id}")
        self._advance(tv_index, photo_type)
        return photo

    def capture_from_camera(self, acquirer: CameraAcquirer, tv_index: int, photo_type: str) -> CapturedPhoto:
        """Grab one frame; the camera is released whether or not the save succeeds"""
        with acquirer.session() as stream:
            image = stream.capture_frame()
            return self.capture(tv_index, photo_type, image, source="camera")

    def delete_photo(self, tv_index: int, photo_type: str):
        self._check_slot(tv_index, photo_type)
        self.client.save_photo_progress(
            self.booking_id,
            tv_index,
            **{f"{photo_type}_photo_url": None, f"{photo_type}_photo_source": None}
        )
        self.photos.pop((tv_index, photo_type), None)

    # ==================== PROGRESS ====================

    @property
    def total_photos_needed(self) -> int:
        return self.tv_count * 2

    @property
    def total_photos_completed(self) -> int:
        return summarize(set(self.photos), self.tv_count)["total_photos_completed"]

    @property
    def completion_rate(self) -> float:
        return completion_rate(self.total_photos_completed, self.total_photos_needed)

    @property
    def quality_stars(self) -> int:
        return quality_stars(self.completion_rate)

    def is_ready_to_complete(self) -> bool:
        return is_ready_to_complete(set(self.photos), self.tv_count, self.workflow_stage)

    def finalized_photos(self) -> List[dict]:
        finalized = []
        for i in range(self.tv_count):
            before = self.photo(i, "before")
            after = self.photo(i, "after")
            finalized.append({
                "tv_index": i,
                "before_photo": before.image_url if before else None,
                "after_photo": after.image_url if after else None,
                "before_source": before.source if before else "camera",
                "after_source": after.source if after else "camera",
            })
        return finalized

    def submit(self) -> List[dict]:
        """
        Submit the photo set. Local state is kept when the upload fails so
        the installer can retry.
        """
        if not self.is_ready_to_complete():
            raise ValidationFailed("Capture every required photo before submitting")

        finalized = self.finalized_photos()
        self.submitted = self.client.upload_before_after_photos(
            self.booking_id, finalized, self.workflow_stage
        )
        logger.info(
            f"Submitted {self.total_photos_completed}/{self.total_photos_needed} photos "
            f"for booking {self.booking_id}"
        )
        if self.on_photos_complete is not None:
            self.on_photos_complete(finalized)
        return finalized
