"""
Installer Photo Progress API Endpoints

Handles:
- Per-TV before/after photo progress, saved after every capture or delete
- Final batch submission of the before/after photo set for a booking
"""
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.endpoints.bookings import get_booking_or_404
from app.core.database import get_db
from app.core.security import Actor, get_current_actor, get_current_installer
from app.models.models import Booking, InstallerPhotoProgress
from app.schemas.schemas import (
    BeforeAfterPhotoUpload,
    BeforeAfterPhotoUploadResult,
    PhotoProgressList,
    PhotoProgressSave,
    PhotoProgressSaveResult,
)
from app.utils.photo_rules import (
    PhotoRuleError,
    is_ready_to_complete,
    photo_keys,
    required_photo_types,
    summarize,
    validate_photo_source,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_assigned_installer(actor: Actor, booking: Booking, allow_admin: bool = False):
    if allow_admin and actor.is_admin:
        return
    if actor.role != "installer" or booking.installer_id != actor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assigned installer can manage photos for this booking"
        )


def _check_tv_index(booking: Booking, tv_index: int):
    if tv_index < 0 or tv_index >= booking.tv_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"tv_index must be between 0 and {booking.tv_count - 1}"
        )


def _check_source(photo_type: str, source: str):
    try:
        validate_photo_source(photo_type, source)
    except PhotoRuleError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


def _progress_rows(db: Session, booking_id: int) -> List[InstallerPhotoProgress]:
    return db.query(InstallerPhotoProgress).filter(
        InstallerPhotoProgress.booking_id == booking_id
    ).order_by(InstallerPhotoProgress.tv_index).all()


def _get_or_create_row(db: Session, booking: Booking, installer_id: int, tv_index: int) -> InstallerPhotoProgress:
    row = db.query(InstallerPhotoProgress).filter(
        InstallerPhotoProgress.booking_id == booking.id,
        InstallerPhotoProgress.tv_index == tv_index
    ).first()
    if row is None:
        row = InstallerPhotoProgress(
            booking_id=booking.id,
            installer_id=installer_id,
            tv_index=tv_index,
            is_completed=False
        )
        db.add(row)
    return row


def _set_photo(row: InstallerPhotoProgress, photo_type: str, url, source):
    """Store or clear one photo slot; clearing also clears its source"""
    if photo_type == "before":
        row.before_photo_url = url
        row.before_photo_source = (source or "camera") if url is not None else None
    else:
        row.after_photo_url = url
        row.after_photo_source = (source or "camera") if url is not None else None
    row.is_completed = row.before_photo_url is not None and row.after_photo_url is not None


@router.get("/photo-progress/{booking_id}", response_model=PhotoProgressList)
def get_photo_progress(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Saved before/after progress for every TV of a booking"""
    booking = get_booking_or_404(db, booking_id)
    _require_assigned_installer(actor, booking, allow_admin=True)

    rows = _progress_rows(db, booking.id)
    return {
        "booking_id": booking.id,
        "tv_count": booking.tv_count,
        "progress": rows,
        "summary": summarize(photo_keys(rows), booking.tv_count)
    }


@router.post("/photo-progress", response_model=PhotoProgressSaveResult)
def save_photo_progress(
    progress_data: PhotoProgressSave,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_installer)
):
    """
    Upsert progress for one TV. Photo fields sent as null are cleared,
    photo fields left out keep their stored value.
    """
    booking = get_booking_or_404(db, progress_data.booking_id)
    _require_assigned_installer(actor, booking)
    _check_tv_index(booking, progress_data.tv_index)

    sent = progress_data.model_fields_set
    if progress_data.before_photo_source:
        _check_source("before", progress_data.before_photo_source)
    if progress_data.after_photo_source:
        _check_source("after", progress_data.after_photo_source)

    row = _get_or_create_row(db, booking, actor.id, progress_data.tv_index)
    if "before_photo_url" in sent:
        _set_photo(row, "before", progress_data.before_photo_url, progress_data.before_photo_source)
    if "after_photo_url" in sent:
        _set_photo(row, "after", progress_data.after_photo_url, progress_data.after_photo_source)
    row.is_completed = row.before_photo_url is not None and row.after_photo_url is not None

    db.commit()
    db.refresh(row)

    logger.info(f"Photo progress saved for booking {booking.id} TV {row.tv_index} (completed={row.is_completed})")

    rows = _progress_rows(db, booking.id)
    return {
        "progress": row,
        "summary": summarize(photo_keys(rows), booking.tv_count)
    }


@router.post("/upload-before-after-photos", response_model=BeforeAfterPhotoUploadResult)
def upload_before_after_photos(
    upload_data: BeforeAfterPhotoUpload,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_installer)
):
    """
    Submit the full before/after photo set for a booking in one request.
    Every TV must have the photos its workflow stage requires.
    """
    booking = get_booking_or_404(db, upload_data.booking_id)
    _require_assigned_installer(actor, booking)

    seen = set()
    keys = set()
    for photo in upload_data.photos:
        _check_tv_index(booking, photo.tv_index)
        if photo.tv_index in seen:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Duplicate photos for TV {photo.tv_index + 1}"
            )
        seen.add(photo.tv_index)
        _check_source("before", photo.before_source)
        _check_source("after", photo.after_source)
        if photo.before_photo is not None:
            keys.add((photo.tv_index, "before"))
        if photo.after_photo is not None:
            keys.add((photo.tv_index, "after"))

    if not is_ready_to_complete(keys, booking.tv_count, upload_data.workflow_stage):
        missing = [
            f"TV {i + 1} {photo_type}"
            for i in range(booking.tv_count)
            for photo_type in required_photo_types(upload_data.workflow_stage)
            if (i, photo_type) not in keys
        ]
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing photos: {', '.join(missing)}"
        )

    for photo in upload_data.photos:
        row = _get_or_create_row(db, booking, actor.id, photo.tv_index)
        if photo.before_photo is not None:
            _set_photo(row, "before", photo.before_photo, photo.before_source)
        if photo.after_photo is not None:
            _set_photo(row, "after", photo.after_photo, photo.after_source)

    db.flush()
    rows = _progress_rows(db, booking.id)
    summary = summarize(photo_keys(rows), booking.tv_count)

    booking.photos_submitted_at = datetime.utcnow()
    booking.photo_quality_stars = summary["quality_stars"]
    db.commit()

    logger.info(
        f"Before/after photos submitted for booking {booking.id}: "
        f"{summary['total_photos_completed']}/{summary['total_photos_needed']} photos, "
        f"{summary['quality_stars']} stars"
    )

    return {
        "booking_id": booking.id,
        "photos_submitted_at": booking.photos_submitted_at,
        "progress": _progress_rows(db, booking.id),
        "summary": summary
    }
