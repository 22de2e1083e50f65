"""
Before/after photo rules for multi-TV installation jobs.

Every TV of a booking has a "before" and an "after" slot. After photos must
come straight from the camera; before photos may be uploaded unless the job
forbids it. The quality score is a fixed step function of how many of the
2 x tv_count photos exist.
"""
from typing import Iterable, Set, Tuple

PHOTO_TYPES = ("before", "after")
PHOTO_SOURCES = ("camera", "upload")
WORKFLOW_STAGES = ("before", "after", "both")

AFTER_UPLOAD_MESSAGE = "After photos must be taken with camera for authenticity"
BEFORE_UPLOAD_MESSAGE = "Before photos must be taken with camera for this job"


class PhotoRuleError(ValueError):
    """A photo capture that breaks the capture rules"""


def validate_photo_source(photo_type: str, source: str, allow_before_upload: bool = True) -> None:
    if photo_type not in PHOTO_TYPES:
        raise PhotoRuleError(f"Unknown photo type: {photo_type}")
    if source not in PHOTO_SOURCES:
        raise PhotoRuleError(f"Unknown photo source: {source}")
    if source == "upload":
        if photo_type == "after":
            raise PhotoRuleError(AFTER_UPLOAD_MESSAGE)
        if not allow_before_upload:
            raise PhotoRuleError(BEFORE_UPLOAD_MESSAGE)


def required_photo_types(workflow_stage: str) -> Tuple[str, ...]:
    if workflow_stage == "before":
        return ("before",)
    if workflow_stage == "after":
        return ("after",)
    if workflow_stage == "both":
        return PHOTO_TYPES
    raise ValueError(f"Unknown workflow stage: {workflow_stage}")


def photo_keys(rows: Iterable) -> Set[Tuple[int, str]]:
    """(tv_index, photo_type) pairs present in stored progress rows"""
    keys = set()
    for row in rows:
        if row.before_photo_url is not None:
            keys.add((row.tv_index, "before"))
        if row.after_photo_url is not None:
            keys.add((row.tv_index, "after"))
    return keys


def count_photos(keys: Set[Tuple[int, str]], tv_count: int) -> Tuple[int, int]:
    before_count = sum(1 for i in range(tv_count) if (i, "before") in keys)
    after_count = sum(1 for i in range(tv_count) if (i, "after") in keys)
    return before_count, after_count


def is_ready_to_complete(keys: Set[Tuple[int, str]], tv_count: int, workflow_stage: str) -> bool:
    if tv_count < 1:
        return False
    before_count, after_count = count_photos(keys, tv_count)
    needed = required_photo_types(workflow_stage)
    if "before" in needed and before_count != tv_count:
        return False
    if "after" in needed and after_count != tv_count:
        return False
    return True


def completion_rate(photos_captured: int, photos_required: int) -> float:
    if photos_required <= 0:
        return 0.0
    return photos_captured / photos_required * 100


def quality_stars(rate: float) -> int:
    if rate >= 100:
        return 3
    if rate >= 80:
        return 2
    if rate >= 50:
        return 1
    return 0


def summarize(keys: Set[Tuple[int, str]], tv_count: int) -> dict:
    before_count, after_count = count_photos(keys, tv_count)
    completed = before_count + after_count
    needed = tv_count * 2
    rate = completion_rate(completed, needed)
    return {
        "before_count": before_count,
        "after_count": after_count,
        "total_photos_completed": completed,
        "total_photos_needed": needed,
        "completion_rate": rate,
        "quality_stars": quality_stars(rate),
    }
