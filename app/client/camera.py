"""
Camera acquisition for photo capture.

A CameraDevice opens a stream for a set of constraints or raises one of the
CameraError subclasses. CameraAcquirer retries an unsupported-constraints
failure once with minimal constraints, and `session()` guarantees the stream
is stopped on every exit path.

Usage:
    acquirer = CameraAcquirer(device)
    with acquirer.session() as stream:
        image = stream.capture_frame()
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

logger = logging.getLogger(__name__)

PREFERRED_CONSTRAINTS = {
    "video": {
        "facingMode": {"ideal": "environment"},
        "width": {"ideal": 1280, "min": 640},
        "height": {"ideal": 720, "min": 480},
    }
}
MINIMAL_CONSTRAINTS = {"video": True}


class CameraError(Exception):
    """Camera could not be acquired"""
    message = "Unable to access camera. Please use file upload instead."


class CameraPermissionDenied(CameraError):
    message = "Camera access was denied. Please allow camera access and try again."


class CameraNotFound(CameraError):
    message = "No camera found on this device."


class CameraNotSupported(CameraError):
    message = "Camera is not supported on this device."


class CameraConstraintsUnsupported(CameraError):
    message = "Camera constraints not supported."


def camera_error_message(error: Exception) -> str:
    """User-facing text for a camera failure"""
    if isinstance(error, CameraError):
        return error.message
    return CameraError.message


class CameraStream(Protocol):
    def capture_frame(self) -> bytes:
        ...

    def stop(self) -> None:
        ...


class CameraDevice(Protocol):
    def open(self, constraints: dict) -> CameraStream:
        ...


class CameraAcquirer:
    def __init__(self, device: CameraDevice, constraints: Optional[dict] = None):
        self.device = device
        self.constraints = constraints or PREFERRED_CONSTRAINTS
        self.stream: Optional[CameraStream] = None
        self.active_constraints: Optional[dict] = None

    def acquire(self) -> CameraStream:
        """
        Open the camera. Unsupported constraints are retried once with
        MINIMAL_CONSTRAINTS; a failure of that retry is raised as a plain
        CameraError. Any other first failure is raised as is.
        """
        if self.stream is not None:
            return self.stream

        try:
            stream = self.device.open(self.constraints)
            constraints = self.constraints
        except CameraConstraintsUnsupported:
            logger.warning("Camera constraints not supported, retrying with basic camera")
            try:
                stream = self.device.open(MINIMAL_CONSTRAINTS)
            except CameraError as e:
                logger.error(f"Basic camera also failed: {e!r}")
                raise CameraError(CameraError.message) from e
            constraints = MINIMAL_CONSTRAINTS

        self.stream = stream
        self.active_constraints = constraints
        return stream

    def release(self):
        if self.stream is not None:
            try:
                self.stream.stop()
            finally:
                self.stream = None
                self.active_constraints = None

    @contextmanager
    def session(self) -> Iterator[CameraStream]:
        stream = self.acquire()
        try:
            yield stream
        finally:
            self.release()
