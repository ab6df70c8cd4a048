from enum import Enum


class UploadStatus(str, Enum):
    """All possible states of a single image upload job."""

    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    UPLOADED = "UPLOADED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Terminal states cannot be transitioned out of."""
        return self is UploadStatus.UPLOADED

    @property
    def is_settled(self) -> bool:
        """True once the transport call for the current attempt has returned."""
        return self in (UploadStatus.UPLOADED, UploadStatus.FAILED)
