from abc import ABC, abstractmethod


class TransportError(Exception):
    """The single-item upload failed. The message is shown to the user as-is."""


class UploadTransport(ABC):
    """Port for uploading one image and getting back its remote URL."""

    # When False, removing a job never cancels its in-flight call; the late
    # result is discarded instead.
    supports_cancellation: bool = True

    @abstractmethod
    async def upload(self, payload: bytes) -> str:
        """Upload the bytes and return the remote URL. Raises TransportError."""
        ...
