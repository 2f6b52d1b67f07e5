"""Base telephony provider interface"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.schemas.call import CallSnapshot, PlacedCall, RecordingSnapshot


class TelephonyProvider(ABC):
    """Abstract base class for voice-call providers.

    Every operation may raise ProviderError wrapping the upstream message.
    """

    @abstractmethod
    async def place_call(
        self,
        to: str,
        message: str,
        voice: str = "alice",
        language: str = "en-US",
    ) -> PlacedCall:
        """Create an outbound call that speaks `message`"""

    @abstractmethod
    async def get_call_status(self, call_id: str) -> CallSnapshot:
        pass

    @abstractmethod
    async def list_calls(self, limit: int = 50, status: Optional[str] = "completed") -> List[CallSnapshot]:
        """Most-recent-first, filtered by status on the provider side"""

    @abstractmethod
    async def cancel_call(self, call_id: str) -> CallSnapshot:
        """Cancel a call that has not ended yet"""

    @abstractmethod
    async def start_recording(
        self,
        call_id: str,
        channels: str = "dual",
        callback_url: Optional[str] = None,
    ) -> RecordingSnapshot:
        pass

    @abstractmethod
    async def stop_recording(self, call_id: str) -> RecordingSnapshot:
        """Stop the most recent recording; NoActiveRecording if there is none"""

    async def close(self) -> None:
        """Release network resources held by the provider"""
