"""
Outbound chat operations used by the request flow.
"""

from abc import ABC, abstractmethod
from typing import Optional

from models.audio import AudioFile
from models.session import QualityMenu

TYPING = 'typing'
UPLOAD_DOCUMENT = 'upload_document'


class ChatChannel(ABC):
    """
    The conversation an inbound event came from.

    ``reply`` posts a new message; ``edit`` rewrites the message the
    interaction is attached to (or the last reply); ``notify`` shows an
    ephemeral notice where the transport has one.
    """

    @abstractmethod
    async def reply(self, text: str, menu: Optional[QualityMenu] = None, html: bool = False) -> None:
        ...

    @abstractmethod
    async def edit(self, text: str, menu: Optional[QualityMenu] = None) -> None:
        ...

    @abstractmethod
    async def notify(self, text: str) -> None:
        ...

    @abstractmethod
    async def chat_action(self, action: str) -> None:
        ...

    @abstractmethod
    async def send_audio(self, audio_file: AudioFile) -> None:
        """Upload the audio, draining its stream."""
