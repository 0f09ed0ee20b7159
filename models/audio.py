"""
Audio request and extraction data models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from extractors.errors import StreamConsumedError
from utils.filenames import sanitize_filename
from utils.validators import extract_video_id, is_supported_link


class AudioQuality(str, Enum):
    """Quality tiers, ordered by descending bitrate."""
    BEST = "best"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    ULTRALOW = "ultralow"

    @property
    def rank(self) -> int:
        """Position in the tier order, 0 for best."""
        return list(AudioQuality).index(self)

    def is_at_or_below(self, other: "AudioQuality") -> bool:
        return self.rank >= other.rank


class AudioCodec(str, Enum):
    """Output audio codec."""
    OPUS = "opus"
    M4A = "m4a"


@dataclass(frozen=True)
class AudioFormat:
    """One audio-only entry of the yt-dlp format listing, for display only."""
    format_id: str
    ext: str
    quality: str
    filesize: Optional[str] = None
    bitrate: Optional[str] = None


@dataclass(frozen=True)
class VideoMetadata:
    """Video metadata needed before streaming starts."""
    title: str
    duration: int  # seconds

    @property
    def duration_hours(self) -> float:
        return self.duration / 3600


@dataclass(frozen=True)
class AudioRequest:
    """An inbound link from a chat participant."""
    url: str
    user_id: int
    message_id: int
    chat_id: int

    @classmethod
    def from_text(cls, text: str, user_id: int, message_id: int, chat_id: int) -> "AudioRequest":
        return cls(url=text.strip(), user_id=user_id, message_id=message_id, chat_id=chat_id)

    def is_supported_link(self) -> bool:
        return is_supported_link(self.url)

    @property
    def video_id(self) -> Optional[str]:
        return extract_video_id(self.url)


class AudioStream:
    """
    Single-use async stream of audio bytes.

    Iterating the stream hands out chunks as they are produced. The source is
    released exactly once: when iteration ends, fails or is abandoned, or when
    the stream is closed explicitly (also via ``async with``). A truncated
    source surfaces as an exception from the iterator, never as a clean end.
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        on_close: Optional[Callable[[], Awaitable[None]]] = None
    ):
        self._source = source
        self._on_close = on_close
        self._consumed = False
        self._closed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise StreamConsumedError("Audio stream has already been consumed")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._source:
                if chunk:
                    yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> "AudioStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


@dataclass
class AudioFile:
    """Extracted audio: a live stream plus what the chat needs to present it."""
    stream: AudioStream
    title: str
    duration: int
    format: str = "opus"

    @property
    def file_name(self) -> str:
        return f"{sanitize_filename(self.title)}.{self.format}"
