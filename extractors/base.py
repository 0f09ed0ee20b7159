"""
Audio extractor interface.
The request flow depends only on this contract, so tests can substitute an
in-memory implementation for the yt-dlp one.
"""

from abc import ABC, abstractmethod
from typing import List

from models.audio import AudioCodec, AudioFile, AudioFormat, AudioQuality, VideoMetadata


class AudioExtractor(ABC):
    """Capabilities the request flow needs from an extraction backend."""

    @abstractmethod
    async def is_available(self, url: str) -> bool:
        """Probe the video. Never raises: any failure means False."""

    @abstractmethod
    async def get_metadata(self, url: str) -> VideoMetadata:
        """
        Fetch title and duration.

        Raises:
            ClassifiedExtractionError: the tool reported a known failure
            ToolInvocationError: the tool could not be started
            MetadataParseError: the tool output was not parseable
        """

    @abstractmethod
    async def extract_audio(self, url: str, quality: AudioQuality, codec: AudioCodec) -> AudioFile:
        """
        Start extraction and return the audio as a live stream.

        Metadata is fetched first, so errors raised by get_metadata surface
        here before any stream exists.
        """

    @abstractmethod
    async def get_available_formats(self, url: str) -> List[AudioFormat]:
        """List audio-only formats for display."""
