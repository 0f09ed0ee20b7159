"""
Shared test doubles: an in-memory extractor and a recording chat channel.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from extractors.base import AudioExtractor
from models.audio import AudioCodec, AudioFile, AudioFormat, AudioQuality, AudioStream, VideoMetadata
from models.session import QualityMenu
from services.chat import ChatChannel

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


async def _chunks(payload: List[bytes], error: Optional[Exception] = None):
    for chunk in payload:
        yield chunk
    if error:
        raise error


class FakeExtractor(AudioExtractor):
    """Canned metadata and audio; records every call."""

    def __init__(
        self,
        title: str = "Test Video",
        duration: int = 600,
        available: bool = True,
        payload: Optional[List[bytes]] = None,
        formats: Optional[List[AudioFormat]] = None
    ):
        self.metadata = VideoMetadata(title=title, duration=duration)
        self.available = available
        self.payload = payload if payload is not None else [b"chunk-1", b"chunk-2"]
        self.formats = formats if formats is not None else []
        self.metadata_error: Optional[Exception] = None
        self.extract_error: Optional[Exception] = None
        self.formats_error: Optional[Exception] = None
        self.stream_error: Optional[Exception] = None
        self.calls: List[Tuple[str, Any]] = []
        self.streams: List[AudioStream] = []

    async def is_available(self, url: str) -> bool:
        self.calls.append(("is_available", url))
        return self.available

    async def get_metadata(self, url: str) -> VideoMetadata:
        self.calls.append(("get_metadata", url))
        if self.metadata_error:
            raise self.metadata_error
        return self.metadata

    async def extract_audio(self, url: str, quality: AudioQuality, codec: AudioCodec) -> AudioFile:
        self.calls.append(("extract_audio", (url, quality, codec)))
        metadata = await self.get_metadata(url)
        if self.extract_error:
            raise self.extract_error
        stream = AudioStream(_chunks(self.payload, self.stream_error))
        self.streams.append(stream)
        return AudioFile(stream=stream, title=metadata.title, duration=metadata.duration, format=codec.value)

    async def get_available_formats(self, url: str) -> List[AudioFormat]:
        self.calls.append(("get_available_formats", url))
        if self.formats_error:
            raise self.formats_error
        return self.formats

    def called(self, name: str) -> List[Any]:
        return [args for call, args in self.calls if call == name]


class RecordingChannel(ChatChannel):
    """Records outbound chat operations; uploads drain the stream."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.uploaded: List[bytes] = []
        self.sent_files: List[AudioFile] = []

    async def reply(self, text: str, menu: Optional[QualityMenu] = None, html: bool = False) -> None:
        self.events.append(("reply", {"text": text, "menu": menu, "html": html}))

    async def edit(self, text: str, menu: Optional[QualityMenu] = None) -> None:
        self.events.append(("edit", {"text": text, "menu": menu}))

    async def notify(self, text: str) -> None:
        self.events.append(("notify", {"text": text}))

    async def chat_action(self, action: str) -> None:
        self.events.append(("chat_action", {"action": action}))

    async def send_audio(self, audio_file: AudioFile) -> None:
        self.events.append(("send_audio", {"file_name": audio_file.file_name}))
        self.sent_files.append(audio_file)
        async for chunk in audio_file.stream:
            self.uploaded.append(chunk)

    def texts(self, kind: Optional[str] = None) -> List[str]:
        return [
            data["text"] for event, data in self.events
            if "text" in data and (kind is None or event == kind)
        ]

    @property
    def last_text(self) -> Optional[str]:
        texts = self.texts()
        return texts[-1] if texts else None


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def chat():
    return RecordingChannel()
