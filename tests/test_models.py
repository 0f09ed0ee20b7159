"""
Tests for data models in models/ directory.
"""

import pytest

from extractors.errors import StreamConsumedError
from models.audio import AudioCodec, AudioFile, AudioQuality, AudioStream, VideoMetadata
from models.session import UserSession


async def _source(chunks, error=None):
    for chunk in chunks:
        yield chunk
    if error:
        raise error


class CloseRecorder:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


class TestAudioQuality:
    """Test quality tier ordering."""

    def test_order(self):
        """Test tiers are ordered from best to ultralow."""
        assert [q.value for q in AudioQuality] == ["best", "high", "medium", "low", "ultralow"]
        assert AudioQuality.BEST.rank == 0
        assert AudioQuality.ULTRALOW.rank == 4

    def test_is_at_or_below(self):
        """Test tier comparison."""
        assert AudioQuality.LOW.is_at_or_below(AudioQuality.MEDIUM)
        assert AudioQuality.LOW.is_at_or_below(AudioQuality.LOW)
        assert not AudioQuality.HIGH.is_at_or_below(AudioQuality.MEDIUM)

    def test_from_value(self):
        """Test tiers parse from their wire value."""
        assert AudioQuality("ultralow") is AudioQuality.ULTRALOW
        with pytest.raises(ValueError):
            AudioQuality("lossless")


class TestVideoMetadata:
    """Test VideoMetadata model."""

    def test_duration_hours(self):
        """Test duration conversion."""
        assert VideoMetadata(title="Talk", duration=5400).duration_hours == 1.5


class TestUserSession:
    """Test UserSession model."""

    def test_default_codec(self):
        """Test new sessions use opus."""
        assert UserSession(url="https://youtu.be/dQw4w9WgXcQ").codec == AudioCodec.OPUS

    def test_with_codec(self):
        """Test codec switch returns a new session."""
        session = UserSession(url="https://youtu.be/dQw4w9WgXcQ")
        updated = session.with_codec(AudioCodec.M4A)

        assert updated.codec == AudioCodec.M4A
        assert updated.url == session.url
        assert session.codec == AudioCodec.OPUS


class TestAudioStream:
    """Test the single-use audio stream."""

    @pytest.mark.asyncio
    async def test_yields_chunks_and_closes(self):
        """Test iteration hands out chunks and releases the source."""
        on_close = CloseRecorder()
        stream = AudioStream(_source([b"a", b"", b"b"]), on_close=on_close)

        received = [chunk async for chunk in stream]

        assert received == [b"a", b"b"]
        assert stream.consumed
        assert stream.closed
        assert on_close.calls == 1

    @pytest.mark.asyncio
    async def test_second_iteration_rejected(self):
        """Test a consumed stream cannot be iterated again."""
        stream = AudioStream(_source([b"a"]))
        [chunk async for chunk in stream]

        with pytest.raises(StreamConsumedError):
            stream.__aiter__()

    @pytest.mark.asyncio
    async def test_source_error_propagates_and_closes(self):
        """Test a truncated source surfaces as an error, not a clean end."""
        on_close = CloseRecorder()
        stream = AudioStream(_source([b"a"], RuntimeError("truncated")), on_close=on_close)

        received = []
        with pytest.raises(RuntimeError):
            async for chunk in stream:
                received.append(chunk)

        assert received == [b"a"]
        assert on_close.calls == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_unread_stream(self):
        """Test leaving the context releases a stream nobody read."""
        on_close = CloseRecorder()
        stream = AudioStream(_source([b"a"]), on_close=on_close)

        async with stream:
            pass

        assert stream.closed
        assert not stream.consumed
        assert on_close.calls == 1

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Test the close callback runs once."""
        on_close = CloseRecorder()
        stream = AudioStream(_source([b"a"]), on_close=on_close)

        async with stream:
            [chunk async for chunk in stream]
        await stream.aclose()

        assert on_close.calls == 1


class TestAudioFile:
    """Test AudioFile model."""

    def test_file_name(self):
        """Test the file name is the sanitized title plus the codec."""
        audio = AudioFile(stream=AudioStream(_source([])), title="Привет мир", duration=10, format="m4a")

        assert audio.file_name == "Privet_mir.m4a"

    def test_file_name_fallback(self):
        """Test an empty title still yields a file name."""
        audio = AudioFile(stream=AudioStream(_source([])), title="???", duration=10)

        assert audio.file_name == "audio.opus"
