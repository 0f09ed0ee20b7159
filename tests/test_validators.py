"""
Tests for YouTube link recognition in utils/validators.py.
"""

import pytest

from models.audio import AudioRequest
from utils.validators import extract_video_id, is_supported_link

VIDEO_ID = "dQw4w9WgXcQ"

SUPPORTED_LINKS = [
    f"https://www.youtube.com/watch?v={VIDEO_ID}",
    f"https://youtube.com/watch?v={VIDEO_ID}",
    f"http://www.youtube.com/watch?v={VIDEO_ID}",
    f"www.youtube.com/watch?v={VIDEO_ID}",
    f"youtube.com/watch?v={VIDEO_ID}",
    f"https://youtube.com/watch?feature=share&v={VIDEO_ID}",
    f"https://m.youtube.com/watch?v={VIDEO_ID}",
    f"https://youtu.be/{VIDEO_ID}",
    f"youtu.be/{VIDEO_ID}",
    f"https://youtu.be/{VIDEO_ID}?si=abcdef",
    f"https://www.youtube.com/shorts/{VIDEO_ID}",
    f"youtube.com/shorts/{VIDEO_ID}",
]

UNSUPPORTED_LINKS = [
    "",
    "hello there",
    "https://vimeo.com/123456",
    "https://www.youtube.com/",
    "https://www.youtube.com/channel/UC123",
    "https://www.youtube.com/playlist?list=PL123",
    "https://example.com/watch?v=dQw4w9WgXcQ",
    "see https://youtu.be/dQw4w9WgXcQ",
]


class TestIsSupportedLink:
    """Test link shape recognition."""

    @pytest.mark.parametrize("url", SUPPORTED_LINKS)
    def test_supported_shapes(self, url):
        """Test every supported shape is accepted."""
        assert is_supported_link(url) is True

    @pytest.mark.parametrize("url", UNSUPPORTED_LINKS)
    def test_unsupported_input(self, url):
        """Test non-matching strings are rejected."""
        assert is_supported_link(url) is False

    def test_surrounding_whitespace_ignored(self):
        """Test leading and trailing whitespace does not matter."""
        assert is_supported_link(f"  https://youtu.be/{VIDEO_ID}\n") is True

    def test_non_string_input(self):
        """Test non-string input is rejected without raising."""
        assert is_supported_link(None) is False
        assert is_supported_link(12345) is False


class TestExtractVideoId:
    """Test video id extraction."""

    @pytest.mark.parametrize("url", SUPPORTED_LINKS)
    def test_id_from_every_shape(self, url):
        """Test the 11-character id is extracted from every shape."""
        assert extract_video_id(url) == VIDEO_ID

    @pytest.mark.parametrize("url", UNSUPPORTED_LINKS)
    def test_none_for_unsupported(self, url):
        """Test unsupported input yields None."""
        assert extract_video_id(url) is None

    def test_wrong_length_id(self):
        """Test an id token of the wrong length yields None."""
        assert extract_video_id("https://youtu.be/short") is None
        assert extract_video_id("https://youtu.be/dQw4w9WgXcQxyz") is None


class TestAudioRequest:
    """Test the inbound request model."""

    def test_from_text_strips(self):
        """Test message text is stripped into the url."""
        request = AudioRequest.from_text(f"  https://youtu.be/{VIDEO_ID} ", user_id=1, message_id=2, chat_id=3)

        assert request.url == f"https://youtu.be/{VIDEO_ID}"
        assert request.is_supported_link()
        assert request.video_id == VIDEO_ID

    def test_unsupported_request(self):
        """Test a request with plain text."""
        request = AudioRequest.from_text("just chatting", user_id=1, message_id=2, chat_id=3)

        assert not request.is_supported_link()
        assert request.video_id is None
