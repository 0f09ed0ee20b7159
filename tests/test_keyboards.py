"""
Tests for callback payloads and the quality menu keyboard.
"""

import pytest

from models.audio import AudioCodec, AudioQuality
from models.session import QualityMenu
from utils.keyboards import CodecCallback, FormatsCallback, QualityCallback, build_quality_keyboard


class TestCallbackData:
    """Test callback payload encoding."""

    def test_quality_payload(self):
        """Test quality:<tier>:<user_id>."""
        payload = QualityCallback(quality=AudioQuality.ULTRALOW, user_id=123).pack()

        assert payload == "quality:ultralow:123"
        assert QualityCallback.unpack(payload) == QualityCallback(quality=AudioQuality.ULTRALOW, user_id=123)

    def test_codec_payload(self):
        """Test codec:<codec>:<user_id>."""
        payload = CodecCallback(codec=AudioCodec.M4A, user_id=123).pack()

        assert payload == "codec:m4a:123"
        assert CodecCallback.unpack(payload).codec is AudioCodec.M4A

    def test_formats_payload(self):
        """Test formats:<user_id>."""
        payload = FormatsCallback(user_id=123).pack()

        assert payload == "formats:123"
        assert FormatsCallback.unpack(payload).user_id == 123

    @pytest.mark.parametrize("payload", [
        "quality:lossless:123",
        "quality:best:abc",
        "quality:best",
        "codec:best:123",
    ])
    def test_invalid_payloads(self, payload):
        """Test tokens outside the enumerations are rejected."""
        callback_class = QualityCallback if payload.startswith("quality") else CodecCallback

        with pytest.raises((TypeError, ValueError)):
            callback_class.unpack(payload)


class TestQualityKeyboard:
    """Test the quality menu layout."""

    def test_layout(self):
        """Test codec row, tier rows and the formats button."""
        markup = build_quality_keyboard(QualityMenu(user_id=42, codec=AudioCodec.OPUS))
        rows = markup.inline_keyboard

        assert [len(row) for row in rows] == [2, 2, 2, 1, 1]
        assert [button.text for button in rows[0]] == ["🤖 Opus ✓", "🍎 M4A (iOS)"]
        assert [button.text for button in rows[1]] == ["🏆 Best", "⚡ High"]
        assert [button.text for button in rows[2]] == ["💾 Medium", "📱 Low"]
        assert rows[3][0].text == "🔇 Ultra-Low"
        assert rows[4][0].text == "📋 Show Formats"

    def test_selected_codec_marked(self):
        """Test the check mark follows the selected codec."""
        markup = build_quality_keyboard(QualityMenu(user_id=42, codec=AudioCodec.M4A))

        assert [button.text for button in markup.inline_keyboard[0]] == ["🤖 Opus", "🍎 M4A (iOS) ✓"]

    def test_payloads_carry_user_id(self):
        """Test every button is bound to the menu's user."""
        markup = build_quality_keyboard(QualityMenu(user_id=42, codec=AudioCodec.OPUS))
        payloads = [button.callback_data for row in markup.inline_keyboard for button in row]

        assert payloads == [
            "codec:opus:42",
            "codec:m4a:42",
            "quality:best:42",
            "quality:high:42",
            "quality:medium:42",
            "quality:low:42",
            "quality:ultralow:42",
            "formats:42",
        ]
