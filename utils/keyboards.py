"""
Inline keyboards and callback payloads for the quality menu.
"""

from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from models.audio import AudioCodec, AudioQuality
from models.session import QualityMenu


class QualityCallback(CallbackData, prefix="quality"):
    """quality:<tier>:<user_id>"""
    quality: AudioQuality
    user_id: int


class CodecCallback(CallbackData, prefix="codec"):
    """codec:<codec>:<user_id>"""
    codec: AudioCodec
    user_id: int


class FormatsCallback(CallbackData, prefix="formats"):
    """formats:<user_id>"""
    user_id: int


CODEC_BUTTONS = {
    AudioCodec.OPUS: "🤖 Opus",
    AudioCodec.M4A: "🍎 M4A (iOS)",
}

QUALITY_BUTTONS = {
    AudioQuality.BEST: "🏆 Best",
    AudioQuality.HIGH: "⚡ High",
    AudioQuality.MEDIUM: "💾 Medium",
    AudioQuality.LOW: "📱 Low",
    AudioQuality.ULTRALOW: "🔇 Ultra-Low",
}


def build_quality_keyboard(menu: QualityMenu) -> InlineKeyboardMarkup:
    """
    Codec row with the selected codec marked, then quality tiers two per row,
    Ultra-Low and "Show Formats" on rows of their own.
    """
    builder = InlineKeyboardBuilder()

    for codec, label in CODEC_BUTTONS.items():
        if codec is menu.codec:
            label += " ✓"
        builder.button(text=label, callback_data=CodecCallback(codec=codec, user_id=menu.user_id))

    for quality, label in QUALITY_BUTTONS.items():
        builder.button(text=label, callback_data=QualityCallback(quality=quality, user_id=menu.user_id))

    builder.button(text="📋 Show Formats", callback_data=FormatsCallback(user_id=menu.user_id))

    builder.adjust(2, 2, 2, 1, 1)
    return builder.as_markup()
