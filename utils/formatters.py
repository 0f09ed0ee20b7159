"""
Text formatting utilities for Audio Drop Bot.
All user-facing message texts live here.
"""

import html
from typing import List

from models.audio import AudioCodec, AudioFormat, AudioQuality


class MessageFormatter:
    """Formats messages for Telegram."""

    NOT_ALLOWED = (
        "🔒 This is a private bot.\n\n"
        "Access is restricted to authorized users only.\n"
        "If you believe this is an error, please contact the bot owner."
    )
    STILL_PROCESSING = "⏳ I am still processing your previous request. Please wait..."
    NOT_A_LINK = "❌ This is not a YouTube link.\n\nPlease send a YouTube video link."
    CHECKING = "🔍 Checking video..."
    UNAVAILABLE = "❌ Video is unavailable. Check the link or try another video."
    SESSION_EXPIRED = "❌ Session expired. Send the link again."
    CHECKING_METADATA = "⏳ Checking video metadata..."
    EXTRACTING = "⏳ Extracting audio... This may take some time."
    DONE = "✅ Done! Enjoy listening 🎧"
    GENERIC_FAILURE = (
        "❌ An error occurred while extracting audio.\n\n"
        "Try again later or with another video."
    )
    FETCHING_FORMATS = "🔍 Fetching formats..."
    NO_FORMATS = "❌ No audio formats found."
    FORMATS_FAILED = "❌ Failed to get available formats."
    UNEXPECTED_ERROR = "An error occurred. Please try again later."

    CODEC_DESCRIPTIONS = {
        AudioCodec.OPUS: "Opus - Better quality, smaller size",
        AudioCodec.M4A: "M4A (AAC) - iOS compatible for download",
    }

    @staticmethod
    def welcome() -> str:
        return (
            "🎵 <b>Audio Drop Bot</b>\n\n"
            "Hi! I'll help you extract audio from YouTube videos with quality selection.\n\n"
            "<b>How to use:</b>\n"
            "1. Send me a YouTube video link\n"
            "2. Choose audio quality (Best, High, Medium, Low)\n"
            "3. Receive your audio file\n\n"
            "<b>Supported formats:</b>\n"
            "• youtube.com/watch?v=...\n"
            "• youtu.be/...\n"
            "• youtube.com/shorts/...\n\n"
            "<b>Quality options:</b>\n"
            "🏆 Best - Highest available quality\n"
            "⚡ High - ~192kbps\n"
            "💾 Medium - ~128kbps\n"
            "📱 Low - ~64kbps\n"
            "🔇 Ultra-Low - ~48kbps mono (for very long content)\n\n"
            "Send a link to get started! 🚀"
        )

    @staticmethod
    def help() -> str:
        return (
            "<b>Help</b>\n\n"
            "<b>How to use the bot:</b>\n"
            "1. Find the video on YouTube\n"
            "2. Copy the video link\n"
            "3. Send the link to me\n"
            "4. Choose quality from buttons\n"
            "5. Receive the audio file\n\n"
            "<b>Example links:</b>\n"
            "• <code>https://youtube.com/watch?v=dQw4w9WgXcQ</code>\n"
            "• <code>https://youtu.be/dQw4w9WgXcQ</code>\n"
            "• <code>https://youtube.com/shorts/dQw4w9WgXcQ</code>\n\n"
            "<b>Quality guide:</b>\n"
            "• Best - Maximum quality (larger file)\n"
            "• High - Good balance (~192kbps)\n"
            "• Medium - Smaller size (~128kbps)\n"
            "• Low - Minimum size (~64kbps)\n"
            "• Ultra-Low - Smallest size (~48kbps mono, for 6+ hour audiobooks)\n"
            "• Show Formats - View all available audio formats\n\n"
            "<b>Auto-optimization:</b>\n"
            "• 1.5-3h: Best/High → Medium\n"
            "• 3-6h: Best/High/Medium → Low\n"
            "• 6+h: Any → Ultra-Low (48k mono)\n"
            "• Over 12h: not supported\n\n"
            "<b>Common issues:</b>\n"
            "• \"Video unavailable\" - video is private or deleted\n"
            "• \"Session expired\" - send the link again\n"
            "• \"Still processing\" - wait for the previous audio"
        )

    @classmethod
    def quality_menu(cls, codec: AudioCodec) -> str:
        return f"✅ Video found!\n\n📦 Format: {cls.CODEC_DESCRIPTIONS[codec]}\n\nChoose quality:"

    @staticmethod
    def extracting_notice(quality: AudioQuality) -> str:
        return f"⏳ Extracting {quality.value} quality..."

    @staticmethod
    def quality_adjusted(reason: str) -> str:
        return f"ℹ️ {reason}\n\n⏳ Extracting audio..."

    @staticmethod
    def duration_exceeded(duration_seconds: int, max_seconds: int) -> str:
        return (
            f"❌ Video is too long ({duration_seconds / 3600:.1f} hours).\n\n"
            f"Maximum supported duration is {max_seconds // 3600} hours."
        )

    @staticmethod
    def codec_changed(codec: AudioCodec) -> str:
        return f"Format changed to {codec.value.upper()}"

    @staticmethod
    def codec_already_selected(codec: AudioCodec) -> str:
        return f"{codec.value.upper()} already selected"

    @staticmethod
    def formats_list(formats: List[AudioFormat]) -> str:
        """
        Format the audio format listing as HTML.

        Args:
            formats: Audio-only formats to show

        Returns:
            Formatted HTML message for Telegram
        """
        lines = ["📋 <b>Available Audio Formats:</b>", ""]
        for audio_format in formats:
            details = audio_format.bitrate or "unknown bitrate"
            if audio_format.filesize:
                details += f", {audio_format.filesize}"
            lines.append(
                f"• {html.escape(audio_format.ext)} - {html.escape(details)} "
                f"({html.escape(audio_format.quality)})"
            )
        lines.append("")
        lines.append("Use quality buttons above to download.")
        return "\n".join(lines)
