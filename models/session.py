"""
Session data models.
"""

from dataclasses import dataclass, replace

from models.audio import AudioCodec


@dataclass(frozen=True)
class UserSession:
    """Pending request between link validation and quality selection."""
    url: str
    codec: AudioCodec = AudioCodec.OPUS

    def with_codec(self, codec: AudioCodec) -> "UserSession":
        return replace(self, codec=codec)


@dataclass(frozen=True)
class QualityMenu:
    """The codec/quality choice surface shown to a user."""
    user_id: int
    codec: AudioCodec
