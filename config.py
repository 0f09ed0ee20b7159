"""
Audio Drop Bot Configuration Module
Manages all configuration settings loaded from environment variables.
"""
import os
import logging
from typing import List, Optional
from dataclasses import dataclass, field

import structlog
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_user_ids(value: str) -> List[int]:
    """
    Parse a comma-separated list of Telegram user ids, skipping blanks.
    Raises ValueError naming the first token that is not an integer.
    """
    ids = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            raise ValueError(f"ALLOWED_USER_IDS contains a non-numeric id: {part!r}") from None
    return ids


@dataclass
class TelegramConfig:
    """Telegram bot configuration."""
    bot_token: str
    upload_timeout: int = 1800  # seconds for a single file upload request


@dataclass
class ExtractorConfig:
    """yt-dlp invocation configuration."""
    binary: str = 'yt-dlp'
    proxy: Optional[str] = None
    cookies: Optional[str] = None  # Netscape cookie text, optionally base64
    cookies_file: Optional[str] = None  # existing cookie file, wins over the blob

    @property
    def has_cookies(self) -> bool:
        return bool(self.cookies or self.cookies_file)


@dataclass
class AccessConfig:
    """Requester allow-list. Empty list means everyone is allowed."""
    allowed_user_ids: List[int] = field(default_factory=list)

    def is_allowed(self, user_id: int) -> bool:
        if not self.allowed_user_ids:
            return True
        return user_id in self.allowed_user_ids


@dataclass
class HealthConfig:
    """Health check HTTP server configuration."""
    port: int = 3000
    host: str = '0.0.0.0'
    enabled: bool = True


class Constants:
    """Fixed limits of the extraction flow."""
    MAX_DURATION_SECONDS = 12 * 3600
    MAX_LISTED_FORMATS = 10
    FILENAME_MAX_LENGTH = 200
    DEFAULT_FILENAME = 'audio'
    AUDIO_PERFORMER = 'YouTube'
    AUDIO_CAPTION = '🎵 Audio extracted'
    STREAM_CHUNK_SIZE = 64 * 1024


class Config:
    """
    Main configuration class that loads and validates all settings.
    """

    def __init__(self):
        # Malformed values fall back to defaults and are reported by validate()
        self._parse_errors: List[str] = []

        self.environment = os.getenv('ENVIRONMENT', 'production')
        self.log_level = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)

        self.telegram = TelegramConfig(
            bot_token=os.getenv('TELEGRAM_BOT_TOKEN', ''),
            upload_timeout=self._getenv_int('UPLOAD_TIMEOUT', 1800)
        )

        self.extractor = ExtractorConfig(
            binary=os.getenv('YTDLP_BINARY', 'yt-dlp'),
            proxy=os.getenv('YTDLP_PROXY') or None,
            cookies=os.getenv('YTDLP_COOKIES') or None,
            cookies_file=os.getenv('YTDLP_COOKIES_FILE') or None
        )

        self.access = AccessConfig(
            allowed_user_ids=self._getenv_user_ids('ALLOWED_USER_IDS')
        )

        self.health = HealthConfig(
            port=self._getenv_int('PORT', 3000),
            host=os.getenv('HEALTH_HOST', '0.0.0.0'),
            enabled=_parse_bool(os.getenv('HEALTH_ENABLED', 'true'))
        )

    def _getenv_int(self, name: str, default: int) -> int:
        value = os.getenv(name)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except ValueError:
            self._parse_errors.append(f"{name} must be an integer, got {value!r}")
            return default

    def _getenv_user_ids(self, name: str) -> List[int]:
        try:
            return _parse_user_ids(os.getenv(name, ''))
        except ValueError as e:
            self._parse_errors.append(str(e))
            return []

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == 'development'

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == 'production'

    def setup_logging(self) -> None:
        """Configure structlog based on environment and log level."""
        if self.is_development:
            # Human-readable output while developing
            renderer = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                renderer
            ],
            wrapper_class=structlog.make_filtering_bound_logger(self.log_level),
            cache_logger_on_first_use=True
        )

        # aiogram and aiohttp log through the standard library
        logging.basicConfig(
            level=self.log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def validate(self) -> None:
        """
        Validate all configuration settings.
        Raises ValueError if any required settings are missing.
        """
        errors = list(self._parse_errors)

        if not self.telegram.bot_token:
            errors.append("TELEGRAM_BOT_TOKEN is required")

        if self.telegram.upload_timeout <= 0:
            errors.append("UPLOAD_TIMEOUT must be positive")

        if not 0 < self.health.port < 65536:
            errors.append("PORT must be between 1 and 65535")

        if self.environment not in ('development', 'production', 'test'):
            errors.append("ENVIRONMENT must be one of development, production, test")

        if self.extractor.cookies_file and not os.path.isfile(self.extractor.cookies_file):
            errors.append(f"YTDLP_COOKIES_FILE does not exist: {self.extractor.cookies_file}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def __str__(self) -> str:
        """String representation of config (without sensitive data)."""
        return (
            f"Config(environment={self.environment}, "
            f"log_level={logging.getLevelName(self.log_level)}, "
            f"telegram_configured={bool(self.telegram.bot_token)}, "
            f"proxy_configured={bool(self.extractor.proxy)}, "
            f"cookies_configured={self.extractor.has_cookies}, "
            f"allow_list_size={len(self.access.allowed_user_ids)})"
        )


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, loading it on first use."""
    global _config
    if _config is None:
        _config = Config()
    return _config
