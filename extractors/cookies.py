"""Materialization of the yt-dlp cookie file."""

import base64
import binascii
import os
import tempfile
from typing import Optional

import structlog

from config import ExtractorConfig

logger = structlog.get_logger(__name__)


def decode_cookies(blob: str) -> str:
    """
    Return Netscape cookie text from either raw text or its base64 form.

    Raw cookie files are tab separated, which base64 never is.
    """
    if '\t' in blob or blob.lstrip().startswith('#'):
        return blob
    try:
        return base64.b64decode(blob, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError("YTDLP_COOKIES is neither cookie text nor base64") from e


def write_cookie_file(content: str, directory: Optional[str] = None) -> str:
    """Write cookie text to a new file readable only by this user."""
    fd, path = tempfile.mkstemp(prefix='ytdlp-cookies-', suffix='.txt', dir=directory)
    try:
        # The handle owns fd from here on
        with os.fdopen(fd, 'w', encoding='utf-8') as handle:
            os.fchmod(handle.fileno(), 0o600)
            handle.write(content if content.endswith('\n') else content + '\n')
    except OSError:
        os.unlink(path)
        raise
    return path


def resolve_cookie_file(config: ExtractorConfig) -> Optional[str]:
    """
    Return the cookie file yt-dlp should use, creating it if needed.

    An existing file configured by path wins over the inline blob.
    """
    if config.cookies_file:
        logger.info("cookies_file_configured", path=config.cookies_file)
        return config.cookies_file
    if config.cookies:
        path = write_cookie_file(decode_cookies(config.cookies))
        logger.info("cookies_materialized", path=path)
        return path
    return None


def remove_cookie_file(path: Optional[str], config: ExtractorConfig) -> None:
    """Delete a cookie file created by resolve_cookie_file."""
    if not path or path == config.cookies_file:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
