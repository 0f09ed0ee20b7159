"""
YouTube link recognition.
Pure functions over strings: no I/O, no exceptions.
"""

import re
from typing import Optional

_HOST = r'(?:https?://)?(?:www\.|m\.)?'
_ID_CHARS = r'[A-Za-z0-9_-]'

# Accepted link shapes: watch links, youtu.be short links, shorts
LINK_PATTERNS = [
    re.compile(rf'^{_HOST}youtube\.com/watch\?(?:\S*?&)?v=({_ID_CHARS}+)', re.IGNORECASE),
    re.compile(rf'^{_HOST}youtu\.be/({_ID_CHARS}+)', re.IGNORECASE),
    re.compile(rf'^{_HOST}youtube\.com/shorts/({_ID_CHARS}+)', re.IGNORECASE),
]

VIDEO_ID_LENGTH = 11


def is_supported_link(url: str) -> bool:
    """Check if text is a supported YouTube video link."""
    if not url or not isinstance(url, str):
        return False
    url = url.strip()
    return any(pattern.match(url) for pattern in LINK_PATTERNS)


def extract_video_id(url: str) -> Optional[str]:
    """
    Extract the 11-character video id from a supported link.

    Returns None when the text is not a supported link or the id token is
    not exactly 11 characters long.
    """
    if not url or not isinstance(url, str):
        return None
    url = url.strip()
    for pattern in LINK_PATTERNS:
        match = pattern.match(url)
        if match and len(match.group(1)) == VIDEO_ID_LENGTH:
            return match.group(1)
    return None
