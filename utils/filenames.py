"""
Filename helpers: transliteration and sanitization of video titles.
"""

import re
import unicodedata

from config import Constants

CYRILLIC_TO_LATIN = {
    # Russian
    'а': 'a', 'б': 'b', 'в': 'v', 'г': 'g', 'д': 'd', 'е': 'e', 'ё': 'yo',
    'ж': 'zh', 'з': 'z', 'и': 'i', 'й': 'y', 'к': 'k', 'л': 'l', 'м': 'm',
    'н': 'n', 'о': 'o', 'п': 'p', 'р': 'r', 'с': 's', 'т': 't', 'у': 'u',
    'ф': 'f', 'х': 'h', 'ц': 'ts', 'ч': 'ch', 'ш': 'sh', 'щ': 'shch',
    'ъ': '', 'ы': 'y', 'ь': '', 'э': 'e', 'ю': 'yu', 'я': 'ya',
    # Ukrainian
    'є': 'ye', 'і': 'i', 'ї': 'yi', 'ґ': 'g',
    # Belarusian
    'ў': 'u',
}

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r'\s+')
_REPEATED_UNDERSCORES = re.compile(r'_{2,}')


def transliterate(text: str) -> str:
    """Transliterate Cyrillic letters to Latin, keeping the letter case."""
    result = []
    for char in text:
        lower = char.lower()
        latin = CYRILLIC_TO_LATIN.get(lower)
        if latin is None:
            result.append(char)
        elif char == lower or not latin:
            result.append(latin)
        else:
            result.append(latin[0].upper() + latin[1:])
    return ''.join(result)


def _strip_marks(text: str) -> str:
    # é -> e, fullwidth forms -> ASCII; control characters other than whitespace are dropped
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(
        char for char in decomposed
        if not unicodedata.combining(char)
        and (char.isspace() or unicodedata.category(char) != 'Cc')
    )


def sanitize_filename(
    title: str,
    max_length: int = Constants.FILENAME_MAX_LENGTH,
    default: str = Constants.DEFAULT_FILENAME
) -> str:
    """
    Turn a video title into a safe filename stem.

    The result has no path separators or reserved characters, uses
    underscores instead of whitespace, is at most ``max_length`` characters
    long and is never empty. Sanitizing a sanitized name returns it unchanged.
    """
    text = unicodedata.normalize('NFC', title or '')
    # Second pass catches letters that only became mappable once decomposed
    text = transliterate(_strip_marks(transliterate(text)))
    text = _INVALID_CHARS.sub('', text)
    text = _WHITESPACE.sub('_', text)
    text = _REPEATED_UNDERSCORES.sub('_', text)
    text = text.strip('._')

    if len(text) > max_length:
        text = text[:max_length].rstrip('._')

    return text or default
