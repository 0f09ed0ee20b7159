"""
YouTube Audio Extractor - yt-dlp command line implementation
Runs yt-dlp as a child process for metadata, format listing and audio
extraction. Audio is piped from yt-dlp's stdout straight to the consumer.
"""

import asyncio
import contextlib
import json
import re
from typing import List, Optional, Tuple

import structlog

from config import Constants
from extractors.base import AudioExtractor
from extractors.errors import (
    ClassifiedExtractionError,
    FailureCategory,
    MetadataParseError,
    StreamTruncatedError,
    ToolInvocationError,
)
from models.audio import AudioCodec, AudioFile, AudioFormat, AudioQuality, AudioStream, VideoMetadata

logger = structlog.get_logger(__name__)

# yt-dlp --audio-quality VBR scale: 0 is best
QUALITY_CODES = {
    AudioQuality.BEST: '0',
    AudioQuality.HIGH: '2',
    AudioQuality.MEDIUM: '5',
    AudioQuality.LOW: '7',
    AudioQuality.ULTRALOW: '9',
}

# Upper bound of the source audio bitrate, kbps
MAX_BITRATES = {
    AudioQuality.HIGH: 192,
    AudioQuality.MEDIUM: 128,
    AudioQuality.LOW: 64,
    AudioQuality.ULTRALOW: 48,
}

SOURCE_EXTENSIONS = {
    AudioCodec.OPUS: 'webm',
    AudioCodec.M4A: 'm4a',
}

# Cookie auth only works with the browser client
COOKIE_PLAYER_CLIENT = 'web'
# Needs neither cookies nor a JavaScript runtime
FALLBACK_PLAYER_CLIENT = 'android_vr'

# Checked top to bottom, case-sensitive, first match wins.
# Wording is yt-dlp's and may drift between releases.
ERROR_PATTERNS = [
    (('Private video',), FailureCategory.PRIVATE),
    (('confirm your age', 'age-restricted', 'age restricted'), FailureCategory.AGE_RESTRICTED),
    (('not available', 'Video unavailable'), FailureCategory.UNAVAILABLE),
    (('copyright',), FailureCategory.COPYRIGHT),
    (('Sign in', 'sign in', 'login required'), FailureCategory.SIGN_IN_REQUIRED),
]

FAILURE_MESSAGES = {
    FailureCategory.PRIVATE: "❌ This is a private video. Cannot extract audio.",
    FailureCategory.UNAVAILABLE: "❌ Video is unavailable or has been deleted.",
    FailureCategory.COPYRIGHT: "❌ Video is blocked due to copyright.",
    FailureCategory.SIGN_IN_REQUIRED: "❌ YouTube requires authentication for this video. Try again later.",
    FailureCategory.UNKNOWN: "❌ Failed to extract audio. Check the link.",
}

AGE_RESTRICTED_MESSAGES = {
    True: "❌ Video is age-restricted and the configured account cannot access it.",
    False: "❌ Video is age-restricted. Cannot extract audio without an authorized account.",
}

# Keep only the tail of yt-dlp diagnostics while streaming
DIAGNOSTICS_LIMIT = 64 * 1024

_SIZE_TOKEN = re.compile(r'^[~≈]?\d+(?:\.\d+)?[KMGT]?i?B$')
_BITRATE_TOKEN = re.compile(r'^\d+(?:\.\d+)?k$')
_QUALITY_WORD = re.compile(r'\b(ultralow|low|medium|high)\b')


def classify_ytdlp_error(diagnostics: str, cookies_configured: bool = False) -> ClassifiedExtractionError:
    """Map yt-dlp stderr text to a user-facing error."""
    category = FailureCategory.UNKNOWN
    for patterns, candidate in ERROR_PATTERNS:
        if any(pattern in diagnostics for pattern in patterns):
            category = candidate
            break

    if category is FailureCategory.AGE_RESTRICTED:
        message = AGE_RESTRICTED_MESSAGES[cookies_configured]
    else:
        message = FAILURE_MESSAGES[category]

    return ClassifiedExtractionError(category, message, diagnostics)


def format_selector(quality: AudioQuality, codec: AudioCodec) -> str:
    """Build the -f expression; every tier except best caps the bitrate."""
    ext = SOURCE_EXTENSIONS[codec]
    if quality is AudioQuality.BEST:
        return f'bestaudio[ext={ext}]/bestaudio/best'

    cap = MAX_BITRATES[quality]
    return (
        f'bestaudio[ext={ext}][abr<={cap}]/bestaudio[abr<={cap}]'
        f'/worstaudio/bestaudio/best'
    )


def _parse_format_line(line: str) -> Optional[AudioFormat]:
    columns = [column.strip() for column in line.split('|')]
    head = columns[0].split()
    if len(head) < 2:
        return None

    filesize = None
    bitrate = None
    if len(columns) > 1:
        for token in columns[1].split():
            if filesize is None and _SIZE_TOKEN.match(token):
                filesize = token.lstrip('~≈')
            elif bitrate is None and _BITRATE_TOKEN.match(token):
                bitrate = token

    quality_match = _QUALITY_WORD.search(columns[-1])
    return AudioFormat(
        format_id=head[0],
        ext=head[1],
        quality=quality_match.group(1) if quality_match else 'unknown',
        filesize=filesize,
        bitrate=bitrate
    )


def parse_format_listing(text: str) -> List[AudioFormat]:
    """Pick audio-only entries out of `yt-dlp --list-formats` output."""
    formats = []
    for line in text.splitlines():
        if 'audio only' not in line or 'video only' in line:
            continue
        audio_format = _parse_format_line(line)
        if audio_format:
            formats.append(audio_format)
    return formats


class YtDlpArguments:
    """
    Builds yt-dlp command lines.

    Every invocation shares the same option groups: single-resource mode,
    client identity (cookies + browser client, or a cookie-free client) and
    the optional proxy.
    """

    def __init__(self, binary: str = 'yt-dlp', proxy: Optional[str] = None, cookie_file: Optional[str] = None):
        self.binary = binary
        self.proxy = proxy
        self.cookie_file = cookie_file

    def common(self) -> List[str]:
        args = ['--no-playlist', '--no-warnings', '--no-check-certificates']

        if self.cookie_file:
            args += [
                '--cookies', self.cookie_file,
                '--extractor-args', f'youtube:player_client={COOKIE_PLAYER_CLIENT}',
            ]
        else:
            args += ['--extractor-args', f'youtube:player_client={FALLBACK_PLAYER_CLIENT}']

        if self.proxy:
            args += ['--proxy', self.proxy]

        return args

    def metadata(self, url: str) -> List[str]:
        return [self.binary, '--dump-json', '--skip-download', *self.common(), '--', url]

    def formats(self, url: str) -> List[str]:
        return [self.binary, '--list-formats', *self.common(), '--', url]

    def extract(self, url: str, quality: AudioQuality, codec: AudioCodec) -> List[str]:
        args = [
            self.binary,
            '--format', format_selector(quality, codec),
            '--extract-audio',
            '--audio-format', codec.value,
            '--audio-quality', QUALITY_CODES[quality],
        ]
        if quality is AudioQuality.ULTRALOW:
            # Downmix to mono
            args += ['--postprocessor-args', 'ffmpeg:-ac 1']
        args += ['--no-progress', '--output', '-', *self.common(), '--', url]
        return args


class YtDlpExtractor(AudioExtractor):
    """YouTube audio extractor backed by the yt-dlp executable."""

    def __init__(
        self,
        binary: str = 'yt-dlp',
        proxy: Optional[str] = None,
        cookie_file: Optional[str] = None,
        chunk_size: int = Constants.STREAM_CHUNK_SIZE
    ):
        self.arguments = YtDlpArguments(binary=binary, proxy=proxy, cookie_file=cookie_file)
        self.chunk_size = chunk_size
        logger.info(
            "ytdlp_extractor_initialized",
            binary=binary,
            proxy=bool(proxy),
            cookies=bool(cookie_file)
        )

    @property
    def cookies_configured(self) -> bool:
        return self.arguments.cookie_file is not None

    async def _spawn(self, args: List[str]) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("ytdlp_spawn_failed", binary=args[0], error=str(e))
            raise ToolInvocationError(f"Failed to execute yt-dlp: {e}") from e

    async def _run(self, args: List[str]) -> Tuple[int, bytes, str]:
        proc = await self._spawn(args)
        stdout, stderr = await proc.communicate()
        return proc.returncode, stdout, stderr.decode('utf-8', errors='replace')

    async def is_available(self, url: str) -> bool:
        try:
            await self.get_metadata(url)
            return True
        except Exception as e:
            logger.warning("availability_check_failed", url=url, error=str(e))
            return False

    async def get_metadata(self, url: str) -> VideoMetadata:
        returncode, stdout, stderr = await self._run(self.arguments.metadata(url))
        if returncode != 0:
            error = classify_ytdlp_error(stderr, self.cookies_configured)
            logger.warning(
                "ytdlp_metadata_failed",
                url=url,
                returncode=returncode,
                category=error.category.value,
                diagnostics=stderr[-2000:]
            )
            raise error

        try:
            info = json.loads(stdout)
            if not isinstance(info, dict):
                raise ValueError("metadata is not a JSON object")
            duration = int(float(info.get('duration') or 0))
        except (ValueError, TypeError) as e:
            raise MetadataParseError("Failed to parse video metadata") from e

        return VideoMetadata(
            title=info.get('title') or 'Unknown',
            duration=max(duration, 0)
        )

    async def get_available_formats(self, url: str) -> List[AudioFormat]:
        returncode, stdout, stderr = await self._run(self.arguments.formats(url))
        if returncode != 0:
            error = classify_ytdlp_error(stderr, self.cookies_configured)
            logger.warning(
                "ytdlp_formats_failed",
                url=url,
                returncode=returncode,
                category=error.category.value
            )
            raise error

        formats = parse_format_listing(stdout.decode('utf-8', errors='replace'))
        return formats[:Constants.MAX_LISTED_FORMATS]

    async def extract_audio(self, url: str, quality: AudioQuality, codec: AudioCodec) -> AudioFile:
        logger.info("audio_extraction_started", url=url, quality=quality.value, codec=codec.value)

        metadata = await self.get_metadata(url)
        proc = await self._spawn(self.arguments.extract(url, quality, codec))

        return AudioFile(
            stream=self._stream_output(proc, url),
            title=metadata.title,
            duration=metadata.duration,
            format=codec.value
        )

    def _stream_output(self, proc: asyncio.subprocess.Process, url: str) -> AudioStream:
        diagnostics = bytearray()

        async def drain_stderr():
            # Keeps yt-dlp from blocking on a full stderr pipe
            while True:
                data = await proc.stderr.read(4096)
                if not data:
                    break
                diagnostics.extend(data)
                if len(diagnostics) > DIAGNOSTICS_LIMIT:
                    del diagnostics[:len(diagnostics) - DIAGNOSTICS_LIMIT]

        stderr_task = asyncio.create_task(drain_stderr())

        async def chunks():
            while True:
                chunk = await proc.stdout.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

            returncode = await proc.wait()
            await stderr_task
            if returncode != 0:
                text = diagnostics.decode('utf-8', errors='replace')
                logger.error(
                    "ytdlp_stream_failed",
                    url=url,
                    returncode=returncode,
                    diagnostics=text[-2000:]
                )
                raise StreamTruncatedError(returncode, text)
            logger.info("audio_stream_completed", url=url)

        async def close():
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
            if not stderr_task.done():
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task

        return AudioStream(chunks(), on_close=close)
