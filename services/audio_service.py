"""
Audio request service.
Drives a request from an inbound link to a delivered audio file:
validate -> probe -> offer quality/codec -> extract -> upload.
"""

from typing import Optional

import structlog

from config import AccessConfig, Constants
from extractors.base import AudioExtractor
from extractors.errors import ClassifiedExtractionError
from models.audio import AudioCodec, AudioQuality, AudioRequest
from models.session import QualityMenu, UserSession
from services.chat import TYPING, UPLOAD_DOCUMENT, ChatChannel
from services.session_store import ProcessingGuard, SessionStore, UserBusyError
from utils.formatters import MessageFormatter
from utils.quality import optimize_quality_for_duration

logger = structlog.get_logger(__name__)


class AudioRequestService:
    """
    Per-user request flow.

    A user is either idle, awaiting a quality choice (has a session), or
    inside the processing guard (validating a link or extracting). The guard
    is released on every exit path; the session is deleted once a quality
    choice reaches any terminal outcome.
    """

    def __init__(
        self,
        extractor: AudioExtractor,
        sessions: Optional[SessionStore] = None,
        guard: Optional[ProcessingGuard] = None,
        access: Optional[AccessConfig] = None,
        max_duration: int = Constants.MAX_DURATION_SECONDS,
        default_codec: AudioCodec = AudioCodec.OPUS
    ):
        self.extractor = extractor
        self.sessions = sessions if sessions is not None else SessionStore()
        self.guard = guard if guard is not None else ProcessingGuard()
        self.access = access if access is not None else AccessConfig()
        self.max_duration = max_duration
        self.default_codec = default_codec

    async def handle_link(self, request: AudioRequest, chat: ChatChannel) -> None:
        """Handle a text message that should contain a video link."""
        if not self.access.is_allowed(request.user_id):
            logger.warning("unauthorized_user", user_id=request.user_id)
            await chat.reply(MessageFormatter.NOT_ALLOWED)
            return

        try:
            with self.guard.hold(request.user_id):
                await self._validate_and_offer(request, chat)
        except UserBusyError:
            await chat.reply(MessageFormatter.STILL_PROCESSING)

    async def _validate_and_offer(self, request: AudioRequest, chat: ChatChannel) -> None:
        if not request.is_supported_link():
            logger.info("link_rejected", user_id=request.user_id, url=request.url)
            await chat.reply(MessageFormatter.NOT_A_LINK)
            return

        logger.info("processing_audio_request", user_id=request.user_id, video_id=request.video_id)

        try:
            await chat.chat_action(TYPING)
            await chat.reply(MessageFormatter.CHECKING)

            if not await self.extractor.is_available(request.url):
                logger.info("video_unavailable", user_id=request.user_id, video_id=request.video_id)
                await chat.reply(MessageFormatter.UNAVAILABLE)
                return

            codec = self.default_codec
            self.sessions.set(request.user_id, UserSession(url=request.url, codec=codec))
            await chat.reply(MessageFormatter.quality_menu(codec), menu=QualityMenu(request.user_id, codec))
        except Exception:
            logger.exception("link_processing_failed", user_id=request.user_id, url=request.url)
            await chat.reply(MessageFormatter.GENERIC_FAILURE)

    def _session_for(self, user_id: int, target_user_id: int) -> Optional[UserSession]:
        # Buttons carry the id of the user they were built for
        if user_id != target_user_id:
            return None
        return self.sessions.get(user_id)

    async def handle_quality_selection(
        self,
        user_id: int,
        target_user_id: int,
        quality: AudioQuality,
        chat: ChatChannel
    ) -> None:
        """Handle a quality button press: extract and deliver the audio."""
        logger.info("quality_selected", user_id=user_id, quality=quality.value)

        session = self._session_for(user_id, target_user_id)
        if session is None:
            logger.warning("session_not_found", user_id=user_id, target_user_id=target_user_id)
            await chat.notify(MessageFormatter.SESSION_EXPIRED)
            return

        try:
            with self.guard.hold(user_id):
                await self._extract_and_deliver(user_id, session, quality, chat)
        except UserBusyError:
            await chat.notify(MessageFormatter.STILL_PROCESSING)

    async def _extract_and_deliver(
        self,
        user_id: int,
        session: UserSession,
        quality: AudioQuality,
        chat: ChatChannel
    ) -> None:
        try:
            await chat.notify(MessageFormatter.extracting_notice(quality))
            # Replacing the text drops the keyboard, so the menu can't be pressed twice
            await chat.edit(MessageFormatter.CHECKING_METADATA)

            # The probe result is not cached
            metadata = await self.extractor.get_metadata(session.url)

            if metadata.duration > self.max_duration:
                logger.info(
                    "duration_limit_exceeded",
                    user_id=user_id,
                    duration=metadata.duration,
                    max_duration=self.max_duration
                )
                await chat.edit(MessageFormatter.duration_exceeded(metadata.duration, self.max_duration))
                return

            decision = optimize_quality_for_duration(quality, metadata.duration)
            if decision.adjusted:
                logger.info(
                    "quality_auto_adjusted",
                    user_id=user_id,
                    original_quality=quality.value,
                    adjusted_quality=decision.quality.value,
                    duration_hours=round(metadata.duration_hours, 1)
                )
                await chat.edit(MessageFormatter.quality_adjusted(decision.reason))
            else:
                await chat.edit(MessageFormatter.EXTRACTING)

            await chat.chat_action(UPLOAD_DOCUMENT)
            audio_file = await self.extractor.extract_audio(session.url, decision.quality, session.codec)

            async with audio_file.stream:
                await chat.chat_action(UPLOAD_DOCUMENT)
                await chat.send_audio(audio_file)

            logger.info(
                "audio_sent",
                user_id=user_id,
                quality=decision.quality.value,
                codec=session.codec.value,
                duration=audio_file.duration
            )
            await chat.edit(MessageFormatter.DONE)

        except ClassifiedExtractionError as e:
            logger.warning(
                "audio_extraction_failed",
                user_id=user_id,
                url=session.url,
                quality=quality.value,
                category=e.category.value
            )
            await chat.edit(e.message)

        except Exception:
            logger.exception("audio_delivery_failed", user_id=user_id, url=session.url, quality=quality.value)
            await chat.edit(MessageFormatter.GENERIC_FAILURE)

        finally:
            self.sessions.delete(user_id)

    async def handle_codec_selection(
        self,
        user_id: int,
        target_user_id: int,
        codec: AudioCodec,
        chat: ChatChannel
    ) -> None:
        """Handle a codec button press: update the session and redraw the menu."""
        session = self._session_for(user_id, target_user_id)
        if session is None:
            await chat.notify(MessageFormatter.SESSION_EXPIRED)
            return

        if session.codec is codec:
            await chat.notify(MessageFormatter.codec_already_selected(codec))
            return

        self.sessions.update_codec(user_id, codec)
        logger.info("codec_changed", user_id=user_id, codec=codec.value)

        await chat.notify(MessageFormatter.codec_changed(codec))
        await chat.edit(MessageFormatter.quality_menu(codec), menu=QualityMenu(user_id, codec))

    async def handle_formats_request(self, user_id: int, target_user_id: int, chat: ChatChannel) -> None:
        """Handle the "Show Formats" button: list audio formats for display."""
        session = self._session_for(user_id, target_user_id)
        if session is None:
            await chat.notify(MessageFormatter.SESSION_EXPIRED)
            return

        await chat.notify(MessageFormatter.FETCHING_FORMATS)

        try:
            formats = await self.extractor.get_available_formats(session.url)
        except Exception:
            logger.exception("formats_listing_failed", user_id=user_id, url=session.url)
            await chat.reply(MessageFormatter.FORMATS_FAILED)
            return

        if not formats:
            await chat.reply(MessageFormatter.NO_FORMATS)
            return

        await chat.reply(MessageFormatter.formats_list(formats), html=True)
