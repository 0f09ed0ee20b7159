"""
Audio Drop Bot - YouTube audio extraction with aiogram
Send a YouTube link, pick codec and quality, receive the audio file.
"""

import asyncio
import sys
from typing import Awaitable, Callable, Optional

import structlog
from aiogram import Bot, Dispatcher, F, types
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery

from config import Config, get_config
from extractors.cookies import remove_cookie_file, resolve_cookie_file
from extractors.ytdlp import YtDlpExtractor
from models.audio import AudioRequest
from services.audio_service import AudioRequestService
from services.health_server import HealthServer
from services.telegram_channel import CallbackChannel, MessageChannel
from utils.formatters import MessageFormatter
from utils.keyboards import CodecCallback, FormatsCallback, QualityCallback

logger = structlog.get_logger(__name__)


class AudioDropBot:
    """
    Telegram gateway: routes commands, links and button presses to the
    audio request service.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.bot = Bot(token=self.config.telegram.bot_token)
        self.dp = Dispatcher()

        self.cookie_file = resolve_cookie_file(self.config.extractor)
        self.extractor = YtDlpExtractor(
            binary=self.config.extractor.binary,
            proxy=self.config.extractor.proxy,
            cookie_file=self.cookie_file
        )
        self.audio_service = AudioRequestService(self.extractor, access=self.config.access)
        self.health_server = HealthServer(self.config.health) if self.config.health.enabled else None

        self._setup_handlers()
        logger.info("bot_initialized", config=str(self.config))

    def _setup_handlers(self):
        """Setup all bot handlers."""
        self.dp.message(CommandStart())(self.cmd_start)
        self.dp.message(Command("help"))(self.cmd_help)
        self.dp.message(F.text)(self.handle_text_message)

        # Callback handlers
        self.dp.callback_query(QualityCallback.filter())(self.callback_quality)
        self.dp.callback_query(CodecCallback.filter())(self.callback_codec)
        self.dp.callback_query(FormatsCallback.filter())(self.callback_formats)
        self.dp.callback_query()(self.callback_unknown)

    @property
    def upload_timeout(self) -> int:
        return self.config.telegram.upload_timeout

    async def cmd_start(self, message: types.Message):
        """Handle /start command."""
        await message.answer(MessageFormatter.welcome(), parse_mode="HTML")

    async def cmd_help(self, message: types.Message):
        """Handle /help command."""
        await message.answer(MessageFormatter.help(), parse_mode="HTML")

    async def handle_text_message(self, message: types.Message):
        """Treat any other text as a link to extract."""
        request = AudioRequest.from_text(
            message.text,
            user_id=message.from_user.id,
            message_id=message.message_id,
            chat_id=message.chat.id
        )
        try:
            await self.audio_service.handle_link(request, MessageChannel(message, self.upload_timeout))
        except Exception:
            logger.exception("text_handler_failed", user_id=request.user_id)
            await message.answer(MessageFormatter.UNEXPECTED_ERROR)

    async def callback_quality(self, callback: CallbackQuery, callback_data: QualityCallback):
        """Handle quality selection."""
        await self._run_callback(
            callback,
            lambda chat: self.audio_service.handle_quality_selection(
                callback.from_user.id, callback_data.user_id, callback_data.quality, chat
            )
        )

    async def callback_codec(self, callback: CallbackQuery, callback_data: CodecCallback):
        """Handle codec selection."""
        await self._run_callback(
            callback,
            lambda chat: self.audio_service.handle_codec_selection(
                callback.from_user.id, callback_data.user_id, callback_data.codec, chat
            )
        )

    async def callback_formats(self, callback: CallbackQuery, callback_data: FormatsCallback):
        """Handle the "Show Formats" button."""
        await self._run_callback(
            callback,
            lambda chat: self.audio_service.handle_formats_request(
                callback.from_user.id, callback_data.user_id, chat
            )
        )

    async def callback_unknown(self, callback: CallbackQuery):
        """Payloads that don't parse come from stale or foreign keyboards."""
        logger.warning("unknown_callback", user_id=callback.from_user.id, data=callback.data)
        await callback.answer(MessageFormatter.SESSION_EXPIRED)

    async def _run_callback(self, callback: CallbackQuery, action: Callable[[CallbackChannel], Awaitable[None]]):
        # The menu message is gone (too old or deleted)
        if callback.message is None:
            await callback.answer(MessageFormatter.SESSION_EXPIRED)
            return
        try:
            await action(CallbackChannel(callback, self.upload_timeout))
        except Exception:
            logger.exception("callback_handler_failed", user_id=callback.from_user.id, data=callback.data)
            try:
                await callback.answer(MessageFormatter.UNEXPECTED_ERROR)
            except TelegramBadRequest as e:
                logger.debug("callback_answer_failed", error=str(e))

    async def start_bot(self):
        """Start the health server and polling; clean up on shutdown."""
        logger.info("bot_starting")
        try:
            if self.health_server:
                await self.health_server.start()
            await self.dp.start_polling(self.bot)
        finally:
            if self.health_server:
                await self.health_server.stop()
            remove_cookie_file(self.cookie_file, self.config.extractor)
            await self.bot.session.close()
            logger.info("bot_stopped")


async def main():
    """Main function to run the bot."""
    config = get_config()
    config.setup_logging()

    try:
        config.validate()
    except ValueError as e:
        logger.error("invalid_configuration", error=str(e))
        sys.exit(1)

    bot = AudioDropBot(config)
    await bot.start_bot()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("bot_stopped_by_user")


if __name__ == "__main__":
    run()
