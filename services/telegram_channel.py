"""
aiogram implementations of the chat channel.
"""

from typing import AsyncGenerator, Optional

import structlog
from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, InputFile, Message

from config import Constants
from models.audio import AudioFile, AudioStream
from models.session import QualityMenu
from services.chat import ChatChannel
from utils.keyboards import build_quality_keyboard

logger = structlog.get_logger(__name__)


class AudioStreamInputFile(InputFile):
    """Uploads an AudioStream chunk by chunk, never holding the whole file."""

    def __init__(self, stream: AudioStream, filename: str, chunk_size: int = Constants.STREAM_CHUNK_SIZE):
        super().__init__(filename=filename, chunk_size=chunk_size)
        self.stream = stream

    async def read(self, bot: Bot) -> AsyncGenerator[bytes, None]:
        async for chunk in self.stream:
            yield chunk


def _markup(menu: Optional[QualityMenu]):
    return build_quality_keyboard(menu) if menu else None


class _TelegramChannel(ChatChannel):
    def __init__(self, bot: Bot, chat_id: int, upload_timeout: int):
        self.bot = bot
        self.chat_id = chat_id
        self.upload_timeout = upload_timeout

    async def chat_action(self, action: str) -> None:
        try:
            await self.bot.send_chat_action(chat_id=self.chat_id, action=action)
        except TelegramBadRequest as e:
            logger.debug("chat_action_failed", chat_id=self.chat_id, action=action, error=str(e))

    async def send_audio(self, audio_file: AudioFile) -> None:
        await self.bot.send_audio(
            chat_id=self.chat_id,
            audio=AudioStreamInputFile(audio_file.stream, audio_file.file_name),
            title=audio_file.title,
            duration=audio_file.duration,
            performer=Constants.AUDIO_PERFORMER,
            caption=Constants.AUDIO_CAPTION,
            request_timeout=self.upload_timeout
        )

    async def _edit_message(self, message: Message, text: str, menu: Optional[QualityMenu]) -> None:
        try:
            await message.edit_text(text, reply_markup=_markup(menu))
        except TelegramBadRequest as e:
            # "message is not modified" and edits of deleted messages
            logger.debug("message_edit_failed", chat_id=self.chat_id, error=str(e))


class MessageChannel(_TelegramChannel):
    """Channel for a plain text message. Edits target the last reply."""

    def __init__(self, message: Message, upload_timeout: int):
        super().__init__(message.bot, message.chat.id, upload_timeout)
        self.message = message
        self.last_reply: Optional[Message] = None

    async def reply(self, text: str, menu: Optional[QualityMenu] = None, html: bool = False) -> None:
        self.last_reply = await self.message.answer(
            text,
            parse_mode="HTML" if html else None,
            reply_markup=_markup(menu)
        )

    async def edit(self, text: str, menu: Optional[QualityMenu] = None) -> None:
        if self.last_reply is None:
            await self.reply(text, menu=menu)
            return
        await self._edit_message(self.last_reply, text, menu)

    async def notify(self, text: str) -> None:
        await self.reply(text)


class CallbackChannel(_TelegramChannel):
    """Channel for an inline button press. Edits target the menu message."""

    def __init__(self, callback: CallbackQuery, upload_timeout: int):
        super().__init__(callback.bot, callback.message.chat.id, upload_timeout)
        self.callback = callback

    async def reply(self, text: str, menu: Optional[QualityMenu] = None, html: bool = False) -> None:
        await self.callback.message.answer(
            text,
            parse_mode="HTML" if html else None,
            reply_markup=_markup(menu)
        )

    async def edit(self, text: str, menu: Optional[QualityMenu] = None) -> None:
        await self._edit_message(self.callback.message, text, menu)

    async def notify(self, text: str) -> None:
        try:
            await self.callback.answer(text)
        except TelegramBadRequest as e:
            # A callback can be answered once, and only shortly after the press
            logger.debug("callback_answer_failed", chat_id=self.chat_id, error=str(e))
