from logger import logger
from channels.base import ChannelType, IncomingMessage, Notifier
from core.intake import Intake
import datetime
import asyncio

from config.settings import TELEGRAM_BOT_TOKEN, ALLOWED_TELEGRAM_USER_IDS
import telegram
from telegram.ext import Application, ApplicationBuilder, MessageHandler, ContextTypes, filters

from functools import wraps

__all__ = ["TelegramNotifier", "build_application", "main"]


def requires_auth(func):
    @wraps(func)
    async def decorated(update: telegram.Update, *args, **kwargs):
        if update.effective_user is None or update.message is None:
            return
        if ALLOWED_TELEGRAM_USER_IDS and update.effective_user.id not in ALLOWED_TELEGRAM_USER_IDS:
            logger.warning(f"用户 {update.effective_user.id} 未经允许访问 Bot")
            await update.message.reply_text("You are not allowed to use this bot.")
        else:
            return await func(update, *args, **kwargs)
    return decorated


class TelegramNotifier(Notifier):
    def __init__(self, bot: telegram.Bot) -> None:
        self.bot = bot

    async def send(self, telegram_user_id: int, text: str) -> None:
        # 私聊中 chat_id 与用户 ID 相同；失败时直接抛出，调度器会跳过记录更新
        await self.bot.send_message(chat_id=telegram_user_id, text=text)


def _to_incoming(update: telegram.Update, content: str, voice: bytes | None = None) -> IncomingMessage:
    user = update.effective_user
    return IncomingMessage(
        channel_type=ChannelType.TELEGRAM_BOT_POLLING,
        telegram_user_id=user.id,
        content=content,
        voice=voice,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        timestamp=update.message.date,
    )


def _intake(context: ContextTypes.DEFAULT_TYPE) -> Intake:
    return context.application.bot_data["intake"]


@requires_auth
async def on_command(update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    reply = await _intake(context).handle_command(_to_incoming(update, update.message.text or ""))
    await update.message.reply_text(reply)


@requires_auth
async def on_text(update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.info(f"Telegram ID: {update.effective_user.id} 消息内容: {update.message.text}")
    reply = await _intake(context).handle_message(_to_incoming(update, update.message.text or ""))
    await update.message.reply_text(reply)


@requires_auth
async def on_voice(update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.info(f"收到 Telegram ID: {update.effective_user.id} 的语音消息")
    voice_file = await update.message.voice.get_file()
    audio = bytes(await voice_file.download_as_bytearray())
    reply = await _intake(context).handle_message(_to_incoming(update, "", voice=audio))
    await update.message.reply_text(reply)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """处理 telegram 库中发生的错误"""
    logger.error(f"Telegram 错误: {context.error}", exc_info=context.error)

def bot_error_callback(error: telegram.error.TelegramError) -> None:
    if isinstance(error, telegram.error.NetworkError):
        logger.warning(f"Telegram Bot 网络错误: {error}")
    else:
        logger.error(f"Telegram Bot 发生预期外的错误: {error}", exc_info=error)


def build_application(intake: Intake, token: str = TELEGRAM_BOT_TOKEN) -> Application:
    app = ApplicationBuilder().token(token).build()
    app.bot_data["intake"] = intake

    app.add_handler(MessageHandler(filters.COMMAND, on_command))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))
    app.add_handler(MessageHandler(filters.VOICE, on_voice))
    app.add_error_handler(error_handler)
    return app


async def main(app: Application, shutdown_event: asyncio.Event) -> None:
    try:
        await app.initialize()
        await app.updater.start_polling(
            poll_interval=0.5,
            timeout=datetime.timedelta(seconds=15),
            bootstrap_retries=-1,
            drop_pending_updates=False,  # 保留下线期间的消息
            error_callback=bot_error_callback,
        )
        await app.start()
        logger.info("Telegram Bot Polling 已启动")

        await shutdown_event.wait()
    finally:
        logger.info("关闭 Telegram Bot Polling...")
        if app.updater.running:
            await app.updater.stop()
        if app.running:
            await app.stop()
        await app.shutdown()
