from logger import setup_logging, logger
from config.settings import *
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    console_level="INFO",
)

import asyncio
import signal
import sys

from channels.telegram_polling import TelegramNotifier, build_application, main as telegram_main
from core.intake import Intake
from llm.openai_client import create_remote_clients
from metrics import runtime_metrics
from storage.repository import SqliteReminderStore
from world.reminder import ReminderConfig, ReminderScheduler
import storage.db_config as db_config

shutdown_event = asyncio.Event()

def signal_handler(sig, frame):
    """处理 SIGINT (Ctrl+C) / SIGTERM 信号"""
    logger.info("收到中断信号,正在依次关闭组件...")
    shutdown_event.set()


async def main():
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if TELEGRAM_BOT_TOKEN == "":
        logger.critical("TELEGRAM_BOT_TOKEN 未设置")
        sys.exit(1)

    await db_config.init_db(DB_PATH)

    remote_classifier, transcriber = create_remote_clients()
    intake = Intake(remote=remote_classifier, transcriber=transcriber, timezone=USER_TIMEZONE)
    app = build_application(intake)

    config = ReminderConfig.from_settings()
    logger.info(
        f"提醒配置: daily={config.daily_time:%H:%M}, weekly={config.weekly_time:%H:%M} (weekday={config.weekly_day}), "
        f"monthly={config.monthly_time:%H:%M}, timezone={config.timezone}"
    )
    scheduler = ReminderScheduler(
        config=config,
        store=SqliteReminderStore(),
        notifier=TelegramNotifier(app.bot),
    )

    try:
        await asyncio.gather(
            telegram_main(app, shutdown_event),
            scheduler.run_loop(shutdown_event),
        )
    finally:
        logger.info(f"运行指标: {runtime_metrics.snapshot()}")
        logger.info("关闭数据库连接...")
        await db_config.close_db()
        logger.info("Routine Bot 已关闭")


if __name__ == "__main__":
    logger.info("启动 Routine Bot...")
    asyncio.run(main())
