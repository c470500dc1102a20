# bot/run_bot.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer

from demo_day.config import Settings
from demo_day.bot.middlewares.user import UserMiddleware
from demo_day.bot.routers.judging import router as JudgingRouter
from demo_day.db.database import DataBase

logging.basicConfig(level=logging.INFO)


def setup_dispatcher(dp: Dispatcher) -> None:
    dp.update.outer_middleware(UserMiddleware())

def setup_routers(dp: Dispatcher) -> None:
    dp.include_router(JudgingRouter)

def build_bot(settings: Settings) -> Bot:
    session = None
    if settings.bot_api_base:
        session = AiohttpSession(api=TelegramAPIServer.from_base(settings.bot_api_base, is_local=True))
    return Bot(
        settings.bot_token,
        session=session,
    )

async def main() -> None:
    settings = Settings()
    if not settings.bot_token:
        raise RuntimeError("Bot token is not set.")

    bot = build_bot(settings)
    dp = Dispatcher()
    setup_dispatcher(dp)
    setup_routers(dp)

    await DataBase().create_all()

    await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
