import logging
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from telegram import Bot
from telegram.error import TelegramError

import autobus_game
import duel_game
from shared.config import get_settings
from shared.logging_utils import configure_logging
from shared.web import NOTIFIER, register_error_handlers


SETTINGS = get_settings()

configure_logging(level=SETTINGS.log_level, extra_values=[SETTINGS.telegram_bot_token])
logger = logging.getLogger(__name__)

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.allowed_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "x-telegram-init-data"],
)
register_error_handlers(app)
app.include_router(autobus_game.router)
app.include_router(duel_game.router)

BOT: Optional[Bot] = None


@app.on_event("startup")
async def on_startup() -> None:
    global BOT
    if not SETTINGS.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN is not set; turn notifications are disabled")
        return
    bot = Bot(SETTINGS.telegram_bot_token)
    try:
        await bot.initialize()
    except TelegramError as exc:
        logger.error("Failed to initialize the Telegram bot: %s", exc)
        return
    BOT = bot
    NOTIFIER.attach_bot(bot)
    logger.info("Notifications will be sent as @%s", bot.username)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    global BOT
    await NOTIFIER.aclose()
    NOTIFIER.attach_bot(None)
    if BOT is not None:
        await BOT.shutdown()
        BOT = None


@app.get("/")
async def root() -> JSONResponse:
    return JSONResponse({"message": "Klovn games service. See /healthz for status."})


@app.get("/healthz")
async def healthz_get():
    return {"status": "ok"}


@app.head("/healthz", include_in_schema=False)
async def healthz_head():
    return Response(status_code=200)
