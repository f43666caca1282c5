import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.responses import PlainTextResponse

from ...services.telegram_service import TelegramWebhookService
from ..deps import get_telegram_service


log = logging.getLogger("assistant.api.telegram")

router = APIRouter()


@router.post("/telegram-webhook", response_class=PlainTextResponse)
async def telegram_webhook(
    request: Request,
    service: TelegramWebhookService | None = Depends(get_telegram_service),
) -> PlainTextResponse:
    if service is None:
        return PlainTextResponse("TELEGRAM_BOT_TOKEN is not configured.", status_code=500)
    try:
        update = await request.json()
        # Store and model calls are blocking; keep them off the event loop
        await run_in_threadpool(service.handle, update)
    except Exception:
        log.error("Telegram update could not be processed")
        return PlainTextResponse("Error", status_code=500)
    return PlainTextResponse("OK")
