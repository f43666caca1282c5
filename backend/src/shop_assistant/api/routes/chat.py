import logging

from fastapi import APIRouter, Depends

from ...core.errors import AssistantError
from ...schemas.chat import ChatRequest, ChatResponse
from ...services.chat_service import ChatService
from ..deps import get_chat_service


log = logging.getLogger("assistant.api.chat")

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
def chat(  # type: ignore[valid-type]
    payload: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    try:
        text = service.handle(payload)
    except AssistantError as exc:
        log.warning("Chat request failed (%s): %s", exc.kind, exc.message)
        raise
    except Exception as exc:
        log.exception("Chat Error")
        raise AssistantError(f"Internal Server Error during chat processing: {exc}") from exc
    return ChatResponse(response=text)
