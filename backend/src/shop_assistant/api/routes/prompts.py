import logging

from fastapi import APIRouter, Depends

from ...core.errors import AssistantError
from ...schemas.prompts import PromptItem, SaveResponse
from ...services.save_service import SaveService
from ..deps import get_save_service, require_admin_token


log = logging.getLogger("assistant.api.prompts")

router = APIRouter()


@router.post(
    "/save-prompts",
    response_model=SaveResponse,
    dependencies=[Depends(require_admin_token)],
)
def save_prompts(  # type: ignore[valid-type]
    payload: list[PromptItem],
    service: SaveService = Depends(get_save_service),
) -> SaveResponse:
    items = [item.model_dump(exclude_none=True) for item in payload]
    try:
        result = service.handle(items)
    except AssistantError as exc:
        log.error("Save Prompts Error (%s): %s", exc.kind, exc.message)
        raise
    except Exception as exc:
        log.exception("Save Prompts Error")
        raise AssistantError(f"Internal Server Error during prompt saving: {exc}") from exc
    log.info("Admin save committed (%d prompts, sha=%s)", result.prompt_count, result.version)
    return SaveResponse(success=True, message="Prompts successfully saved and committed to GitHub.")
