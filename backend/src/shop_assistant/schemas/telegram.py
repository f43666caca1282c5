from pydantic import BaseModel, ConfigDict


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    message_id: int | None = None
    chat: TelegramChat
    text: str | None = None


class TelegramUpdate(BaseModel):
    """Subset of a Bot API ``Update``; unknown keys are kept and ignored."""

    model_config = ConfigDict(extra="allow")

    update_id: int | None = None
    message: TelegramMessage | None = None
