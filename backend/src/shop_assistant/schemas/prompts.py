from pydantic import BaseModel, Field


class PromptItem(BaseModel):
    id: str
    name: str
    description: str
    prompt: str
    variables: dict[str, str] | None = None


class SaveResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
    kind: str | None = None


class ServiceStatus(BaseModel):
    message: str = Field(..., examples=["AI Shop Assistant Worker is running."])
