from pydantic import BaseModel


class ChatRequest(BaseModel):
    # Optional so that missing fields reach the handler and surface as a 400
    message: str | None = None
    function_id: str | None = None


class ChatResponse(BaseModel):
    response: str
