"""Request and response bodies for the HTTP layer."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models.chat import ChatMessage, ChatRole


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_max_length=1_000_000)


class CodeBody(_Body):
    """Body of /api/debug and /api/explain."""

    code: str
    language: str = Field(min_length=1, max_length=32)


class TranslateBody(_Body):
    """Body of /api/translate."""

    code: str
    from_language: str = Field(alias="fromLanguage", min_length=1, max_length=32)
    to_language: str = Field(alias="toLanguage", min_length=1, max_length=32)


class ChatMessageBody(_Body):
    """One transcript entry in /api/chat."""

    role: Literal["user", "assistant"]
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=ChatRole(self.role), content=self.content)


class ChatBody(_Body):
    """Body of /api/chat."""

    messages: list[ChatMessageBody]
    system_prompt: str | None = Field(default=None, alias="systemPrompt")


class ErrorBody(BaseModel):
    """Error payload returned with 4xx/5xx responses."""

    message: str
