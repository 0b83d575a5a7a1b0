"""Data models for chat transcripts."""

from dataclasses import dataclass
from enum import StrEnum


class ChatRole(StrEnum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single turn in a chat transcript."""

    role: ChatRole
    content: str

    @property
    def is_user(self) -> bool:
        return self.role == ChatRole.USER

    def to_dict(self) -> dict[str, str]:
        return {"role": str(self.role), "content": self.content}
