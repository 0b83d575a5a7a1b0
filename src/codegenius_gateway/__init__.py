"""CodeGenius gateway: LLM-backed code debugging, translation, explanation and chat."""

from codegenius_gateway._version import __version__
from codegenius_gateway.core.assistant import CodeAssistant, create_assistant

__all__ = ["CodeAssistant", "__version__", "create_assistant"]
