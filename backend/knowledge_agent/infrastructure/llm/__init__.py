from .openai_compatible_client import OpenAICompatibleChatClient

__all__ = ["OpenAICompatibleChatClient"]
