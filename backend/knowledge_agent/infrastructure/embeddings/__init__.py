from .openai_compatible_embedding_provider import OpenAICompatibleEmbeddingProvider

__all__ = ["OpenAICompatibleEmbeddingProvider"]
