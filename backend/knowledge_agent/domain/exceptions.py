"""Domain-specific exceptions — framework-independent."""


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error or cannot be reached.

    Provider-agnostic — works for vLLM, OpenRouter, OpenAI, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class EmbeddingProviderError(Exception):
    """Raised when embeddings cannot be generated."""

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class DocumentValidationError(Exception):
    """Raised when an uploaded document is rejected before any side effect."""


class DocumentRejectedError(Exception):
    """Raised when a file or URL fails the content-safety scan."""

    def __init__(self, subject: str, positives: int, total: int):
        self.subject = subject
        self.positives = positives
        self.total = total
        super().__init__(
            f"{subject} failed security scan: {positives}/{total} detections"
        )


class DocumentFetchError(Exception):
    """Raised when a remote document cannot be downloaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch document from {url}: {reason}")
