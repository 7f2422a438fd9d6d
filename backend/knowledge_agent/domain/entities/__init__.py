from .agent import AgentState, AgentTurnResult, ChatResponse
from .chat_history import ChatMessage, MessageRole
from .document import (
    Document,
    DocumentMetadata,
    new_permanent_document,
    new_temporary_document,
)
from .ingestion import (
    DocumentChunk,
    DocumentUploadResult,
    IngestedDocument,
    ScanResult,
    ScanVerdict,
    SourceDocumentInfo,
)
from .llm_message import (
    ChatCompletionResult,
    LLMMessage,
    TokenUsage,
    ToolCall,
    ToolCallFunction,
)

__all__ = [
    "AgentState",
    "AgentTurnResult",
    "ChatResponse",
    "ChatMessage",
    "MessageRole",
    "Document",
    "DocumentMetadata",
    "new_permanent_document",
    "new_temporary_document",
    "DocumentChunk",
    "DocumentUploadResult",
    "IngestedDocument",
    "ScanResult",
    "ScanVerdict",
    "SourceDocumentInfo",
    "ChatCompletionResult",
    "LLMMessage",
    "TokenUsage",
    "ToolCall",
    "ToolCallFunction",
]
