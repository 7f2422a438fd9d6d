"""search_documents — semantic search over the knowledge base."""

from pydantic import BaseModel, Field

from knowledge_agent.application.services.retrieval_service import RetrievalService
from knowledge_agent.application.services.tools.base import Tool


class DocumentSearchArgs(BaseModel):
    query: str = Field(min_length=1, description="The search query to find relevant documents")
    limit: int = Field(default=5, ge=1, description="Maximum number of documents to return")


class DocumentSearchTool(Tool[DocumentSearchArgs]):
    name = "search_documents"
    description = (
        "Search the knowledge base for relevant documents. Use this when you need "
        "to find information from stored documents."
    )
    args_model = DocumentSearchArgs

    def __init__(self, retrieval: RetrievalService, max_limit: int = 20):
        self._retrieval = retrieval
        self._max_limit = max_limit

    async def run(self, args: DocumentSearchArgs) -> str:
        return await self._retrieval.search(args.query, min(args.limit, self._max_limit))
