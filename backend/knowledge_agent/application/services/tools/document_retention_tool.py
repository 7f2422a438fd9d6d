"""promote_document_to_knowledge — keeps a temporary attachment permanently."""

import logging

from pydantic import BaseModel, Field

from knowledge_agent.application.interfaces.document_store import DocumentStore
from knowledge_agent.application.services.tools.base import Tool
from knowledge_agent.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("DocumentRetentionTool")


class DocumentRetentionArgs(BaseModel):
    document_group_id: str = Field(
        min_length=1,
        description="The documentGroupId of the attached document to promote to permanent storage",
    )
    reason: str = Field(
        description=(
            "Brief explanation of why this document should be kept permanently "
            '(e.g., "User manual with valuable reference information")'
        ),
    )


class DocumentRetentionTool(Tool[DocumentRetentionArgs]):
    name = "promote_document_to_knowledge"
    args_model = DocumentRetentionArgs

    def __init__(self, document_store: DocumentStore, ttl_hours: float = 24):
        self._store = document_store
        self.description = (
            "Call this tool to permanently save a document that contains valuable "
            "reference material to the knowledge base.\n\n"
            "USE this tool when the attached document is:\n"
            "- Reference documentation or manuals\n"
            "- Technical guides or tutorials\n"
            "- Important policies or procedures\n"
            "- Educational materials worth keeping\n"
            "- Any content the user explicitly wants to keep permanently\n\n"
            "DO NOT use this tool when the document is:\n"
            "- A one-time task (summarizing a receipt, extracting specific data)\n"
            "- A temporary file the user won't need again\n"
            "- Content that's already been fully processed for the user's request\n\n"
            f"The document will be promoted from temporary ({ttl_hours:g}h TTL) "
            "to permanent storage."
        )

    async def run(self, args: DocumentRetentionArgs) -> str:
        group_id = args.document_group_id
        try:
            documents = await self._store.find_by_group(group_id)
            if not documents:
                return (
                    f"No documents found with group ID: {group_id}. "
                    "The document may have already expired or been deleted."
                )

            promoted = await self._store.promote([d.id for d in documents])
        except Exception as e:
            plog.step_error(PipelineStage.PROMOTE, f"Promotion of {group_id} failed", error=e)
            return f"Failed to promote document: {e}"

        title = documents[0].metadata.title or "Untitled"
        plog.step_complete(
            PipelineStage.PROMOTE,
            f'Promoted "{title}"',
            group=group_id,
            chunks=len(documents),
            newly_promoted=promoted,
        )
        return (
            f'Successfully promoted "{title}" ({len(documents)} chunks) to permanent '
            f"knowledge base. Reason: {args.reason}"
        )
