"""
Document tools. Each drafts text with a nested model stream and relays it
to the client's canvas as it arrives.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field

from chanswer.ai.base import ChatMessage, MessageRole
from chanswer.ai.chat.events import (
    ClearEvent,
    DocumentIdEvent,
    DocumentTitleEvent,
    FinishEvent,
    SuggestionEvent,
    TextDeltaEvent,
)
from chanswer.ai.prompts import (
    CREATE_DOCUMENT_PROMPT,
    SUGGESTIONS_PROMPT,
    UPDATE_DOCUMENT_PROMPT,
)
from chanswer.ai.tools.base import ChatTool, ToolContext, ToolResult
from chanswer.db.documents.schemas import SuggestionRecord
from chanswer.utils.logger import logger

MAX_SUGGESTIONS = 5


async def _stream_draft(
    context: ToolContext, messages: list[ChatMessage], instructions: str
) -> str:
    """
    Relay a nested model stream as text-delta events and return the full text.

    The canvas always receives finish, also when the stream fails midway.
    """
    draft = ""
    try:
        async for chunk in context.provider.stream_chat(
            messages=messages,
            instructions=instructions,
            model=context.model.api_identifier,
        ):
            if chunk.content:
                draft += chunk.content
                await context.emit(TextDeltaEvent(content=chunk.content))
    finally:
        await context.emit(FinishEvent())
    return draft


class CreateDocumentArgs(BaseModel):
    title: str


class CreateDocumentTool(ChatTool):
    name = "createDocument"
    description = "Create a document for a writing activity"
    args_model = CreateDocumentArgs
    failure_message = "Failed to create document"

    async def run(self, args: CreateDocumentArgs, context: ToolContext) -> ToolResult:
        document_id = str(uuid.uuid4())

        await context.emit(DocumentIdEvent(content=document_id))
        await context.emit(DocumentTitleEvent(content=args.title))
        await context.emit(ClearEvent(content=""))

        draft = await _stream_draft(
            context,
            [ChatMessage(role=MessageRole.USER, content=args.title)],
            CREATE_DOCUMENT_PROMPT,
        )
        await context.store.save_document(
            document_id, args.title, draft, context.user_id
        )

        logger.info("[TOOL] Document created", document_id=document_id, length=len(draft))
        return ToolResult.ok(
            id=document_id,
            title=args.title,
            content="A document was created and is now visible to the user.",
        )


class UpdateDocumentArgs(BaseModel):
    id: str = Field(..., description="The ID of the document to update")
    description: str = Field(
        ..., description="The description of changes that need to be made"
    )


class UpdateDocumentTool(ChatTool):
    name = "updateDocument"
    description = "Update a document with the given description"
    args_model = UpdateDocumentArgs
    failure_message = "Failed to update document"

    async def run(self, args: UpdateDocumentArgs, context: ToolContext) -> ToolResult:
        document = await context.store.get_document(args.id)
        if document is None or document.user_id != context.user_id:
            return ToolResult.fail("Document not found")

        await context.emit(ClearEvent(content=document.title))

        draft = await _stream_draft(
            context,
            [
                ChatMessage(role=MessageRole.USER, content=args.description),
                ChatMessage(role=MessageRole.USER, content=document.content or ""),
            ],
            UPDATE_DOCUMENT_PROMPT,
        )
        await context.store.save_document(
            document.id, document.title, draft, context.user_id
        )

        logger.info("[TOOL] Document updated", document_id=document.id, length=len(draft))
        return ToolResult.ok(
            id=document.id,
            title=document.title,
            content="The document has been updated successfully.",
        )


class SuggestionDraft(BaseModel):
    original_sentence: str = Field(..., description="The original sentence")
    suggested_sentence: str = Field(..., description="The suggested sentence")
    description: str = Field(..., description="The description of the suggestion")


class SuggestionBatch(BaseModel):
    suggestions: list[SuggestionDraft]


class RequestSuggestionsArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(
        ...,
        alias="documentId",
        description="The ID of the document to request edits",
    )


class RequestSuggestionsTool(ChatTool):
    name = "requestSuggestions"
    description = "Request suggestions for a document"
    args_model = RequestSuggestionsArgs
    failure_message = "Failed to generate suggestions"

    async def run(self, args: RequestSuggestionsArgs, context: ToolContext) -> ToolResult:
        document = await context.store.get_document(args.document_id)
        if (
            document is None
            or document.user_id != context.user_id
            or not document.content
        ):
            return ToolResult.fail("Document not found")

        batch = await context.provider.generate_structured_content(
            prompt=document.content,
            response_model=SuggestionBatch,
            instructions=SUGGESTIONS_PROMPT,
            model=context.model.api_identifier,
        )

        suggestions: list[SuggestionRecord] = []
        for draft in batch.suggestions[:MAX_SUGGESTIONS]:
            suggestion = SuggestionRecord(
                id=str(uuid.uuid4()),
                document_id=document.id,
                original_text=draft.original_sentence,
                suggested_text=draft.suggested_sentence,
                description=draft.description,
                is_resolved=False,
                user_id=context.user_id,
            )
            await context.emit(SuggestionEvent(content=suggestion))
            suggestions.append(suggestion)

        await context.store.save_suggestions(suggestions)

        logger.info(
            "[TOOL] Suggestions added", document_id=document.id, count=len(suggestions)
        )
        return ToolResult.ok(
            id=document.id,
            title=document.title,
            message="Suggestions have been added to the document",
        )
