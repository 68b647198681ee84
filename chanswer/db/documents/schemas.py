"""Pydantic records for documents and suggestions."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class DocumentRecord(BaseModel):
    """Stored document."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(..., description="Document UUID")
    title: str = Field(..., description="Document title")
    content: str | None = Field(None, description="Markdown body")
    user_id: str = Field(..., alias="userId", description="Owning user ID")
    created_at: datetime = Field(default_factory=_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=_now, alias="updatedAt")


class SuggestionRecord(BaseModel):
    """Stored suggestion. Serialized with camelCase keys for clients."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(..., description="Suggestion UUID")
    document_id: str = Field(..., alias="documentId")
    original_text: str = Field(..., alias="originalText")
    suggested_text: str = Field(..., alias="suggestedText")
    description: str | None = None
    is_resolved: bool = Field(False, alias="isResolved")
    user_id: str = Field(..., alias="userId")
    created_at: datetime = Field(default_factory=_now, alias="createdAt")


class SuggestionListResponse(BaseModel):
    """Response model for a document's suggestions."""

    suggestions: list[SuggestionRecord]
