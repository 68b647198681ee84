"""Pydantic models for FAQ entries."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class FaqRecord(BaseModel):
    """Stored FAQ entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    question: str
    answer: str
    category: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FaqSuggestion(BaseModel):
    """Question a user might want to ask."""

    model_config = ConfigDict(from_attributes=True)

    question: str
    category: str | None = None


class FaqListResponse(BaseModel):
    """Response model for GET /faq."""

    faqs: list[FaqSuggestion] = Field(..., description="Known questions")
