"""FAQ tools. Non-streaming, so they can also be invoked directly over HTTP."""

from pydantic import BaseModel, Field

from chanswer.ai.tools.base import ChatTool, ToolContext, ToolResult


class SaveFaqArgs(BaseModel):
    question: str = Field(..., description="The question to save")
    answer: str = Field(..., description="The answer to save")
    category: str | None = Field(None, description="Optional category for the question")


class SaveFaqTool(ChatTool):
    name = "saveFaq"
    description = "Save a FAQ entry to the database"
    args_model = SaveFaqArgs
    failure_message = "Failed to save FAQ"

    async def run(self, args: SaveFaqArgs, context: ToolContext) -> ToolResult:
        await context.store.save_faq(args.question, args.answer, args.category)
        return ToolResult.ok(message="FAQ saved successfully")


class AnswerFaqArgs(BaseModel):
    question: str = Field(..., description="The question to find an answer for")


class AnswerFaqTool(ChatTool):
    name = "answerFaq"
    description = "Get answer for a frequently asked question"
    args_model = AnswerFaqArgs
    failure_message = "Failed to retrieve FAQ answer"

    async def run(self, args: AnswerFaqArgs, context: ToolContext) -> ToolResult:
        matches = await context.store.query_faqs(args.question)
        if not matches:
            return ToolResult.fail("No matching FAQ found for this question", source="faq")
        return ToolResult.ok(answer=matches[0].answer, source="faq")


class GetFaqSuggestionsArgs(BaseModel):
    pass


class GetFaqSuggestionsTool(ChatTool):
    name = "getFaqSuggestions"
    description = "Get suggested frequently asked questions"
    args_model = GetFaqSuggestionsArgs
    failure_message = "Failed to retrieve FAQ suggestions"

    async def run(self, args: GetFaqSuggestionsArgs, context: ToolContext) -> ToolResult:
        suggestions = await context.store.list_faq_suggestions()
        return ToolResult.ok(
            suggestions=[suggestion.model_dump() for suggestion in suggestions]
        )
