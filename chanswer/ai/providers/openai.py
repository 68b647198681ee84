"""OpenAI provider implementation."""

import json
from typing import Any, AsyncGenerator, TypeVar

import httpx
from braintrust import init_logger, wrap_openai
from openai import AsyncOpenAI
from openai.types.responses import (
    EasyInputMessageParam,
    FunctionToolParam,
    Response,
    ResponseCompletedEvent,
    ResponseErrorEvent,
    ResponseFailedEvent,
    ResponseFunctionToolCall,
    ResponseIncompleteEvent,
    ResponseOutputItemDoneEvent,
    ResponseTextDeltaEvent,
)
from openai.types.responses.response_create_params import (
    ResponseCreateParams,
    ResponseCreateParamsStreaming,
)
from pydantic import BaseModel

from chanswer.ai.base import (
    AIProvider,
    ChatMessage,
    ChatStreamChunk,
    ContentGenerationResult,
    MessageRole,
    TextPart,
    ToolCall,
    ToolCallPart,
    ToolResultPart,
    ToolSpec,
)
from chanswer.ai.openai.config import get_openai_settings
from chanswer.ai.openai.exceptions import (
    OpenAIAuthenticationError,
    OpenAIContentGenerationError,
    OpenAIError,
    OpenAIStreamError,
)
from chanswer.utils.logger import logger

T = TypeVar("T", bound=BaseModel)


def build_input_items(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert canonical chat messages to Responses API input items.

    Text becomes role messages, tool-call parts become function_call items
    and tool-result parts become function_call_output items, keeping the
    original order so every output follows its call.

    Args:
        messages: Conversation in canonical form

    Returns:
        list[dict]: Input items for client.responses.create()
    """
    items: list[dict[str, Any]] = []
    for message in messages:
        if isinstance(message.content, str):
            if message.content:
                items.append(
                    EasyInputMessageParam(role=message.role.value, content=message.content)  # type: ignore[typeddict-item]
                )
            continue

        pending_text: list[str] = []

        def flush_text() -> None:
            if pending_text and message.role != MessageRole.TOOL:
                items.append(
                    EasyInputMessageParam(
                        role=message.role.value,  # type: ignore[typeddict-item]
                        content="".join(pending_text),
                    )
                )
            pending_text.clear()

        for part in message.content:
            if isinstance(part, TextPart):
                pending_text.append(part.text)
            elif isinstance(part, ToolCallPart):
                flush_text()
                items.append(
                    {
                        "type": "function_call",
                        "call_id": part.tool_call_id,
                        "name": part.tool_name,
                        "arguments": json.dumps(part.args),
                    }
                )
            elif isinstance(part, ToolResultPart):
                flush_text()
                items.append(
                    {
                        "type": "function_call_output",
                        "call_id": part.tool_call_id,
                        "output": json.dumps(part.result, default=str),
                    }
                )
        flush_text()
    return items


def build_function_tools(tools: list[ToolSpec]) -> list[FunctionToolParam]:
    """Convert tool specs to Responses API function tools."""
    return [
        FunctionToolParam(
            type="function",
            name=tool.name,
            description=tool.description,
            parameters=tool.parameters,
            strict=False,
        )
        for tool in tools
    ]


class OpenAIProvider(AIProvider):
    """OpenAI provider implementation.

    Uses the Responses API for title generation, structured suggestions and
    streamed chat steps with function tools.
    """

    def __init__(self, enable_braintrust: bool | None = None):
        """Initialize OpenAI provider.

        Args:
            enable_braintrust: Whether to enable Braintrust tracing; defaults to settings
        """
        self.settings = get_openai_settings()
        self._client: AsyncOpenAI | None = None
        self.enable_braintrust = (
            self.settings.enable_tracing if enable_braintrust is None else enable_braintrust
        )

    def _get_client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client.

        Wraps the client with Braintrust tracing if enabled.
        """
        if self._client is None:
            try:
                timeout = httpx.Timeout(
                    timeout=self.settings.request_timeout,
                    connect=10.0,
                )
                client = AsyncOpenAI(api_key=self.settings.api_key, timeout=timeout)

                if self.enable_braintrust:
                    init_logger(project=self.settings.tracing_project_name)
                    client = wrap_openai(client)
                    logger.info(
                        "[OPENAI] Client initialized with Braintrust tracing",
                        project=self.settings.tracing_project_name,
                    )
                else:
                    logger.info(
                        "[OPENAI] Client initialized",
                        timeout_seconds=self.settings.request_timeout,
                    )
                self._client = client
            except Exception as e:
                logger.error("[OPENAI] Failed to initialize client", error=str(e))
                raise OpenAIAuthenticationError(
                    f"Failed to authenticate with OpenAI: {e}", e
                )
        return self._client

    def _is_reasoning_model(self, model: str) -> bool:
        """Check if a model is a reasoning model.

        Args:
            model: Model name

        Returns:
            True if reasoning model (gpt-5, o1, o3), False otherwise
        """
        return any(model.startswith(prefix) for prefix in ["gpt-5", "o1", "o3"])

    def _build_model_params(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        reasoning_effort: str | None = None,
    ) -> dict[str, Any]:
        """Build model-specific parameters for API calls.

        Args:
            model: Model name (defaults to settings.model_name)
            temperature: Temperature for standard models (ignored for reasoning models)
            max_output_tokens: Max output tokens
            reasoning_effort: Reasoning effort for reasoning models

        Returns:
            Dict with model name and model-appropriate parameters
        """
        _model = model or self.settings.model_name
        params: ResponseCreateParams = {"model": _model}  # type: ignore[typeddict-item]
        params["max_output_tokens"] = max_output_tokens or self.settings.max_tokens

        if self._is_reasoning_model(_model):
            effort = reasoning_effort or self.settings.reasoning_effort
            if effort:
                params["reasoning"] = {"effort": effort}  # type: ignore[typeddict-item]
            if temperature is not None:
                logger.warning(
                    "[OPENAI] temperature parameter ignored for reasoning model",
                    model=_model,
                )
        else:
            params["temperature"] = (
                temperature if temperature is not None else self.settings.temperature
            )

        return dict(params)

    def _extract_parsed_model(self, parsed_response: Any, response_schema: type[T]) -> T:
        """Extract parsed Pydantic model from a Responses API parse response.

        Raises:
            OpenAIError: If no output or unable to extract parsed model
        """
        parsed = getattr(parsed_response, "output_parsed", None)
        if parsed is not None:
            return parsed

        if not parsed_response.output:
            raise OpenAIError("No output in parsed response")

        for output_item in parsed_response.output:
            if output_item.type != "message":
                continue
            for content_part in getattr(output_item, "content", None) or []:
                if getattr(content_part, "type", None) == "output_text":
                    logger.debug(
                        "[OPENAI] Fallback to JSON parsing",
                        content_preview=content_part.text[:200],
                    )
                    return response_schema.model_validate_json(content_part.text)

        raise OpenAIError("Could not extract parsed data from response")

    async def generate_content(
        self,
        prompt: str,
        instructions: str | None = None,
        **kwargs,
    ) -> ContentGenerationResult:
        """Generate text content with a single Responses API call."""
        try:
            client = self._get_client()
            model_params = self._build_model_params(
                model=kwargs.get("model"),
                temperature=kwargs.get("temperature"),
                max_output_tokens=kwargs.get("max_output_tokens"),
                reasoning_effort=kwargs.get("reasoning_effort"),
            )
            request: dict[str, Any] = {
                **model_params,
                "input": [{"type": "message", "role": "user", "content": prompt}],
            }
            if instructions:
                request["instructions"] = instructions

            logger.info("[OPENAI] Generating content", model=model_params["model"])
            response: Response = await client.responses.create(**request)

            result = ContentGenerationResult(
                text=response.output_text or "",
                usage=response.usage.model_dump() if response.usage else None,
                finish_reason=response.status,
            )
            logger.info(
                "[OPENAI] Content generation complete",
                finish_reason=result.finish_reason,
            )
            return result

        except OpenAIError:
            raise
        except Exception as e:
            logger.error("[OPENAI] Content generation failed", error=str(e))
            raise OpenAIContentGenerationError(f"Failed to generate content: {e}", e)

    async def generate_structured_content(
        self,
        prompt: str,
        response_model: type[T],
        instructions: str | None = None,
        **kwargs,
    ) -> T:
        """Generate structured content parsed into response_model."""
        try:
            client = self._get_client()
            model_params = self._build_model_params(
                model=kwargs.get("model"),
                temperature=kwargs.get("temperature"),
                max_output_tokens=kwargs.get("max_output_tokens"),
                reasoning_effort=kwargs.get("reasoning_effort"),
            )
            parse_params: dict[str, Any] = {
                **model_params,
                "input": [{"type": "message", "role": "user", "content": prompt}],
                "text_format": response_model,
            }
            if instructions:
                parse_params["instructions"] = instructions

            logger.info(
                "[OPENAI] Generating structured content",
                model=model_params["model"],
                schema=response_model.__name__,
            )
            parsed_response = await client.responses.parse(**parse_params)
            return self._extract_parsed_model(parsed_response, response_model)

        except OpenAIError:
            raise
        except Exception as e:
            logger.error("[OPENAI] Structured generation failed", error=str(e))
            raise OpenAIContentGenerationError(
                f"Failed to generate structured content: {e}", e
            )

    def _build_stream_params(
        self,
        messages: list[ChatMessage],
        instructions: str | None,
        tools: list[ToolSpec] | None,
        **kwargs,
    ) -> ResponseCreateParamsStreaming:
        """Build streaming parameters for the Responses API."""
        model_params = self._build_model_params(
            model=kwargs.get("model"),
            temperature=kwargs.get("temperature"),
            max_output_tokens=kwargs.get("max_output_tokens"),
            reasoning_effort=kwargs.get("reasoning_effort"),
        )
        input_items = build_input_items(messages)

        stream_params: ResponseCreateParamsStreaming = {
            **model_params,  # type: ignore[typeddict-item]
            "input": input_items,  # type: ignore[typeddict-item]
            "stream": True,
        }
        if instructions:
            stream_params["instructions"] = instructions
        if tools:
            stream_params["tools"] = build_function_tools(tools)  # type: ignore[typeddict-item]
            stream_params["parallel_tool_calls"] = False

        logger.debug(
            "[OPENAI] Stream params",
            model=model_params["model"],
            input_items=len(input_items),
            has_instructions=bool(instructions),
            tools=len(tools or []),
        )
        return stream_params

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        instructions: str | None = None,
        tools: list[ToolSpec] | None = None,
        **kwargs,
    ) -> AsyncGenerator[ChatStreamChunk, None]:
        """Stream one model step through the Responses API.

        Text deltas are yielded as they arrive. Function calls are yielded
        once their arguments are complete. The final chunk carries the
        finish reason.

        Raises:
            OpenAIStreamError: If the request or the stream fails
        """
        try:
            client = self._get_client()
            stream_params = self._build_stream_params(
                messages=messages, instructions=instructions, tools=tools, **kwargs
            )
            stream = await client.responses.create(**stream_params)
        except OpenAIError:
            raise
        except Exception as e:
            logger.error("[STREAM] Failed to open stream", error=str(e))
            raise OpenAIStreamError(f"Failed to start chat stream: {e}", e)

        requested_tools = False
        try:
            async for event in stream:
                if isinstance(event, ResponseTextDeltaEvent):
                    if event.delta:
                        yield ChatStreamChunk(content=event.delta)

                elif isinstance(event, ResponseOutputItemDoneEvent):
                    item = event.item
                    if isinstance(item, ResponseFunctionToolCall):
                        requested_tools = True
                        yield ChatStreamChunk(tool_calls=[self._to_tool_call(item)])

                elif isinstance(event, ResponseCompletedEvent):
                    finish_reason = "tool-calls" if requested_tools else "stop"
                    logger.info("[STREAM] Completed", finish_reason=finish_reason)
                    yield ChatStreamChunk(finish_reason=finish_reason)

                elif isinstance(event, ResponseIncompleteEvent):
                    logger.warning("[STREAM] Response incomplete")
                    yield ChatStreamChunk(finish_reason="length")

                elif isinstance(event, (ResponseFailedEvent, ResponseErrorEvent)):
                    logger.error("[STREAM] Failed", event_details=str(event))
                    raise OpenAIStreamError(f"Chat stream failed: {event}")
        except OpenAIError:
            raise
        except Exception as e:
            logger.error("[STREAM] Stream interrupted", error=str(e))
            raise OpenAIStreamError(f"Chat stream interrupted: {e}", e)
        finally:
            await stream.close()

    def _to_tool_call(self, item: ResponseFunctionToolCall) -> ToolCall:
        try:
            args = json.loads(item.arguments) if item.arguments else {}
        except json.JSONDecodeError:
            logger.warning("[STREAM] Tool arguments are not valid JSON", tool_name=item.name)
            args = {"_raw": item.arguments}
        logger.info("[STREAM] Tool call requested", tool_name=item.name, call_id=item.call_id)
        return ToolCall(
            tool_call_id=item.call_id,
            tool_name=item.name,
            args=args if isinstance(args, dict) else {"value": args},
        )
