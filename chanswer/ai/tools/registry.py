"""Immutable registry of the tools a chat turn may use."""

from types import MappingProxyType
from typing import Iterable, Mapping

from chanswer.ai.base import ToolSpec
from chanswer.ai.tools.base import ChatTool
from chanswer.ai.tools.documents import (
    CreateDocumentTool,
    RequestSuggestionsTool,
    UpdateDocumentTool,
)
from chanswer.ai.tools.faq import AnswerFaqTool, GetFaqSuggestionsTool, SaveFaqTool
from chanswer.ai.tools.weather import GetWeatherTool

BLOCK_TOOLS: tuple[str, ...] = ("createDocument", "updateDocument", "requestSuggestions")
WEATHER_TOOLS: tuple[str, ...] = ("getWeather",)
FAQ_TOOLS: tuple[str, ...] = ("saveFaq", "answerFaq", "getFaqSuggestions")
ALL_TOOLS: tuple[str, ...] = BLOCK_TOOLS + WEATHER_TOOLS + FAQ_TOOLS

# Tools clients may call without a model turn
DIRECT_TOOLS: frozenset[str] = frozenset(FAQ_TOOLS)


class ToolRegistry:
    """
    Name to tool mapping restricted by an allow-list of active names.

    Built once and never mutated; inactive tools stay registered but are
    neither offered to the model nor executed.
    """

    def __init__(self, tools: Iterable[ChatTool], active: Iterable[str] | None = None):
        by_name = {tool.name: tool for tool in tools}
        active_names = tuple(by_name) if active is None else tuple(active)
        unknown = [name for name in active_names if name not in by_name]
        if unknown:
            raise ValueError(f"Active tools are not registered: {unknown}")

        self._tools: Mapping[str, ChatTool] = MappingProxyType(by_name)
        self._active = active_names

    @property
    def active(self) -> tuple[str, ...]:
        return self._active

    def get(self, name: str) -> ChatTool | None:
        """Return an active tool by name."""
        if name not in self._active:
            return None
        return self._tools.get(name)

    def specs(self) -> list[ToolSpec]:
        """Specs of the active tools in allow-list order."""
        return [self._tools[name].spec for name in self._active]


def build_default_registry(active: Iterable[str] = ALL_TOOLS) -> ToolRegistry:
    return ToolRegistry(
        [
            CreateDocumentTool(),
            UpdateDocumentTool(),
            RequestSuggestionsTool(),
            GetWeatherTool(),
            SaveFaqTool(),
            AnswerFaqTool(),
            GetFaqSuggestionsTool(),
        ],
        active=active,
    )
