"""Tools the model may call during a chat turn."""

from chanswer.ai.tools.base import ChatTool, ToolContext, ToolResult
from chanswer.ai.tools.registry import (
    ALL_TOOLS,
    BLOCK_TOOLS,
    DIRECT_TOOLS,
    FAQ_TOOLS,
    WEATHER_TOOLS,
    ToolRegistry,
    build_default_registry,
)

__all__ = [
    "ALL_TOOLS",
    "BLOCK_TOOLS",
    "DIRECT_TOOLS",
    "FAQ_TOOLS",
    "WEATHER_TOOLS",
    "ChatTool",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "build_default_registry",
]
