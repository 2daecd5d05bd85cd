"""AI Agents package."""

from hisebi.agents.ai_agents import (
    FALLBACK_ALERT,
    FALLBACK_TIPS,
    InsightAgent,
    InsightParseError,
    fallback_insight,
)

__all__ = [
    "FALLBACK_ALERT",
    "FALLBACK_TIPS",
    "InsightAgent",
    "InsightParseError",
    "fallback_insight",
]
