"""Agent package for BitwigAssist.

Contains the agent interface, the knowledge agent and the assistant facade.
"""

from .assistant import BitwigAssistant
from .base import Agent
from .knowledge import KnowledgeAgent, MatchKind, Resolution

__all__ = [
    "Agent",
    "BitwigAssistant",
    "KnowledgeAgent",
    "MatchKind",
    "Resolution",
]
