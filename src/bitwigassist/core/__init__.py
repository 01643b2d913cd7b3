"""Core data shared across agents and services."""

from bitwigassist.core.knowledge_base import (
    KnowledgeBase,
    KnowledgeBaseError,
    build_default_knowledge_base,
)

__all__ = ["KnowledgeBase", "KnowledgeBaseError", "build_default_knowledge_base"]
