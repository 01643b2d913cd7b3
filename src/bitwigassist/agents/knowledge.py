"""Knowledge Agent - Maps free-text questions to canned Bitwig answers.

Matching is substring-based and deterministic:
1. Topic pass: the first topic whose key (underscores read as spaces) appears
   in the query wins, in knowledge base order.
2. Keyword pass: the first entry of the keyword table found in the query
   wins, in table order. A query mentioning both "mix" and "record" resolves
   to whichever keyword comes first in the table, not in the query.
3. Otherwise the fallback answer listing supported topics.

Resolution never fails; every query gets a response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from bitwigassist.agents.base import Agent
from bitwigassist.core.knowledge_base import KnowledgeBase, build_default_knowledge_base
from bitwigassist.models.actions import ResponseBundle
from bitwigassist.services.metrics import record_query

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    """How a query was resolved."""

    TOPIC = "topic"
    KEYWORD = "keyword"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Resolution:
    """A resolved query with its provenance."""

    bundle: ResponseBundle
    match: MatchKind
    topic: str | None = None
    matched_text: str | None = None


class KnowledgeAgent(Agent):
    """Agent answering Bitwig Studio questions from a knowledge base."""

    name = "knowledge"

    def __init__(self, knowledge_base: KnowledgeBase | None = None) -> None:
        self._kb = knowledge_base or build_default_knowledge_base()
        # Spaced topic keys, computed once in knowledge base order
        self._topic_phrases: tuple[tuple[str, str], ...] = tuple(
            (key, key.replace("_", " ").lower()) for key in self._kb
        )

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._kb

    async def init(self) -> None:
        logger.info(
            "KnowledgeAgent initialized with %d topics and %d keywords",
            len(self._kb),
            len(self._kb.keywords),
        )

    async def shutdown(self) -> None:
        pass

    def match(self, query: str) -> Resolution:
        """Resolve a query and report which rule matched."""
        text = query.lower()

        for key, phrase in self._topic_phrases:
            if phrase in text:
                return Resolution(self._kb.topics[key], MatchKind.TOPIC, key, phrase)

        for keyword, key in self._kb.keywords:
            if keyword in text:
                return Resolution(self._kb.topics[key], MatchKind.KEYWORD, key, keyword)

        return Resolution(self._kb.fallback, MatchKind.FALLBACK)

    def resolve(self, query: str) -> ResponseBundle:
        """Map a query to its response bundle."""
        resolution = self.match(query)
        record_query(resolution.match.value)
        logger.debug(
            "Resolved query via %s: topic=%s matched=%r",
            resolution.match.value,
            resolution.topic,
            resolution.matched_text,
        )
        return resolution.bundle


__all__ = ["KnowledgeAgent", "MatchKind", "Resolution"]
