"""Tests for the knowledge base and KnowledgeAgent query resolution."""

from __future__ import annotations

import pytest

from bitwigassist.agents.knowledge import KnowledgeAgent, MatchKind
from bitwigassist.core.knowledge_base import (
    DEFAULT_KEYWORDS,
    FALLBACK_RESPONSE,
    KnowledgeBase,
    KnowledgeBaseError,
)
from bitwigassist.models.actions import Action, ActionKind, ResponseBundle


@pytest.fixture
def agent(knowledge_base: KnowledgeBase) -> KnowledgeAgent:
    return KnowledgeAgent(knowledge_base)


# =============================================================================
# Knowledge Base Tests
# =============================================================================


class TestKnowledgeBase:
    """Tests for the default Bitwig content and table validation."""

    def test_default_topics_in_order(self, knowledge_base: KnowledgeBase) -> None:
        assert list(knowledge_base) == [
            "create_project",
            "record_audio",
            "record_midi",
            "mixing",
            "effects_devices",
            "automation",
            "arrangement",
            "clip_launcher",
            "troubleshooting",
        ]

    def test_every_topic_is_executable(self, knowledge_base: KnowledgeBase) -> None:
        for key, bundle in knowledge_base.topics.items():
            assert bundle.can_execute, key
            assert bundle.actions, key
            assert bundle.topic == key

    def test_fallback_is_not_executable(self, knowledge_base: KnowledgeBase) -> None:
        assert knowledge_base.fallback.actions == ()
        assert knowledge_base.fallback.can_execute is False

    def test_topics_are_read_only(self, knowledge_base: KnowledgeBase) -> None:
        with pytest.raises(TypeError):
            knowledge_base.topics["new"] = FALLBACK_RESPONSE  # type: ignore[index]

    def test_keyword_table_order(self, knowledge_base: KnowledgeBase) -> None:
        keywords = [keyword for keyword, _ in knowledge_base.keywords]
        assert keywords[:4] == ["create", "new project", "start project", "record"]
        assert keywords.index("record") < keywords.index("mix")
        assert keywords[-1] == "help"
        assert len(keywords) == len(DEFAULT_KEYWORDS)

    def test_keyword_to_unknown_topic_rejected(self) -> None:
        bundle = ResponseBundle(answer="x", topic="only")
        with pytest.raises(KnowledgeBaseError):
            KnowledgeBase({"only": bundle}, [("foo", "missing")], FALLBACK_RESPONSE)

    def test_executable_fallback_rejected(self) -> None:
        action = Action(kind=ActionKind.KEYBOARD, target="Space")
        fallback = ResponseBundle(answer="x", actions=(action,), can_execute=True)
        with pytest.raises(KnowledgeBaseError):
            KnowledgeBase({}, [], fallback)

    def test_mixing_sets_track_volume(self, knowledge_base: KnowledgeBase) -> None:
        actions = knowledge_base.topics["mixing"].actions
        volume = [a for a in actions if a.target == "track_volume"]
        assert len(volume) == 1
        assert volume[0].kind == ActionKind.PARAMETER
        assert volume[0].value == -6

    def test_mouse_positions_follow_steps(self, knowledge_base: KnowledgeBase) -> None:
        bundle = knowledge_base.topics["record_audio"]
        positions = bundle.mouse_positions
        assert [(p.x, p.y) for p in positions] == [(150, 100), (400, 50)]


# =============================================================================
# Resolution Tests
# =============================================================================


class TestResolution:
    """Tests for topic, keyword and fallback matching."""

    @pytest.mark.parametrize(
        "query,topic",
        [
            ("How do I record audio?", "record_audio"),
            ("How do I use the CLIP LAUNCHER", "clip_launcher"),
            ("create project please", "create_project"),
            ("give me some mixing tips", "mixing"),
        ],
    )
    def test_topic_phrase_wins(self, agent: KnowledgeAgent, query: str, topic: str) -> None:
        resolution = agent.match(query)
        assert resolution.match == MatchKind.TOPIC
        assert resolution.topic == topic
        assert resolution.bundle is agent.knowledge_base.topics[topic]

    @pytest.mark.parametrize(
        "query,topic",
        [
            ("how do I add a plugin", "effects_devices"),
            ("my project keeps crashing", "troubleshooting"),
            ("Start a new project", "create_project"),
            ("I want to automate the filter", "automation"),
        ],
    )
    def test_keyword_match(self, agent: KnowledgeAgent, query: str, topic: str) -> None:
        resolution = agent.match(query)
        assert resolution.match == MatchKind.KEYWORD
        assert resolution.topic == topic

    def test_keyword_table_order_beats_query_order(self, agent: KnowledgeAgent) -> None:
        """The query says mix first, but record comes first in the table."""
        resolution = agent.match("mix then record the vocals")
        assert resolution.topic == "record_audio"
        assert resolution.matched_text == "record"

    def test_unmatched_query_gets_fallback(self, agent: KnowledgeAgent) -> None:
        bundle = agent.resolve("what's the weather like today")
        assert bundle is agent.knowledge_base.fallback
        assert bundle.actions == ()
        assert bundle.can_execute is False

    def test_empty_query_gets_fallback(self, agent: KnowledgeAgent) -> None:
        assert agent.match("").match == MatchKind.FALLBACK

    def test_custom_knowledge_base_is_used(self) -> None:
        bundle = ResponseBundle(answer="Tap tempo", topic="tempo")
        kb = KnowledgeBase({"tempo": bundle}, [("bpm", "tempo")], FALLBACK_RESPONSE)
        agent = KnowledgeAgent(kb)
        assert agent.resolve("set the BPM") is bundle


# =============================================================================
# Lifecycle Tests
# =============================================================================


class TestKnowledgeAgentLifecycle:
    """Tests for init/shutdown and match provenance."""

    @pytest.mark.asyncio
    async def test_init_and_shutdown(self, agent: KnowledgeAgent) -> None:
        await agent.init()
        assert agent.resolve("help me with automation").topic == "automation"
        await agent.shutdown()

    def test_match_reports_topic_phrase(self, agent: KnowledgeAgent) -> None:
        resolution = agent.match("help me with automation")
        assert resolution.match == MatchKind.TOPIC
        assert resolution.matched_text == "automation"

    def test_match_reports_fallback(self, agent: KnowledgeAgent) -> None:
        resolution = agent.match("tell me a joke")
        assert resolution.match == MatchKind.FALLBACK
        assert resolution.topic is None
        assert "I'm here to help you with Bitwig Studio" in resolution.bundle.answer
