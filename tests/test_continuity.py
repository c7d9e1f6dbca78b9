"""Tests for the keep-or-reselect continuity decision."""

import pytest

from dimensional_chat.continuity import continuation_speaker, is_continuation, should_continue
from dimensional_chat.models import ConversationContext

NEUTRAL_LONG = "今天天气不错适合出门走走"


def _ctx(count: int = 2, speaker: str | None = "张起灵", topic: str | None = None,
         last: str = "我们去哪里") -> ConversationContext:
    return ConversationContext(
        current_speaker=speaker, topic=topic, last_user_message=last, message_count=count,
    )


# ── is_continuation ──────────────────────────────────────────


def test_short_message_is_continuation():
    assert is_continuation("好的吧", "") is True
    assert is_continuation("12345", "") is True


def test_indicator_phrase_is_continuation():
    assert is_continuation("原来如此我明白了你的意思", "") is True
    assert is_continuation("接着说说后面发生的事情", "") is True


def test_previous_question_is_continuation():
    assert is_continuation("我是从很远的地方来的旅人", "你是谁？") is True
    assert is_continuation("我是从很远的地方来的旅人", "who are you? ") is True


def test_question_mark_must_end_previous_message():
    assert is_continuation(NEUTRAL_LONG, "你是谁？我很好奇") is False


def test_neutral_long_message_is_not_continuation():
    assert is_continuation(NEUTRAL_LONG, "随便聊聊吧") is False


# ── should_continue ──────────────────────────────────────────


@pytest.mark.parametrize("count", [0, 1])
@pytest.mark.parametrize("message", ["然后呢", "嗯", "我们再说说考古吧朋友们"])
def test_early_conversation_always_reselects(count, message):
    ctx = _ctx(count=count, topic="考古", last="你是谁？")
    assert should_continue(ctx, message) is False


def test_mention_forces_reselect_even_for_current_speaker():
    ctx = _ctx(speaker="张起灵", topic="小哥")
    assert should_continue(ctx, "小哥") is False


def test_same_topic_continues():
    ctx = _ctx(topic="考古", last="随便聊聊吧")
    assert should_continue(ctx, "我们再说说考古这件事情吧朋友") is True


def test_different_topic_without_other_signal_reselects():
    ctx = _ctx(topic="考古", last="随便聊聊吧")
    assert should_continue(ctx, "古墓里面有很多机关陷阱") is False


def test_continuation_indicator_continues():
    ctx = _ctx(speaker="张起灵")
    assert should_continue(ctx, "然后呢") is True
    assert continuation_speaker(ctx) == "张起灵"


def test_neutral_message_reselects():
    assert should_continue(_ctx(last="随便聊聊吧"), NEUTRAL_LONG) is False


def test_continuation_speaker_absent():
    assert continuation_speaker(ConversationContext()) is None
