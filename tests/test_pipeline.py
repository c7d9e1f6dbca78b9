"""Tests for the group and single-character chat pipelines, using StubCompletion."""

import asyncio
import random
from unittest.mock import patch

import pytest

from dimensional_chat.cache import ResponseCache
from dimensional_chat.llm import ServiceError
from dimensional_chat.models import HistoryEntry
from dimensional_chat.personas import (
    CHARACTER_PROMPTS,
    GENERIC_ASSISTANT_PROMPT,
    GROUP_FALLBACKS,
    SINGLE_FALLBACKS,
    UnknownGroupError,
)
from dimensional_chat.pipeline import process_group_message, process_single_message

USER = "user_test"


async def run_group(contexts, completion, message, *, group_id="铁三角", history=(), rng=None):
    return await process_group_message(
        user_id=USER,
        group_id=group_id,
        message=message,
        history=list(history),
        contexts=contexts,
        completion=completion,
        rng=rng or random.Random(7),
    )


# ── Group: speaker choice ────────────────────────────────────


async def test_mention_picks_the_named_member(contexts, stub_completion):
    llm = stub_completion(["胖爷我在这儿呢！"])
    result = await run_group(contexts, llm, "胖子，你怎么看？")

    assert result.speaker == "王胖子"
    assert result.reply == "胖爷我在这儿呢！"
    assert result.continued is False
    assert result.used_fallback is False
    system_prompt, messages, max_tokens = llm.calls[0]
    assert "你是《盗墓笔记》中的王胖子" in system_prompt
    assert max_tokens == 150
    assert messages == [{"role": "user", "content": "胖子，你怎么看？"}]


async def test_continuation_keeps_last_speaker(contexts, stub_completion):
    contexts.update(USER, "铁三角", "张起灵", "古墓里有东西")
    contexts.update(USER, "铁三角", "张起灵", "小心什么？")
    llm = stub_completion(["😀这是一个测试的超长句子完全超过限制长度看看会不会正确截断处理"])

    with patch("dimensional_chat.pipeline.select_speaker", side_effect=AssertionError("reselected")):
        result = await run_group(
            contexts, llm, "然后呢",
            history=[HistoryEntry(role="persona", speaker="张起灵", text="...")],
            rng=random.Random(0),
        )

    assert result.speaker == "张起灵"
    assert result.continued is True
    assert len(result.reply) <= 21
    assert llm.calls[0][2] == 30


async def test_mention_breaks_continuation(contexts, stub_completion):
    contexts.update(USER, "铁三角", "张起灵", "古墓里有东西")
    contexts.update(USER, "铁三角", "张起灵", "然后呢")
    llm = stub_completion(["天真在此"])
    result = await run_group(contexts, llm, "天真呢")
    assert result.speaker == "吴邪"
    assert result.continued is False


async def test_non_member_continuation_speaker_reselects(contexts, stub_completion):
    contexts.update(USER, "铁三角", "黑瞎子", "有意思")
    contexts.update(USER, "铁三角", "黑瞎子", "嗯")
    llm = stub_completion(["好家伙"])
    result = await run_group(contexts, llm, "嗯")
    assert result.speaker in ("王胖子", "吴邪", "张起灵")
    assert result.continued is False


async def test_unknown_group_raises(contexts, stub_completion):
    with pytest.raises(UnknownGroupError):
        await run_group(contexts, stub_completion([]), "你好", group_id="不存在的群")


# ── Group: context bookkeeping ───────────────────────────────


async def test_turn_updates_context(contexts, stub_completion):
    llm = stub_completion(["嘿嘿"])
    result = await run_group(contexts, llm, "胖子在吗")
    context = contexts.get(USER, "铁三角")
    assert context.current_speaker == result.speaker == "王胖子"
    assert context.message_count == 1
    assert context.last_user_message == "胖子在吗"
    assert context.topic == "胖子"
    assert [t.speaker for t in context.speaker_history] == ["王胖子"]


async def test_fallback_still_updates_context(contexts, stub_completion):
    llm = stub_completion([ServiceError("server_error", "HTTP 503")])
    result = await run_group(contexts, llm, "胖子在吗")

    assert result.used_fallback is True
    assert result.speaker == "王胖子"
    assert result.reply in GROUP_FALLBACKS["王胖子"]
    assert result.error == "DeepSeek服务暂时繁忙，请稍后再试"
    assert contexts.get(USER, "铁三角").message_count == 1


async def test_history_window_sends_last_eight(contexts, stub_completion):
    history = [
        HistoryEntry(role="user" if i % 2 == 0 else "persona", speaker=None if i % 2 == 0 else "吴邪", text=f"m{i}")
        for i in range(12)
    ]
    llm = stub_completion(["好"])
    await run_group(contexts, llm, "小哥", history=history)
    messages = llm.calls[0][1]
    assert len(messages) == 9
    assert messages[0]["content"] == "m4"
    assert messages[-1] == {"role": "user", "content": "小哥"}


async def test_concurrent_turns_on_same_group_are_both_recorded(contexts, stub_completion):
    llm = stub_completion(["一", "二"])
    await asyncio.gather(
        run_group(contexts, llm, "胖子在吗"),
        run_group(contexts, llm, "天真在吗"),
    )
    context = contexts.get(USER, "铁三角")
    assert context.message_count == 2
    assert {t.speaker for t in context.speaker_history} == {"王胖子", "吴邪"}


# ── Single character ─────────────────────────────────────────


async def run_single(character, message, llm, cache, history=()):
    return await process_single_message(
        character=character,
        message=message,
        history=list(history),
        completion=llm,
        cache=cache,
    )


async def test_single_uses_character_prompt(stub_completion):
    llm = stub_completion(["你好，我是克莱恩。"])
    result = await run_single("克莱恩", "你好", llm, ResponseCache())
    assert result.reply == "你好，我是克莱恩。"
    assert result.cached is False
    assert result.usage == {"total_tokens": len("你好，我是克莱恩。")}
    system_prompt, _, max_tokens = llm.calls[0]
    assert system_prompt == CHARACTER_PROMPTS["克莱恩"]
    assert max_tokens == 500


async def test_single_unknown_character_gets_generic_prompt(stub_completion):
    llm = stub_completion(["好的"])
    await run_single("路人甲", "你好", llm, ResponseCache())
    assert llm.calls[0][0] == GENERIC_ASSISTANT_PROMPT


async def test_single_second_identical_request_is_cached(stub_completion):
    cache = ResponseCache()
    llm = stub_completion(["第一次"])
    first = await run_single("吴邪", "三叔在哪", llm, cache)
    second = await run_single("吴邪", "三叔在哪", llm, cache)
    assert first.cached is False
    assert second.cached is True
    assert second.reply == "第一次"
    assert len(llm.calls) == 1


async def test_single_different_history_misses_cache(stub_completion):
    cache = ResponseCache()
    llm = stub_completion(["一", "二"])
    await run_single("吴邪", "你好", llm, cache)
    result = await run_single("吴邪", "你好", llm, cache, history=[HistoryEntry(role="user", text="早")])
    assert result.reply == "二"
    assert result.cached is False


async def test_single_fallback_is_not_cached(stub_completion):
    cache = ResponseCache()
    llm = stub_completion([ServiceError("auth", "HTTP 401"), "恢复了"])
    failed = await run_single("愚者", "赞美愚者", llm, cache)
    assert failed.used_fallback is True
    assert failed.reply == SINGLE_FALLBACKS["愚者"]
    assert failed.error == "API密钥错误，请检查配置"

    recovered = await run_single("愚者", "赞美愚者", llm, cache)
    assert recovered.reply == "恢复了"
    assert recovered.cached is False


class LastChoice:
    """Draws 0.0 and always picks the last option."""

    def random(self) -> float:
        return 0.0

    def choice(self, seq):
        return seq[-1]


async def test_rng_drives_selection_and_fallback_line(contexts, stub_completion):
    llm = stub_completion([ServiceError("timeout", "slow")])
    result = await run_group(contexts, llm, "今天天气不错", rng=LastChoice())
    assert result.speaker == "王胖子"
    assert result.reply == GROUP_FALLBACKS["王胖子"][-1]
