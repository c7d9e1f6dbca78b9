"""Tests for the per-user chat roster."""

from dimensional_chat.chat_data import (
    DEFAULT_THREADS,
    EMPTY_PREVIEW,
    ChatDataStore,
    ChatMessage,
    ChatThread,
    make_preview,
)


def test_new_user_gets_default_roster():
    store = ChatDataStore()
    threads = store.threads("u1")
    assert list(threads) == list(DEFAULT_THREADS)
    assert threads["铁三角"].group is True
    assert threads["愚者"].prayer is True


def test_users_do_not_share_threads():
    store = ChatDataStore()
    store.add_message("u1", "吴邪", ChatMessage(type="user", text="你好"))
    assert store.thread("u2", "吴邪").messages == []
    assert DEFAULT_THREADS["吴邪"].messages == []


def test_add_message_updates_preview():
    store = ChatDataStore()
    thread = store.add_message("u1", "吴邪", ChatMessage(type="bot", text="又发现了新线索"))
    assert thread.preview == "又发现了新线索"
    assert thread.messages[-1].text == "又发现了新线索"


def test_group_preview_has_speaker_prefix():
    store = ChatDataStore()
    thread = store.add_message("u1", "铁三角", ChatMessage(type="bot", name="张起灵", text="走。"))
    assert thread.preview == "张起灵：走。"


def test_long_preview_truncated():
    thread = ChatThread(messages=[ChatMessage(type="user", text="一" * 25)])
    assert make_preview(thread) == "一" * 20 + "..."


def test_empty_thread_preview():
    assert make_preview(ChatThread()) == EMPTY_PREVIEW


def test_add_message_creates_unknown_thread():
    store = ChatDataStore()
    thread = store.add_message("u1", "新角色", ChatMessage(type="user", text="hi"))
    assert store.thread("u1", "新角色") is thread
    assert len(thread.messages) == 1


def test_clear():
    store = ChatDataStore()
    assert store.clear("u1", "铁三角") is True
    thread = store.thread("u1", "铁三角")
    assert thread.messages == []
    assert thread.preview == EMPTY_PREVIEW
    assert thread.unread == 0
    assert store.clear("u1", "不存在") is False
