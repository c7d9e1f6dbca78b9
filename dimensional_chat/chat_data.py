"""Per-user chat roster: one thread per character or group, with saved messages.

Every new user starts from a deep copy of DEFAULT_THREADS. Saving a message
refreshes the thread preview (speaker-prefixed in groups, cut to 20 chars).
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

PREVIEW_MAX_CHARS = 20
EMPTY_PREVIEW = "暂无消息"
DEFAULT_AVATAR = "/image/default.jpg"


class ChatMessage(BaseModel):
    type: Literal["user", "bot"]
    text: str
    name: str | None = None
    time: str = ""


class ChatThread(BaseModel):
    avatar: str = DEFAULT_AVATAR
    preview: str = ""
    unread: int = 0
    group: bool = False
    anonymous: bool = False
    prayer: bool = False
    messages: list[ChatMessage] = Field(default_factory=list)


def _bot(name: str, text: str, time: str) -> ChatMessage:
    return ChatMessage(type="bot", name=name, text=text, time=time)


DEFAULT_THREADS: dict[str, ChatThread] = {
    "克莱恩": ChatThread(
        avatar="/image/kelaien.jpg",
        preview="今天又要值夜班了...",
        messages=[ChatMessage(
            type="bot",
            text="你好，我是克莱恩·莫雷蒂，值夜者小队成员。今天又要值夜班了，不过周薪3镑还算不错。",
            time="刚刚",
        )],
    ),
    "愚者": ChatThread(
        avatar="/image/yuzhe.jpg",
        preview="（灰雾轻轻翻涌）命运从不规定晚餐的菜单，...",
        prayer=True,
    ),
    "吴邪": ChatThread(avatar="/image/wuxie.jpg", preview="又发现了一个新线索！"),
    "张起灵": ChatThread(avatar="/image/zhangqiling.jpg", preview="..."),
    "韩立": ChatThread(avatar="/image/hanli.jpg", preview="（神色淡然）天南坊市鱼龙混杂，却也因此消..."),
    "塔罗会": ChatThread(
        avatar="/image/yuzhe.jpg",
        preview="（语气略显激动）我们在探索一处遗迹时，发...",
        unread=3,
        group=True,
        anonymous=True,
        messages=[
            _bot("匿名", "期待听到大家的冒险故事！", "10:30"),
            _bot("匿名", "我在海上发现了一些有趣的线索...", "10:25"),
            _bot("匿名", "白银城探索队有了新发现！", "09:45"),
        ],
    ),
    "铁三角": ChatThread(
        avatar="/image/tiesanjiao.jpg",
        preview="张起灵：危险。",
        unread=5,
        group=True,
        messages=[
            _bot("王胖子", "这位朋友什么来头？看着面生啊！", "11:15"),
            _bot("吴邪", "你是从哪里知道我们的事的？", "11:10"),
            _bot("张起灵", "...", "11:05"),
        ],
    ),
    "嫩牛六方": ChatThread(
        avatar="/image/nenniuliufang.jpg",
        preview="黑瞎子：新面孔？有点意思",
        unread=2,
        group=True,
        messages=[
            _bot("黑瞎子", "新面孔？有点意思，哪条道上的？", "14:20"),
            _bot("解雨臣", "这位朋友，能进入这个群聊不简单啊", "14:15"),
            _bot("霍秀秀", "你是怎么认识我们的？", "13:50"),
        ],
    ),
    "神灵聚会": ChatThread(
        avatar="/image/yuzhe.jpg",
        preview="[匿名]：命运的齿轮开始转动...",
        unread=1,
        group=True,
        anonymous=True,
        messages=[
            _bot("匿名", "命运的齿轮开始转动...", "23:30"),
            _bot("匿名", "凡人的祈祷总是如此有趣", "23:25"),
            _bot("匿名", "新的纪元即将开启", "23:20"),
        ],
    ),
}


def make_preview(thread: ChatThread) -> str:
    if not thread.messages:
        return EMPTY_PREVIEW
    last = thread.messages[-1]
    text = last.text
    if thread.group and last.name:
        text = f"{last.name}：{text}"
    if len(text) > PREVIEW_MAX_CHARS:
        return text[:PREVIEW_MAX_CHARS] + "..."
    return text


class ChatDataStore:
    def __init__(self) -> None:
        self._users: dict[str, dict[str, ChatThread]] = {}

    def threads(self, user_id: str) -> dict[str, ChatThread]:
        """All threads for user_id, seeding the default roster on first access."""
        threads = self._users.get(user_id)
        if threads is None:
            threads = {name: t.model_copy(deep=True) for name, t in DEFAULT_THREADS.items()}
            self._users[user_id] = threads
        return threads

    def thread(self, user_id: str, character: str) -> ChatThread | None:
        return self.threads(user_id).get(character)

    def add_message(self, user_id: str, character: str, message: ChatMessage) -> ChatThread:
        """Append a message, creating the thread if the character is new."""
        threads = self.threads(user_id)
        thread = threads.get(character)
        if thread is None:
            thread = ChatThread(preview=message.text)
            threads[character] = thread
        thread.messages.append(message)
        thread.preview = make_preview(thread)
        return thread

    def clear(self, user_id: str, character: str) -> bool:
        """Empty a thread's messages. Returns False if the thread does not exist."""
        thread = self.thread(user_id, character)
        if thread is None:
            return False
        thread.messages = []
        thread.preview = EMPTY_PREVIEW
        thread.unread = 0
        logger.info(f"Cleared chat {character} for user={user_id}")
        return True

    def forget_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    def __len__(self) -> int:
        return len(self._users)
