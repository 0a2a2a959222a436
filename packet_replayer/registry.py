"""
活动会话集合
"""

import logging
from typing import Callable, List

from .session import PlaybackSession


logger = logging.getLogger("packet_replayer.registry")


class SessionRegistry:
    """当前所有活动回放会话

    只持有会话引用，不负责会话生命周期；会话归连接所有
    """

    def __init__(self):
        self._sessions = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: PlaybackSession) -> bool:
        return session in self._sessions

    def register(self, session: PlaybackSession):
        self._sessions.add(session)
        logger.debug(f"[Registry] 注册 {session.session_id}，当前 {len(self._sessions)} 个会话")

    def unregister(self, session: PlaybackSession) -> bool:
        """移除会话；会话不存在时返回 False"""
        if session not in self._sessions:
            return False
        self._sessions.discard(session)
        logger.debug(f"[Registry] 注销 {session.session_id}，当前 {len(self._sessions)} 个会话")
        return True

    def for_each(self, visit: Callable[[PlaybackSession], None]):
        # 遍历快照，会话在遍历中注销自己不影响其他会话
        for session in list(self._sessions):
            if session in self._sessions:
                visit(session)

    def sessions(self) -> List[PlaybackSession]:
        return list(self._sessions)

    def snapshot(self) -> List[dict]:
        return [session.snapshot() for session in self._sessions]
