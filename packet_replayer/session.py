"""
回放会话状态机

每个 WebSocket 连接对应一个会话，独立维护自己的播放进度

状态只有两个: ACTIVE / EXHAUSTED
暂停、快进、单步都是叠加在 ACTIVE 上的标志，只影响推进速度
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .config import BASE_RATE, FAST_FORWARD_RATE, PACKET_INTERVAL
from .models import ControlIntent, InputIntent, Recording

if TYPE_CHECKING:
    from .registry import SessionRegistry


logger = logging.getLogger("packet_replayer.session")


class SessionState(Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


class PlaybackSession:
    """单个连接的回放会话

    connection 需要提供两个非阻塞方法:
    - send(frame: bytes): 把一帧放入发送缓冲
    - close(): 关闭连接
    ReplayServer 另外会设置 connection.on_lost，发送失败时回调
    """

    def __init__(self, session_id: str, recording: Recording, connection,
                 registry: Optional["SessionRegistry"] = None,
                 packet_interval: float = PACKET_INTERVAL,
                 base_rate: float = BASE_RATE,
                 fast_forward_rate: float = FAST_FORWARD_RATE):
        self.session_id = session_id
        self.recording = recording
        self.connection = connection
        self.registry = registry

        self.packet_interval = packet_interval
        self.base_rate = base_rate
        self.fast_forward_rate = fast_forward_rate

        self.state = SessionState.ACTIVE
        self.cursor = 0
        self.paused = False
        self.rate_multiplier = base_rate
        self.pending_single_step = False
        self.accumulated_time = 0.0

    @property
    def exhausted(self) -> bool:
        return self.state is SessionState.EXHAUSTED

    @property
    def fast_forward(self) -> bool:
        return self.rate_multiplier == self.fast_forward_rate

    def emit_next(self):
        """发送下一帧；录像播完则关闭连接并注销会话"""
        if self.exhausted:
            return

        if self.cursor >= len(self.recording):
            self._exhaust()
            return

        frame = self.recording[self.cursor]
        self.cursor += 1
        self.accumulated_time = 0.0
        self.connection.send(frame)

    def _exhaust(self):
        self.state = SessionState.EXHAUSTED
        logger.info(f"[Session] {self.session_id} 录像播放完毕，共 {self.cursor} 帧")
        self.connection.close()
        if self.registry is not None:
            self.registry.unregister(self)

    def advance(self, dt: float):
        """调度器每个 tick 调用一次，dt 为距上次 tick 的秒数"""
        if self.exhausted:
            return

        if self.pending_single_step:
            self.pending_single_step = False
            self.emit_next()
            return

        if self.paused:
            return

        self.accumulated_time += dt * self.rate_multiplier
        if self.accumulated_time > self.packet_interval:
            self.emit_next()

    def apply(self, intent: ControlIntent):
        """应用一条控制意图；只有 Input 消息影响回放"""
        if not isinstance(intent, InputIntent):
            return

        # 快进是"按住"语义，每条输入消息都重新计算
        self.rate_multiplier = self.fast_forward_rate if intent.accelerate else self.base_rate

        if intent.step:
            self.pending_single_step = True

        # 暂停是"按下"语义，切换
        if intent.toggle_pause:
            self.paused = not self.paused
            logger.debug(f"[Session] {self.session_id} {'暂停' if self.paused else '继续'} @ {self.cursor}")

    def snapshot(self) -> dict:
        """状态快照（状态接口使用）"""
        return {
            "id": self.session_id,
            "state": self.state.value,
            "cursor": self.cursor,
            "total": len(self.recording),
            "paused": self.paused,
            "fastForward": self.fast_forward,
            "pendingSingleStep": self.pending_single_step,
        }
