"""
回放服务器核心类

持有录像、会话集合和调度器；HTTP/WebSocket 处理器只调用这里的方法
"""

import logging
from functools import partial
from pathlib import Path
from typing import Optional

from .capture_loader import load_recording
from .config import (
    BASE_RATE,
    CONNECT_ADDRESS,
    DEFAULT_GAME_INDEX,
    FAST_FORWARD_RATE,
    FIND_GAME_DATA,
    FIND_GAME_ID,
    FIND_GAME_ZONE,
    PACKET_INTERVAL,
    PLAY_PATH,
    TICK_INTERVAL,
    USE_HTTPS,
)
from .control_protocol import decode_message
from .errors import LoadError, ProtocolError, TransportError
from .models import ControlIntent, Recording
from .registry import SessionRegistry
from .scheduler import TickScheduler
from .session import PlaybackSession


logger = logging.getLogger("packet_replayer.server")


class ReplayServer:
    """抓包回放服务器核心类"""

    def __init__(self, capture_path: str, game_index: int = DEFAULT_GAME_INDEX,
                 marker: str = PLAY_PATH,
                 connect_address: str = CONNECT_ADDRESS,
                 use_https: bool = USE_HTTPS,
                 tick_interval: float = TICK_INTERVAL,
                 packet_interval: float = PACKET_INTERVAL,
                 fast_forward_rate: float = FAST_FORWARD_RATE):
        self.capture_path = Path(capture_path)
        self.game_index = game_index
        self.marker = marker
        self.connect_address = connect_address
        self.use_https = use_https
        self.packet_interval = packet_interval
        self.fast_forward_rate = fast_forward_rate

        self.recording: Optional[Recording] = None
        self.registry = SessionRegistry()
        self.scheduler = TickScheduler(self.registry, tick_interval)
        self._session_counter = 0

    @property
    def loaded(self) -> bool:
        return self.recording is not None

    def load(self) -> Recording:
        """加载录像（启动时调用一次），失败抛出 LoadError"""
        self.recording = load_recording(str(self.capture_path), self.game_index, self.marker)
        return self.recording

    def open_session(self, connection, session_id: Optional[str] = None) -> PlaybackSession:
        """为新连接创建并注册会话

        connection 发送失败时回调 on_lost，会话随之注销
        """
        if self.recording is None:
            raise LoadError("录像尚未加载")

        self._session_counter += 1
        session = PlaybackSession(
            session_id or f"s{self._session_counter}",
            self.recording,
            connection,
            registry=self.registry,
            packet_interval=self.packet_interval,
            base_rate=BASE_RATE,
            fast_forward_rate=self.fast_forward_rate,
        )
        connection.on_lost = partial(self.handle_transport_error, session)
        self.registry.register(session)
        return session

    def close_session(self, session: PlaybackSession) -> bool:
        """连接断开时注销会话"""
        return self.registry.unregister(session)

    def handle_transport_error(self, session: PlaybackSession, error: TransportError):
        """发送中连接断开，按正常断开处理，不重发"""
        logger.debug(f"[WS] {session.session_id} 连接中断，注销会话: {error}")
        self.close_session(session)

    def handle_message(self, session: PlaybackSession, data: bytes) -> Optional[ControlIntent]:
        """解码客户端消息并应用到会话；格式错误的消息直接丢弃"""
        if session.exhausted:
            return None

        try:
            intent = decode_message(data)
        except ProtocolError as e:
            logger.debug(f"[WS] {session.session_id} 丢弃无效消息: {e}")
            return None

        session.apply(intent)
        return intent

    def close_all(self):
        """关闭所有连接（服务器停止时调用）"""
        for session in self.registry.sessions():
            session.connection.close()
            self.registry.unregister(session)

    def get_find_game_response(self) -> dict:
        """撮合接口的固定响应，指向本机回放地址"""
        return {
            "res": [
                {
                    "zone": FIND_GAME_ZONE,
                    "data": FIND_GAME_DATA,
                    "gameId": FIND_GAME_ID,
                    "useHttps": self.use_https,
                    "hosts": [self.connect_address],
                    "addrs": [self.connect_address],
                },
            ],
        }

    def get_status(self) -> dict:
        """获取回放状态"""
        result = {
            "capture": str(self.capture_path),
            "loaded": self.loaded,
            "gameIndex": self.game_index,
            "tickInterval": self.scheduler.interval,
            "packetInterval": self.packet_interval,
            "fastForwardRate": self.fast_forward_rate,
            "schedulerRunning": self.scheduler.running,
            "sessions": self.registry.snapshot(),
        }
        if self.recording is not None:
            result["recording"] = {
                "url": self.recording.url,
                "entryIndex": self.recording.entry_index,
                "frames": len(self.recording),
            }
        return result
