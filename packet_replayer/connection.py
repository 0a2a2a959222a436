"""
WebSocket 连接适配

会话只调用同步的 send()/close()；实际发送由每个连接的写协程按顺序完成
"""

import asyncio
import logging
from typing import Callable, Optional

from aiohttp import web

from .errors import TransportError


logger = logging.getLogger("packet_replayer.connection")

# 发送队列中的关闭标记
_CLOSE = object()


class WebSocketConnection:
    """把 aiohttp WebSocketResponse 包装成非阻塞的发送接口"""

    def __init__(self, ws: web.WebSocketResponse, name: str = "",
                 on_lost: Optional[Callable[[TransportError], None]] = None):
        self.ws = ws
        self.name = name
        self.on_lost = on_lost
        self.frames_sent = 0
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closing = False
        self._task: Optional[asyncio.Task] = None

    @property
    def closing(self) -> bool:
        return self._closing

    def start(self):
        self._task = asyncio.create_task(self._writer())

    def send(self, frame: bytes):
        if self._closing:
            return
        self._queue.put_nowait(frame)

    def close(self):
        """发完已排队的帧后关闭连接（可重复调用）"""
        if self._closing:
            return
        self._closing = True
        self._queue.put_nowait(_CLOSE)

    async def _writer(self):
        try:
            while True:
                frame = await self._queue.get()
                if frame is _CLOSE:
                    await self.ws.close()
                    return
                await self.ws.send_bytes(frame)
                self.frames_sent += 1
        except ConnectionResetError as e:
            # 对端已断开，丢弃未发送的帧
            self._closing = True
            logger.info(f"[WS] {self.name} 发送失败，连接已断开: {e}")
            if self.on_lost is not None:
                self.on_lost(TransportError(str(e)))

    async def wait_closed(self, timeout: float = 1.0):
        """停止写协程（读循环结束后调用）

        已请求关闭时先等写协程发完剩余帧并完成关闭握手，否则直接取消
        """
        if self._task is None or self._task.done():
            self._closing = True
            return
        if self._closing:
            await asyncio.wait({self._task}, timeout=timeout)
        self._closing = True
        if self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
