"""
全局 tick 调度器

固定周期驱动所有会话前进；dt 取实际经过的时间以吸收调度抖动
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .config import TICK_INTERVAL
from .registry import SessionRegistry
from .session import PlaybackSession


logger = logging.getLogger("packet_replayer.scheduler")


class TickScheduler:
    """回放调度器"""

    def __init__(self, registry: SessionRegistry, interval: float = TICK_INTERVAL,
                 clock: Callable[[], float] = time.monotonic):
        self.registry = registry
        self.interval = interval
        self.clock = clock
        self.ticks = 0
        self._last: Optional[float] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> float:
        """推进一次所有会话，返回本次的 dt"""
        now = self.clock()
        dt = 0.0 if self._last is None else now - self._last
        self._last = now
        self.ticks += 1

        def visit(session: PlaybackSession):
            try:
                session.advance(dt)
            except Exception:
                logger.exception(f"[Tick] 会话 {session.session_id} 推进失败")

        self.registry.for_each(visit)
        return dt

    async def _run(self):
        logger.info(f"[Tick] 调度器启动，周期 {self.interval * 1000:.1f}ms")
        try:
            while True:
                self.tick()
                await asyncio.sleep(self.interval)
        finally:
            logger.info(f"[Tick] 调度器停止，共 {self.ticks} 次 tick")

    def start(self):
        if self.running:
            return
        self._last = self.clock()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
