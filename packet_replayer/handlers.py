"""
HTTP 和 WebSocket 请求处理器
"""

import logging

from aiohttp import web, WSMsgType

from .config import IDLE_TIMEOUT
from .connection import WebSocketConnection
from .replay_server import ReplayServer


logger = logging.getLogger("packet_replayer.handlers")

# 应用上的回放服务器实例
REPLAY_SERVER = web.AppKey("replay_server", ReplayServer)


# ==================== REST API 处理器 ====================

async def handle_find_game(request: web.Request) -> web.Response:
    """POST /api/find_game - 撮合接口，始终返回本机回放地址"""
    replay_server = request.app[REPLAY_SERVER]
    # 请求体内容无关紧要，读掉即可
    await request.read()
    logger.info(f"[API] find_game 来自 {request.remote}")
    return web.json_response(replay_server.get_find_game_response())


async def handle_get_status(request: web.Request) -> web.Response:
    """GET /api/replay/status - 获取回放状态"""
    return web.json_response(request.app[REPLAY_SERVER].get_status())


# ==================== WebSocket 处理器 ====================

async def handle_websocket(request: web.Request) -> web.WebSocketResponse:
    """WebSocket /play - 回放录像"""
    replay_server = request.app[REPLAY_SERVER]

    ws = web.WebSocketResponse(heartbeat=IDLE_TIMEOUT / 2)
    await ws.prepare(request)

    connection = WebSocketConnection(ws)
    session = replay_server.open_session(connection)
    connection.name = session.session_id
    connection.start()

    logger.info(f"[WS] 新连接: {session.session_id} ({request.remote})")

    try:
        async for msg in ws:
            if msg.type == WSMsgType.BINARY:
                replay_server.handle_message(session, msg.data)

            elif msg.type == WSMsgType.TEXT:
                logger.debug(f"[WS] {session.session_id} 忽略文本消息")

            elif msg.type == WSMsgType.ERROR:
                logger.warning(f"[WS] {session.session_id} 错误: {ws.exception()}")

    finally:
        replay_server.close_session(session)
        await connection.wait_closed()
        logger.info(f"[WS] 断开连接: {session.session_id}，已发送 {session.cursor} 帧")

    return ws
