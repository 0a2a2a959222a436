"""
应用入口和初始化
"""

import argparse
import logging
import sys

from aiohttp import web
import aiohttp_cors

from .capture_loader import load_recordings
from .config import (
    CONNECT_ADDRESS,
    DEFAULT_CAPTURE_FILE,
    DEFAULT_GAME_INDEX,
    HOST,
    PLAY_PATH,
    PORT,
    USE_HTTPS,
)
from .errors import LoadError
from .handlers import (
    REPLAY_SERVER,
    handle_find_game,
    handle_get_status,
    handle_websocket,
)
from .replay_server import ReplayServer


logger = logging.getLogger("packet_replayer.app")


async def on_startup(app: web.Application):
    """启动调度器"""
    app[REPLAY_SERVER].scheduler.start()


async def on_shutdown(app: web.Application):
    """关闭所有回放连接"""
    app[REPLAY_SERVER].close_all()


async def on_cleanup(app: web.Application):
    """停止调度器"""
    await app[REPLAY_SERVER].scheduler.stop()


def create_app(replay_server: ReplayServer) -> web.Application:
    """创建 aiohttp 应用

    录像在这里加载，加载失败抛出 LoadError，服务器不会开始监听
    """
    if not replay_server.loaded:
        replay_server.load()

    app = web.Application()
    app[REPLAY_SERVER] = replay_server

    # 设置 CORS
    cors = aiohttp_cors.setup(app, defaults={
        "*": aiohttp_cors.ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*"
        )
    })

    api_routes = [
        web.post('/api/find_game', handle_find_game),
        web.get('/api/replay/status', handle_get_status),
    ]

    for route in api_routes:
        cors.add(app.router.add_route(route.method, route.path, route.handler))

    app.router.add_get(replay_server.marker, handle_websocket)

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    app.on_cleanup.append(on_cleanup)

    return app


def list_recordings(capture_path: str, marker: str = PLAY_PATH):
    """打印抓包文件中的所有非空录像"""
    recordings = load_recordings(capture_path, marker)
    for index, recording in enumerate(recordings):
        print(f"[{index}] {len(recording):6d} 帧  {recording.url}")


def main():
    """主入口"""
    parser = argparse.ArgumentParser(description='抓包回放服务器')
    parser.add_argument('--capture', default=DEFAULT_CAPTURE_FILE,
                        help=f'HAR 抓包文件 (默认: {DEFAULT_CAPTURE_FILE})')
    parser.add_argument('--game-index', type=int, default=DEFAULT_GAME_INDEX,
                        help=f'回放第几局非空录像 (默认: {DEFAULT_GAME_INDEX})')
    parser.add_argument('--host', default=HOST, help=f'监听地址 (默认: {HOST})')
    parser.add_argument('--port', type=int, default=PORT, help=f'监听端口 (默认: {PORT})')
    parser.add_argument('--address', default=CONNECT_ADDRESS,
                        help=f'撮合接口返回给客户端的地址 (默认: {CONNECT_ADDRESS})')
    parser.add_argument('--https', action='store_true', default=USE_HTTPS,
                        help='撮合接口中声明使用 https')
    parser.add_argument('--list-recordings', action='store_true',
                        help='列出抓包文件中的录像后退出')
    parser.add_argument('--verbose', action='store_true', help='输出调试日志')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        if args.list_recordings:
            list_recordings(args.capture)
            return

        replay_server = ReplayServer(
            args.capture,
            game_index=args.game_index,
            connect_address=args.address,
            use_https=args.https,
        )
        app = create_app(replay_server)
    except LoadError as e:
        logger.error(f"[Capture] 加载失败: {e}")
        sys.exit(1)

    print("=" * 60)
    print("抓包回放服务器")
    print("=" * 60)
    print(f"抓包文件: {args.capture}")
    print(f"录像: 第 {args.game_index} 局, {len(replay_server.recording)} 帧")
    print(f"监听地址: http://{args.host}:{args.port}")
    print(f"回放地址: ws://{args.host}:{args.port}{replay_server.marker}")
    print("按键: 上 = 快进, 右 = 单步, 开火 = 暂停/继续")
    print("=" * 60)

    web.run_app(app, host=args.host, port=args.port)


if __name__ == '__main__':
    main()
