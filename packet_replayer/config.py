"""
配置常量
"""

# 服务器配置
HOST = "0.0.0.0"
PORT = 8001

# 撮合接口返回给客户端的连接地址
CONNECT_ADDRESS = "127.0.0.1:8001"
USE_HTTPS = False

# 抓包文件配置
DEFAULT_CAPTURE_FILE = "../reference/recorded-packets/surviv.io20200106_l.har"
# 一个抓包文件里可能录了多局游戏，这里选第几局（只计非空录像）
DEFAULT_GAME_INDEX = 3
# 录像连接的 URL 标记
PLAY_PATH = "/play"

# 回放节奏配置
TICK_INTERVAL = 0.001        # 调度器周期（秒）
PACKET_INTERVAL = 0.03       # 累计时间超过该值发送下一帧
BASE_RATE = 1.0
FAST_FORWARD_RATE = 10.0

# WebSocket 空闲超时（秒）
IDLE_TIMEOUT = 30

# 撮合接口的固定描述
FIND_GAME_ZONE = "help"
FIND_GAME_DATA = "i'm being held hostage"
FIND_GAME_ID = "by ioman"
