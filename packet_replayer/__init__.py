"""
抓包回放服务器模块
"""

from .config import DEFAULT_CAPTURE_FILE, DEFAULT_GAME_INDEX, HOST, PORT
from .errors import ReplayError, LoadError, ProtocolError, TransportError
from .models import (
    Recording,
    InputIntent,
    EmoteIntent,
    DropItemIntent,
    SpectateIntent,
)
from .capture_loader import (
    parse_recordings,
    load_recordings,
    select_recording,
    load_recording,
)
from .control_protocol import MsgType, decode_message, encode_message
from .session import PlaybackSession, SessionState
from .registry import SessionRegistry
from .scheduler import TickScheduler
from .connection import WebSocketConnection
from .replay_server import ReplayServer
from .handlers import (
    REPLAY_SERVER,
    handle_find_game,
    handle_get_status,
    handle_websocket,
)
from .app import create_app, main

__all__ = [
    'DEFAULT_CAPTURE_FILE',
    'DEFAULT_GAME_INDEX',
    'HOST',
    'PORT',
    'ReplayError',
    'LoadError',
    'ProtocolError',
    'TransportError',
    'Recording',
    'InputIntent',
    'EmoteIntent',
    'DropItemIntent',
    'SpectateIntent',
    'parse_recordings',
    'load_recordings',
    'select_recording',
    'load_recording',
    'MsgType',
    'decode_message',
    'encode_message',
    'PlaybackSession',
    'SessionState',
    'SessionRegistry',
    'TickScheduler',
    'WebSocketConnection',
    'ReplayServer',
    'REPLAY_SERVER',
    'handle_find_game',
    'handle_get_status',
    'handle_websocket',
    'create_app',
    'main',
]
