"""
HAR 抓包文件解析

从浏览器导出的 HAR 文件中提取 WebSocket 录像，每个游戏连接对应一局录像

HAR 结构（只列出用到的字段）:
    {
      "log": {
        "entries": [
          {
            "request": {"url": "wss://.../play?gameId=..."},
            "_webSocketMessages": [
              {"type": "send",    "time": 1578300000.1, "opcode": 2, "data": "<base64>"},
              {"type": "receive", "time": 1578300000.2, "opcode": 2, "data": "<base64>"}
            ]
          }
        ]
      }
    }

- type=send 是客户端发出的消息，丢弃
- 其余消息都是服务器下行帧，base64 解码后按原顺序保存
- 录制时间戳全部丢弃，回放节奏由调度器决定
"""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import List

from .config import PLAY_PATH
from .errors import LoadError
from .models import Recording


logger = logging.getLogger("packet_replayer.capture")


def _decode_payload(data, entry_index: int, msg_index: int) -> bytes:
    """base64 解码单条消息"""
    if not isinstance(data, str):
        raise LoadError(f"entry {entry_index} 消息 {msg_index}: data 字段不是字符串")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise LoadError(f"entry {entry_index} 消息 {msg_index}: base64 解码失败: {e}") from e


def parse_recordings(archive: dict, marker: str = PLAY_PATH) -> List[Recording]:
    """
    从已解码的 HAR 文档中提取所有非空录像

    Args:
        archive: json.load 得到的 HAR 文档
        marker: 游戏连接 URL 中包含的路径标记

    Returns:
        按抓包顺序排列的录像列表（不含空录像）
    """
    try:
        entries = archive["log"]["entries"]
    except (KeyError, TypeError) as e:
        raise LoadError(f"抓包文件缺少 log.entries: {e}") from e
    if not isinstance(entries, list):
        raise LoadError("log.entries 不是列表")

    recordings = []
    for entry_index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise LoadError(f"entry {entry_index} 不是对象")

        request = entry.get("request") or {}
        if not isinstance(request, dict):
            raise LoadError(f"entry {entry_index}: request 不是对象")
        url = request.get("url", "")
        if not isinstance(url, str):
            raise LoadError(f"entry {entry_index}: request.url 不是字符串")
        if marker not in url:
            continue

        messages = entry.get("_webSocketMessages") or []
        if not isinstance(messages, list):
            raise LoadError(f"entry {entry_index}: _webSocketMessages 不是列表")
        frames = []
        for msg_index, msg in enumerate(messages):
            if not isinstance(msg, dict):
                raise LoadError(f"entry {entry_index} 消息 {msg_index} 不是对象")
            if msg.get("type") == "send":
                continue
            frames.append(_decode_payload(msg.get("data"), entry_index, msg_index))

        if not frames:
            continue

        recordings.append(Recording(frames=tuple(frames), url=url, entry_index=entry_index))

    return recordings


def load_recordings(path: str, marker: str = PLAY_PATH) -> List[Recording]:
    """读取 HAR 文件并提取所有非空录像"""
    capture_path = Path(path)
    try:
        with open(capture_path, 'r', encoding='utf-8') as f:
            archive = json.load(f)
    except OSError as e:
        raise LoadError(f"无法读取抓包文件 {capture_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise LoadError(f"抓包文件不是有效的 UTF-8 {capture_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise LoadError(f"抓包文件不是有效的 JSON {capture_path}: {e}") from e

    recordings = parse_recordings(archive, marker)
    logger.info(f"[Capture] {capture_path.name}: 共 {len(recordings)} 局非空录像")
    return recordings


def select_recording(recordings: List[Recording], index: int) -> Recording:
    """按序号选择录像，越界时抛出 LoadError"""
    if not recordings:
        raise LoadError("抓包文件中没有包含任何帧的录像")
    if index < 0 or index >= len(recordings):
        raise LoadError(f"录像序号 {index} 越界（共 {len(recordings)} 局非空录像）")
    return recordings[index]


def load_recording(path: str, index: int, marker: str = PLAY_PATH) -> Recording:
    """
    启动时加载要回放的录像

    Args:
        path: HAR 文件路径
        index: 非空录像中的序号
        marker: 游戏连接 URL 标记

    Returns:
        选中的录像（只读，所有会话共享）
    """
    recording = select_recording(load_recordings(path, marker), index)
    logger.info(f"[Capture] 选中第 {index} 局: {len(recording)} 帧, url={recording.url}")
    return recording
