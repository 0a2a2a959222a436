"""
测试公共夹具
"""

import base64
import json

import pytest

from packet_replayer.models import Recording


def make_frames(prefix: bytes, count: int):
    return [prefix + bytes([i % 256, i // 256]) for i in range(count)]


def ws_entry(url, received, sent=()):
    """构造一个带 WebSocket 消息的 HAR entry"""
    messages = []
    for data in sent:
        messages.append({"type": "send", "time": 1.0, "opcode": 2,
                         "data": base64.b64encode(data).decode()})
    for data in received:
        messages.append({"type": "receive", "time": 2.0, "opcode": 2,
                         "data": base64.b64encode(data).decode()})
    return {"request": {"method": "GET", "url": url}, "_webSocketMessages": messages}


SHORT_FRAMES = [b"\x06F0", b"\x06F1", b"\x06F2"]
LONG_FRAMES = make_frames(b"\x06L", 400)


@pytest.fixture
def har_archive():
    """非空录像: [0] 3 帧, [1] 400 帧"""
    return {
        "log": {
            "version": "1.2",
            "entries": [
                {"request": {"method": "GET", "url": "https://example.com/index.html"}},
                ws_entry("wss://example.com/play?gameId=a", SHORT_FRAMES, sent=[b"\x03\x00"]),
                ws_entry("wss://example.com/play?gameId=b", [], sent=[b"\x03\x01"]),
                {"request": {"method": "GET", "url": "wss://example.com/play?gameId=c"}},
                ws_entry("wss://example.com/team", [b"\x01team"]),
                ws_entry("wss://example.com/play?gameId=d", LONG_FRAMES),
            ],
        }
    }


@pytest.fixture
def har_file(tmp_path, har_archive):
    path = tmp_path / "capture.har"
    path.write_text(json.dumps(har_archive), encoding="utf-8")
    return path


class FakeConnection:
    """记录发送内容的假连接"""

    def __init__(self):
        self.sent = []
        self.close_count = 0

    def send(self, frame: bytes):
        self.sent.append(frame)

    def close(self):
        self.close_count += 1


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def short_recording():
    return Recording(frames=tuple(SHORT_FRAMES), url="wss://example.com/play?gameId=a", entry_index=1)
