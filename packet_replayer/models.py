"""
数据模型
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple, Union


@dataclass(frozen=True)
class Recording:
    """一局录像：按顺序排列的服务器下行帧

    帧是原样抓到的二进制消息，回放时不做任何解析和修改
    """
    frames: Tuple[bytes, ...]
    url: str = ""
    entry_index: int = -1        # 在抓包文件 entries 中的位置

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> bytes:
        return self.frames[index]

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.frames)


class InputIntent(NamedTuple):
    """输入消息

    回放只关心三个按键：
    - move_up: 快进（按住生效）
    - move_right: 单步发送一帧（暂停时使用）
    - shoot_start: 切换暂停
    """
    seq: int = 0
    move_left: bool = False
    move_right: bool = False
    move_up: bool = False
    move_down: bool = False
    shoot_start: bool = False
    shoot_hold: bool = False
    portrait: bool = False
    touch_move_active: bool = False
    to_mouse_x: int = 0
    to_mouse_y: int = 0
    to_mouse_len: int = 0
    inputs: Tuple[int, ...] = ()
    use_item: int = 0

    @property
    def accelerate(self) -> bool:
        return self.move_up

    @property
    def step(self) -> bool:
        return self.move_right

    @property
    def toggle_pause(self) -> bool:
        return self.shoot_start


class EmoteIntent(NamedTuple):
    """表情消息（不影响回放）"""
    pos_x: float = 0.0
    pos_y: float = 0.0
    emote: int = 0
    is_ping: bool = False


class DropItemIntent(NamedTuple):
    """丢弃物品消息（不影响回放）"""
    item: int = 0
    weap_idx: int = 0


class SpectateIntent(NamedTuple):
    """观战消息（不影响回放）"""
    spec_begin: bool = False
    spec_next: bool = False
    spec_prev: bool = False
    spec_force: bool = False


ControlIntent = Union[InputIntent, EmoteIntent, DropItemIntent, SpectateIntent]
