"""
客户端控制消息编解码

消息格式: 1 字节类型 + 定长消息体（小端序）

================================================================================
消息体结构
================================================================================

Input (3)
  偏移   大小   字段
  0x00   1      seq
  0x01   1      按键位: bit0 moveLeft, bit1 moveRight, bit2 moveUp, bit3 moveDown,
                        bit4 shootStart, bit5 shootHold, bit6 portrait, bit7 touchMoveActive
  0x02   2      toMouseDir.x (int16)
  0x04   2      toMouseDir.y (int16)
  0x06   1      toMouseLen
  0x07   1      inputCount
  0x08   N      inputs (每个 1 字节)
  0x08+N 2      useItem

Emote (13)
  0x00   4      pos.x (float32)
  0x04   4      pos.y (float32)
  0x08   2      emote
  0x0A   1      isPing

DropItem (12)
  0x00   2      item
  0x02   1      weapIdx

Spectate (11)
  0x00   1      位: bit0 begin, bit1 next, bit2 prev, bit3 force

除 Input 外的消息只解码不处理，用于区分"合法但无关"和"格式错误"
"""

import struct
from enum import IntEnum

from .errors import ProtocolError
from .models import (
    ControlIntent,
    DropItemIntent,
    EmoteIntent,
    InputIntent,
    SpectateIntent,
)


class MsgType(IntEnum):
    """消息类型"""
    INPUT = 3
    SPECTATE = 11
    DROP_ITEM = 12
    EMOTE = 13


INPUT_HEADER = struct.Struct('<BBhhBB')
INPUT_USE_ITEM = struct.Struct('<H')
EMOTE_BODY = struct.Struct('<ffHB')
DROP_ITEM_BODY = struct.Struct('<HB')
SPECTATE_BODY = struct.Struct('<B')

# Input 按键位顺序
INPUT_KEYS = (
    'move_left',
    'move_right',
    'move_up',
    'move_down',
    'shoot_start',
    'shoot_hold',
    'portrait',
    'touch_move_active',
)

SPECTATE_FLAGS = ('spec_begin', 'spec_next', 'spec_prev', 'spec_force')


def _unpack_bits(value: int, names) -> dict:
    return {name: bool(value & (1 << bit)) for bit, name in enumerate(names)}


def _pack_bits(intent, names) -> int:
    value = 0
    for bit, name in enumerate(names):
        if getattr(intent, name):
            value |= 1 << bit
    return value


def _unpack_exact(layout: struct.Struct, body: bytes, name: str) -> tuple:
    if len(body) != layout.size:
        raise ProtocolError(f"{name} 消息体长度错误: {len(body)} != {layout.size}")
    return layout.unpack(body)


def _decode_input(body: bytes) -> InputIntent:
    if len(body) < INPUT_HEADER.size:
        raise ProtocolError(f"Input 消息体过短: {len(body)}")

    seq, keys, mouse_x, mouse_y, mouse_len, input_count = INPUT_HEADER.unpack_from(body, 0)
    inputs_end = INPUT_HEADER.size + input_count
    expected = inputs_end + INPUT_USE_ITEM.size
    if len(body) != expected:
        raise ProtocolError(f"Input 消息体长度错误: {len(body)} != {expected}")

    inputs = tuple(body[INPUT_HEADER.size:inputs_end])
    use_item, = INPUT_USE_ITEM.unpack_from(body, inputs_end)

    return InputIntent(
        seq=seq,
        to_mouse_x=mouse_x,
        to_mouse_y=mouse_y,
        to_mouse_len=mouse_len,
        inputs=inputs,
        use_item=use_item,
        **_unpack_bits(keys, INPUT_KEYS),
    )


def _decode_emote(body: bytes) -> EmoteIntent:
    pos_x, pos_y, emote, is_ping = _unpack_exact(EMOTE_BODY, body, "Emote")
    return EmoteIntent(pos_x=pos_x, pos_y=pos_y, emote=emote, is_ping=bool(is_ping))


def _decode_drop_item(body: bytes) -> DropItemIntent:
    item, weap_idx = _unpack_exact(DROP_ITEM_BODY, body, "DropItem")
    return DropItemIntent(item=item, weap_idx=weap_idx)


def _decode_spectate(body: bytes) -> SpectateIntent:
    flags, = _unpack_exact(SPECTATE_BODY, body, "Spectate")
    return SpectateIntent(**_unpack_bits(flags, SPECTATE_FLAGS))


_DECODERS = {
    MsgType.INPUT: _decode_input,
    MsgType.EMOTE: _decode_emote,
    MsgType.DROP_ITEM: _decode_drop_item,
    MsgType.SPECTATE: _decode_spectate,
}


def decode_message(data: bytes) -> ControlIntent:
    """
    解码一条客户端消息

    Args:
        data: WebSocket 二进制消息

    Returns:
        InputIntent / EmoteIntent / DropItemIntent / SpectateIntent

    Raises:
        ProtocolError: 空消息、未知类型或消息体格式错误
    """
    if not data:
        raise ProtocolError("空消息")

    try:
        msg_type = MsgType(data[0])
    except ValueError:
        raise ProtocolError(f"未知消息类型: {data[0]}") from None

    return _DECODERS[msg_type](bytes(data[1:]))


def encode_message(intent: ControlIntent) -> bytes:
    """把控制意图编码为二进制消息（测试客户端使用）"""
    if isinstance(intent, InputIntent):
        header = bytes([MsgType.INPUT]) + INPUT_HEADER.pack(
            intent.seq,
            _pack_bits(intent, INPUT_KEYS),
            intent.to_mouse_x,
            intent.to_mouse_y,
            intent.to_mouse_len,
            len(intent.inputs),
        )
        return header + bytes(intent.inputs) + INPUT_USE_ITEM.pack(intent.use_item)

    if isinstance(intent, EmoteIntent):
        body = EMOTE_BODY.pack(intent.pos_x, intent.pos_y, intent.emote, int(intent.is_ping))
        return bytes([MsgType.EMOTE]) + body

    if isinstance(intent, DropItemIntent):
        return bytes([MsgType.DROP_ITEM]) + DROP_ITEM_BODY.pack(intent.item, intent.weap_idx)

    if isinstance(intent, SpectateIntent):
        return bytes([MsgType.SPECTATE]) + SPECTATE_BODY.pack(_pack_bits(intent, SPECTATE_FLAGS))

    raise TypeError(f"不支持的消息类型: {type(intent).__name__}")
