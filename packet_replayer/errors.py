"""
回放引擎异常定义
"""


class ReplayError(Exception):
    """回放服务器异常基类"""


class LoadError(ReplayError):
    """抓包文件缺失、无法解析，或录像序号越界（启动时致命）"""


class ProtocolError(ReplayError):
    """控制消息类型未知或消息体格式错误（单条消息丢弃即可）"""


class TransportError(ReplayError):
    """发送过程中连接被异常关闭（按正常断开处理）"""
