"""引擎异常。

解释器本身从不向调用方抛出异常（格式错误的脚本一律降级为 0 / false / 空操作），
这里的异常只用于内容加载失败与调试模式下的链深度断言。
"""


class TracenError(Exception):
    """tracen 所有异常的基类。"""


class ContentLoadError(TracenError):
    """内容文件无法读取或结构无法解析。"""


class ChainDepthExceeded(TracenError):
    """事件链式跳转超过配置的最大深度（仅在 debug 模式下抛出）。"""

    def __init__(self, event_id: str, depth: int):
        super().__init__(f"事件链深度超限: {event_id} (depth={depth})")
        self.event_id = event_id
        self.depth = depth
