"""tracen：特雷森学园生活模拟的事件脚本引擎。"""

__version__ = "0.6.3"
