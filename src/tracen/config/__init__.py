"""引擎配置。"""

from tracen.config.settings import EngineConfig, load_config

__all__ = ["EngineConfig", "load_config"]
