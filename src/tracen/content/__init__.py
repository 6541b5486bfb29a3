"""内容加载。"""

from tracen.content.loader import ContentBundle, load_content, parse_content

__all__ = ["ContentBundle", "load_content", "parse_content"]
