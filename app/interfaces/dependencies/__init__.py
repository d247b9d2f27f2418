"""依赖模块"""

from .catalog_headers import get_forwarded_headers, get_self_link_base

__all__ = [
    "get_forwarded_headers",
    "get_self_link_base",
]
