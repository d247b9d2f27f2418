from typing import Dict

from core.config import get_settings
from fastapi import Request


def get_forwarded_headers(request: Request) -> Dict[str, str]:
    """提取需要透传给元数据目录的请求头(会话/调用/授权分组)，目录侧据此执行授权策略"""
    allowed = get_settings().forwarded_headers
    return {
        name: value
        for name, value in request.headers.items()
        if name.lower() in allowed
    }


def get_self_link_base(request: Request) -> str:
    """资源自链接的基础地址，优先使用网关传递的X-Rewrite-URL"""
    rewrite_url = request.headers.get("x-rewrite-url")
    if rewrite_url:
        return rewrite_url.split("?", 1)[0]
    return str(request.url.replace(query=""))
