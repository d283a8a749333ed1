"""
门户 HTTP 传输：urllib3 连接池复用，注册中心与各服务共用。
- 连接池：进程级单例，懒加载；测试可注入假连接池。
- 不重试（retries=False）：每次调用独立，失败由上层分类处理。
"""
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import urllib3

from .config import PortalSettings, load_settings

logger = logging.getLogger("portal.http_client")

CONNECT_TIMEOUT_SEC = 5.0

# 连接池单例（懒加载）
_pool: Optional[urllib3.PoolManager] = None
_pool_lock = threading.Lock()


@dataclass(frozen=True)
class HttpResult:
    status: int
    data: bytes

    def json(self) -> Any:
        """按 UTF-8 解析 JSON；空 body 返回 None。"""
        if not self.data or not self.data.strip():
            return None
        return json.loads(self.data.decode("utf-8"))


def get_pool(settings: Optional[PortalSettings] = None) -> urllib3.PoolManager:
    """获取或创建全局连接池。"""
    global _pool
    if _pool is not None:
        return _pool
    with _pool_lock:
        if _pool is not None:
            return _pool
        settings = settings or load_settings()
        _pool = urllib3.PoolManager(num_pools=settings.pool_num_pools, maxsize=settings.pool_maxsize, block=False)
        logger.info("portal http pool created num_pools=%s maxsize=%s", settings.pool_num_pools, settings.pool_maxsize)
        return _pool


def send(
    method: str,
    url: str,
    body: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 10.0,
    pool: Optional[Any] = None,
) -> HttpResult:
    """
    发起单次请求，返回 HttpResult(status, data)。
    传输层异常（连接拒绝、超时等）原样抛出 urllib3.exceptions.HTTPError，由调用方归类。
    """
    pool = pool if pool is not None else get_pool()
    resp = pool.request(
        method.upper(),
        url,
        body=body,
        headers=dict(headers or {}),
        timeout=urllib3.util.Timeout(connect=min(CONNECT_TIMEOUT_SEC, timeout), read=timeout),
        retries=False,
    )
    return HttpResult(status=resp.status, data=resp.data or b"")


__all__ = ["HttpResult", "get_pool", "send"]
