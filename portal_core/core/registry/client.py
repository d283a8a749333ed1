"""
注册中心客户端：门户与注册中心（S0）的唯一交互点
- discover：GET /discover 拉取目录；任何失败都返回空目录（“连不上”即“无服务”）；
- fetch_catalog：同一请求，失败时抛 RegistryUnreachable，供需要显式连通性信号的调用方使用；
- toggle：POST /admin/toggle 切换服务可用性；单向，不修改本地状态，只能通过下一次发现观察结果。
"""
import json
import logging
from typing import Any, Optional, Union

import urllib3

from ..config import PortalSettings, load_settings
from ..errors import RegistryUnreachable
from ..http_client import send
from .catalog import Catalog, ServiceId

logger = logging.getLogger("portal.registry")


class RegistryClient:
    def __init__(self, settings: Optional[PortalSettings] = None, pool: Optional[Any] = None):
        self.settings = settings or load_settings()
        self._pool = pool

    @property
    def base_url(self) -> str:
        return self.settings.registry_url.rstrip("/")

    def fetch_catalog(self) -> Catalog:
        """拉取目录；非 200、传输失败或响应非法时抛 RegistryUnreachable。"""
        url = f"{self.base_url}/discover"
        try:
            result = send("GET", url, timeout=self.settings.http_timeout_sec, pool=self._pool)
        except urllib3.exceptions.HTTPError as e:
            raise RegistryUnreachable(str(e)) from e
        if result.status != 200:
            raise RegistryUnreachable(f"status={result.status}")
        try:
            return Catalog.from_payload(result.json())
        except (ValueError, UnicodeDecodeError) as e:
            raise RegistryUnreachable(f"invalid discover payload: {e}") from e

    def discover(self) -> Catalog:
        """拉取目录；注册中心不可达时返回空目录，不抛异常。"""
        try:
            return self.fetch_catalog()
        except RegistryUnreachable as e:
            logger.warning("Registry down url=%s err=%s", self.base_url, e.reason)
            return Catalog.empty()

    def toggle(self, name: Union[str, ServiceId]) -> None:
        """请求注册中心翻转服务可用性；不读取响应，失败仅打日志。"""
        url = f"{self.base_url}/admin/toggle"
        body = json.dumps({"name": str(name)}).encode("utf-8")
        try:
            result = send(
                "POST",
                url,
                body=body,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.http_timeout_sec,
                pool=self._pool,
            )
        except urllib3.exceptions.HTTPError as e:
            logger.warning("registry toggle failed name=%s err=%s", name, e)
            return
        logger.info("registry toggle sent name=%s status=%s", name, result.status)


__all__ = ["RegistryClient"]
