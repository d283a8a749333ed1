"""
服务调用器：逻辑服务 id + 路径 -> 下游 HTTP 调用，按实时可用性门控。
每次调用都重新 discover()，不读取轮询缓存；目标缺失或非 UP 时直接抛 ServiceUnavailable，不发请求。
门控通过后的传输/状态码/解析失败统一为 InvocationError，与门控失败区分。
"""
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import urllib3

from .errors import InvocationError, ServiceUnavailable
from .http_client import send
from .monitor.client import emit_invocation, new_trace_id
from .registry.catalog import ServiceId
from .registry.client import RegistryClient

logger = logging.getLogger("portal.invoker")

DEFAULT_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class RequestOptions:
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    # 非 None 时按 JSON 编码；bytes/str 原样发送
    body: Any = None

    def encoded_body(self) -> Optional[bytes]:
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body, ensure_ascii=False).encode("utf-8")


def _merge_headers(custom: Optional[Dict[str, str]]) -> Dict[str, str]:
    """调用方头部覆盖默认头部（名称不区分大小写）。"""
    custom = custom or {}
    overridden = {k.lower() for k in custom}
    merged = {k: v for k, v in DEFAULT_HEADERS.items() if k.lower() not in overridden}
    merged.update(custom)
    return merged


class ServiceInvoker:
    def __init__(self, registry: RegistryClient, pool: Optional[Any] = None):
        self.registry = registry
        self._pool = pool

    def invoke(self, service_id: Union[str, ServiceId], path: str, options: Optional[RequestOptions] = None) -> Any:
        """门控调用；返回解析后的 JSON（空 body 为 None）。"""
        options = options or RequestOptions()
        name = str(service_id)
        method = options.method.upper()
        trace_id = new_trace_id()
        started = time.monotonic()

        catalog = self.registry.discover()
        sid = ServiceId.parse(service_id)
        descriptor = catalog.get(sid) if sid is not None else None
        if descriptor is None or not descriptor.is_up:
            emit_invocation(trace_id, name, method, path, "unavailable")
            raise ServiceUnavailable(name)

        url = f"{descriptor.url}{path}"
        headers = _merge_headers(options.headers)
        try:
            result = send(
                method,
                url,
                body=options.encoded_body(),
                headers=headers,
                timeout=self.registry.settings.http_timeout_sec,
                pool=self._pool,
            )
        except urllib3.exceptions.HTTPError as e:
            emit_invocation(trace_id, name, method, path, "error", started)
            raise InvocationError(name, url, f"transport error: {e}") from e

        if result.status >= 400:
            emit_invocation(trace_id, name, method, path, "error", started, result.status)
            raise InvocationError(name, url, "unexpected response status", status=result.status)
        try:
            data = result.json()
        except (ValueError, UnicodeDecodeError) as e:
            emit_invocation(trace_id, name, method, path, "error", started, result.status)
            raise InvocationError(name, url, f"malformed response: {e}", status=result.status) from e

        emit_invocation(trace_id, name, method, path, "ok", started, result.status)
        return data


__all__ = ["RequestOptions", "ServiceInvoker", "DEFAULT_HEADERS"]
