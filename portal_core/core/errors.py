"""
门户调用层错误分类
RegistryUnreachable：注册中心不可达（发现层内部消化，对外表现为空目录）；
ServiceUnavailable：目标服务未注册或状态非 UP，调用前即拒绝；
InvocationError：门控通过但下游调用本身失败（网络、状态码或响应格式）。
"""
from __future__ import annotations

from typing import Optional


class PortalError(Exception):
    """门户调用层错误基类。"""


class RegistryUnreachable(PortalError):
    """注册中心请求失败或响应无法解析。"""

    def __init__(self, reason: str) -> None:
        super().__init__(f"registry unreachable: {reason}")
        self.reason = reason


class ServiceUnavailable(PortalError):
    """服务不在目录中或状态为 DOWN；未发起任何下游请求。"""

    def __init__(self, service_id: str) -> None:
        super().__init__(f"Service {service_id} is currently unavailable.")
        self.service_id = service_id


class InvocationError(PortalError):
    """注册中心报告 UP，但下游调用仍然失败。"""

    def __init__(self, service_id: str, url: str, reason: str, status: Optional[int] = None) -> None:
        detail = f"status={status} " if status is not None else ""
        super().__init__(f"call to {service_id} failed: {detail}{reason}")
        self.service_id = service_id
        self.url = url
        self.reason = reason
        self.status = status


__all__ = ["PortalError", "RegistryUnreachable", "ServiceUnavailable", "InvocationError"]
