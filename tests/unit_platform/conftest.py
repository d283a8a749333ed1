"""
门户核心层单元测试公共 fixture：路径、假连接池、注册中心/服务桩。
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import urllib3

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from portal_core.core.config import PortalSettings

REGISTRY = "http://registry.test"


class FakeResponse:
    def __init__(self, status: int = 200, data: bytes = b""):
        self.status = status
        self.data = data


class FakePool:
    """按 (method, url) 返回预设响应的 urllib3 连接池替身；记录全部请求。"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[Optional[bytes]], FakeResponse]] = {}
        self.calls: List[Dict[str, Any]] = []

    def reply(self, method: str, url: str, payload: Any = None, status: int = 200, raw: Optional[bytes] = None) -> None:
        data = raw if raw is not None else (b"" if payload is None else json.dumps(payload).encode("utf-8"))
        self.routes[(method, url)] = lambda body: FakeResponse(status, data)

    def fail(self, method: str, url: str) -> None:
        def _raise(body):
            raise urllib3.exceptions.ProtocolError("connection refused")
        self.routes[(method, url)] = _raise

    def handle(self, method: str, url: str, fn: Callable[[Optional[bytes]], FakeResponse]) -> None:
        self.routes[(method, url)] = fn

    def request(self, method, url, body=None, headers=None, timeout=None, retries=None):
        self.calls.append({"method": method, "url": url, "body": body, "headers": dict(headers or {})})
        route = self.routes.get((method, url))
        if route is None:
            raise urllib3.exceptions.ProtocolError(f"no route for {method} {url}")
        return route(body)

    def urls(self, method: Optional[str] = None) -> List[str]:
        return [c["url"] for c in self.calls if method is None or c["method"] == method]

    def calls_to(self, prefix: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["url"].startswith(prefix)]


class MockRegistry:
    """可切换状态的注册中心桩：GET /discover 与 POST /admin/toggle。"""

    def __init__(self, pool: FakePool, services: Optional[Dict[str, Dict[str, str]]] = None):
        self.pool = pool
        self.services = services or {}
        self.down = False
        pool.handle("GET", f"{REGISTRY}/discover", self._discover)
        pool.handle("POST", f"{REGISTRY}/admin/toggle", self._toggle)

    def _discover(self, body):
        if self.down:
            raise urllib3.exceptions.ProtocolError("registry down")
        return FakeResponse(200, json.dumps(self.services).encode("utf-8"))

    def _toggle(self, body):
        name = json.loads(body.decode("utf-8"))["name"]
        entry = self.services.get(name)
        if entry:
            entry["status"] = "DOWN" if entry["status"] == "UP" else "UP"
        return FakeResponse(200, b'{"ok": true}')

    def set_status(self, name: str, status: str) -> None:
        self.services[name]["status"] = status


@pytest.fixture
def settings():
    return PortalSettings(registry_url=REGISTRY, poll_interval_sec=0.05, http_timeout_sec=1.0)


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def registry_stub(pool):
    return MockRegistry(pool, {
        "profile": {"url": "http://p", "status": "UP"},
        "tickets": {"url": "http://t", "status": "UP"},
        "board": {"url": "http://b", "status": "DOWN"},
        "appointments": {"url": "http://a", "status": "UP"},
        "counseling": {"url": "http://c", "status": "UP"},
    })


@pytest.fixture
def make_registry(pool):
    """自定义服务表的注册中心桩工厂。"""
    def _make(services: Optional[Dict[str, Dict[str, str]]] = None) -> MockRegistry:
        return MockRegistry(pool, services)
    return _make
