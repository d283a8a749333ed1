"""
服务目录：注册中心最近一次上报的服务快照（服务 id -> 描述符）。
- 目录不可变，刷新时整体替换，不做增量合并；
- 目录中不存在的服务与 DOWN 等价（未知即不可用）；
- 空目录是合法状态（首次轮询前、注册中心不可达后）。
"""
import logging
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger("portal.registry.catalog")


class ServiceId(str, Enum):
    PROFILE = "profile"
    TICKETS = "tickets"
    BOARD = "board"
    APPOINTMENTS = "appointments"
    COUNSELING = "counseling"

    @classmethod
    def parse(cls, value: Union[str, "ServiceId"]) -> Optional["ServiceId"]:
        """字符串转服务 id，按原样精确匹配（不折叠大小写、不去空白）；未知 id 返回 None。"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


class ServiceStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ServiceDescriptor:
    """单个服务的快照；按值比较。"""

    id: ServiceId
    url: str
    status: ServiceStatus

    @property
    def is_up(self) -> bool:
        return self.status is ServiceStatus.UP


class DescriptorPayload(BaseModel):
    """注册中心 /discover 单条记录。"""

    url: str
    status: Literal["UP", "DOWN"]

    @field_validator("url")
    @classmethod
    def _url_not_blank(cls, v: str) -> str:
        # 原样保留注册中心上报的地址，只拒绝空白
        if not v.strip():
            raise ValueError("url 不能为空")
        return v


class Catalog(Mapping):
    """ServiceId -> ServiceDescriptor 的只读映射；键支持字符串。"""

    def __init__(self, descriptors: Optional[Dict[ServiceId, ServiceDescriptor]] = None):
        self._entries: Dict[ServiceId, ServiceDescriptor] = dict(descriptors or {})

    @classmethod
    def empty(cls) -> "Catalog":
        return cls()

    @classmethod
    def from_payload(cls, data: Any) -> "Catalog":
        """
        解析 /discover 响应 { id: {url, status} }。
        未知 id（含大小写不符）、字段缺失或 status 非 UP/DOWN 的条目丢弃（视为不可用）；顶层非对象抛 ValueError。
        """
        if not isinstance(data, dict):
            raise ValueError(f"discover payload must be an object, got {type(data).__name__}")
        entries: Dict[ServiceId, ServiceDescriptor] = {}
        for key, raw in data.items():
            sid = ServiceId.parse(key)
            if sid is None:
                logger.debug("skip unknown service id=%s", key)
                continue
            try:
                item = DescriptorPayload.model_validate(raw)
            except ValidationError as e:
                logger.warning("skip malformed descriptor id=%s err=%s", key, e.errors())
                continue
            entries[sid] = ServiceDescriptor(id=sid, url=item.url, status=ServiceStatus(item.status))
        return cls(entries)

    def __getitem__(self, key: Union[str, ServiceId]) -> ServiceDescriptor:
        sid = ServiceId.parse(key)
        if sid is None:
            raise KeyError(key)
        return self._entries[sid]

    def __iter__(self) -> Iterator[ServiceId]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def is_available(self, service_id: Union[str, ServiceId]) -> bool:
        """仅当服务在目录中且状态为 UP 时可用。"""
        d = self.get(service_id)
        return d is not None and d.is_up

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {sid.value: {"url": d.url, "status": d.status.value} for sid, d in self._entries.items()}

    def __repr__(self) -> str:
        return f"Catalog({self.to_dict()!r})"


class CatalogStore:
    """进程级目录持有者：初始为空，refresh 时整体替换；读到的总是一致快照。"""

    def __init__(self):
        self._catalog = Catalog.empty()
        self._refreshed_at: Optional[float] = None
        self._lock = threading.Lock()

    def current(self) -> Catalog:
        with self._lock:
            return self._catalog

    def replace(self, catalog: Catalog) -> None:
        with self._lock:
            self._catalog = catalog
            self._refreshed_at = time.time()

    @property
    def refreshed_at(self) -> Optional[float]:
        """最近一次替换时间戳；从未刷新为 None。"""
        with self._lock:
            return self._refreshed_at


# 单例，供轮询与门户视图共享
_default_store: Optional[CatalogStore] = None


def get_catalog_store() -> CatalogStore:
    global _default_store
    if _default_store is None:
        _default_store = CatalogStore()
    return _default_store


__all__ = [
    "ServiceId",
    "ServiceStatus",
    "ServiceDescriptor",
    "DescriptorPayload",
    "Catalog",
    "CatalogStore",
    "get_catalog_store",
]
