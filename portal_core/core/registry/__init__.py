# 服务发现：目录、注册中心客户端、轮询
from .catalog import Catalog, CatalogStore, ServiceDescriptor, ServiceId, ServiceStatus, get_catalog_store
from .client import RegistryClient
from .poller import CounselingFlag, LoopState, PollingLoop

__all__ = [
    "Catalog",
    "CatalogStore",
    "ServiceDescriptor",
    "ServiceId",
    "ServiceStatus",
    "get_catalog_store",
    "RegistryClient",
    "CounselingFlag",
    "LoopState",
    "PollingLoop",
]
