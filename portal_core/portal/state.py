"""
门户视图状态：把轮询结果与调用结果整理为界面可直接展示的数据。
- 服务卡片：在线/离线、地址或“等待心跳”；
- 管理面板：各服务状态标签，未知为 N/A；
- 系统日志：目录中发现的服务；
- 连通性横幅：连续刷新失败达到阈值时提示注册中心不可达；
- 用户操作：错误在此边界转换为非阻塞反馈，不向外抛出。
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from ..core.config import PortalSettings, load_settings
from ..core.errors import PortalError, ServiceUnavailable
from ..core.invoker import ServiceInvoker
from ..core.registry.catalog import Catalog, CatalogStore, ServiceId, get_catalog_store
from ..core.registry.client import RegistryClient
from ..core.registry.poller import PollingLoop
from ..services.api import AppointmentsApi, BoardApi, CounselingApi, ProfileApi, TicketsApi

logger = logging.getLogger("portal.state")

SERVICE_NAMES = {
    ServiceId.PROFILE: "Profile Service",
    ServiceId.TICKETS: "Ticket Service",
    ServiceId.BOARD: "Board Service",
    ServiceId.APPOINTMENTS: "Appt. Service",
    ServiceId.COUNSELING: "Counseling Service",
}

REGISTRY_OFFLINE_MESSAGE = "Cannot connect to Registry (S0). Is it running?"
WAITING_FOR_HEARTBEAT = "Waiting for heartbeat..."
CONNECTING_MESSAGE = "Connecting to S0-Registry..."


@dataclass(frozen=True)
class ServiceCard:
    id: ServiceId
    name: str
    online: bool
    url_text: str

    @property
    def status_label(self) -> str:
        return "ONLINE" if self.online else "OFFLINE"


@dataclass(frozen=True)
class AdminRow:
    id: ServiceId
    status_label: str


@dataclass(frozen=True)
class Feedback:
    level: str  # info | error
    message: str


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    value: Any = None
    feedback: Optional[Feedback] = None


def feedback_for(error: PortalError) -> Feedback:
    """错误 -> 界面提示文本。"""
    if isinstance(error, ServiceUnavailable):
        return Feedback("error", str(error))
    return Feedback("error", f"Error: {error}")


class PortalState:
    def __init__(
        self,
        settings: Optional[PortalSettings] = None,
        pool: Optional[Any] = None,
        store: Optional[CatalogStore] = None,
    ):
        self.settings = settings or load_settings()
        self.registry = RegistryClient(self.settings, pool=pool)
        self.invoker = ServiceInvoker(self.registry, pool=pool)
        self.profile = ProfileApi(self.invoker)
        self.tickets = TicketsApi(self.invoker)
        self.board = BoardApi(self.invoker)
        self.appointments = AppointmentsApi(self.invoker)
        self.counseling = CounselingApi(self.invoker)
        self.poller = PollingLoop(
            self.registry,
            store=store if store is not None else get_catalog_store(),
            counseling_probe=self.counseling.is_active,
        )

    # ---------- 生命周期 ----------
    def start(self) -> None:
        self.poller.start()

    def stop(self) -> None:
        self.poller.stop()

    def refresh(self) -> Catalog:
        """立即刷新一次（不等待下一个 tick）。"""
        return self.poller.tick()

    # ---------- 视图 ----------
    @property
    def catalog(self) -> Catalog:
        return self.poller.store.current()

    @property
    def counseling_active(self) -> bool:
        return self.poller.flag.active

    @property
    def refreshed_at(self) -> Optional[float]:
        return self.poller.store.refreshed_at

    def service_cards(self) -> List[ServiceCard]:
        catalog = self.catalog
        cards = []
        for sid in ServiceId:
            d = catalog.get(sid)
            cards.append(ServiceCard(
                id=sid,
                name=SERVICE_NAMES[sid],
                online=catalog.is_available(sid),
                url_text=d.url if d else WAITING_FOR_HEARTBEAT,
            ))
        return cards

    def admin_rows(self) -> List[AdminRow]:
        catalog = self.catalog
        rows = []
        for sid in ServiceId:
            d = catalog.get(sid)
            rows.append(AdminRow(id=sid, status_label=d.status.value if d else "N/A"))
        return rows

    def system_log(self) -> List[str]:
        catalog = self.catalog
        if not catalog:
            return [CONNECTING_MESSAGE]
        return [f"[REGISTRY] Found {sid.value} at {d.url}" for sid, d in catalog.items()]

    def banner(self) -> Optional[str]:
        if self.poller.consecutive_failures >= self.settings.offline_threshold:
            return REGISTRY_OFFLINE_MESSAGE
        return None

    # ---------- 用户操作 ----------
    def perform(self, action: Callable[[], Any], success_message: Optional[str] = None) -> ActionResult:
        """执行用户操作；门户错误转换为反馈，其余异常照常抛出。"""
        try:
            value = action()
        except PortalError as e:
            logger.info("portal action failed: %s", e)
            return ActionResult(ok=False, feedback=feedback_for(e))
        feedback = Feedback("info", success_message) if success_message else None
        return ActionResult(ok=True, value=value, feedback=feedback)

    def toggle_service(self, service_id: Union[str, ServiceId]) -> ActionResult:
        """管理员切换服务；结果在下一次轮询后可见。"""
        self.registry.toggle(service_id)
        return ActionResult(ok=True, feedback=Feedback("info", f"Toggle requested for {service_id}"))

    def toggle_counseling(self) -> ActionResult:
        def _toggle():
            status = self.counseling.toggle()
            self.poller.flag.set(status.active)
            return status.active
        return self.perform(_toggle)

    def pickup_ticket(self, ticket_id: str, counselor_name: str) -> ActionResult:
        if not self.counseling_active:
            return ActionResult(ok=False, feedback=Feedback("error", "Enable Counseling Mode First"))
        return self.perform(lambda: self.tickets.pickup(ticket_id, counselor_name))


__all__ = [
    "PortalState",
    "ServiceCard",
    "AdminRow",
    "Feedback",
    "ActionResult",
    "feedback_for",
    "SERVICE_NAMES",
    "REGISTRY_OFFLINE_MESSAGE",
]
