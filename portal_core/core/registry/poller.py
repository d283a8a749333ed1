"""
注册中心轮询：固定间隔刷新共享目录与咨询模式开关，供门户视图渲染实时状态。
- 每个 tick 独立线程执行，可重叠；无抖动、无退避、不因上一 tick 未完成而跳过；
- 单个 tick 失败只记日志，不影响后续 tick；
- 刷新失败时目录置空（不保留旧快照），并累计连续失败次数供“注册中心不可达”提示；
- 状态机：STOPPED -> RUNNING（start）、RUNNING -> STOPPED（stop）；重启即新建计时线程，不续接旧节拍。
"""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from ..errors import PortalError, RegistryUnreachable
from .catalog import Catalog, CatalogStore, get_catalog_store
from .client import RegistryClient

logger = logging.getLogger("portal.poller")


class LoopState(str, Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class CounselingFlag:
    """咨询模式开关（由咨询服务 /status 决定，不属于目录）。"""

    def __init__(self, active: bool = False):
        self._active = active
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def set(self, active: bool) -> None:
        with self._lock:
            self._active = bool(active)


class PollingLoop:
    def __init__(
        self,
        registry: RegistryClient,
        store: Optional[CatalogStore] = None,
        counseling_probe: Optional[Callable[[], bool]] = None,
        flag: Optional[CounselingFlag] = None,
        interval_sec: Optional[float] = None,
    ):
        self.registry = registry
        self.store = store if store is not None else get_catalog_store()
        self.counseling_probe = counseling_probe
        self.flag = flag if flag is not None else CounselingFlag()
        self.interval_sec = interval_sec if interval_sec is not None else registry.settings.poll_interval_sec
        self._lock = threading.Lock()
        self._state = LoopState.STOPPED
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._consecutive_failures = 0
        self._ticks_completed = 0

    @property
    def state(self) -> LoopState:
        with self._lock:
            return self._state

    @property
    def consecutive_failures(self) -> int:
        """连续刷新失败次数；任一次成功清零。"""
        with self._lock:
            return self._consecutive_failures

    @property
    def ticks_completed(self) -> int:
        with self._lock:
            return self._ticks_completed

    def tick(self) -> Catalog:
        """同步执行一次刷新：替换目录、探测咨询模式；返回本次写入的目录。"""
        try:
            catalog = self.registry.fetch_catalog()
            with self._lock:
                self._consecutive_failures = 0
        except RegistryUnreachable as e:
            catalog = Catalog.empty()
            with self._lock:
                self._consecutive_failures += 1
                failures = self._consecutive_failures
            logger.warning("Cannot connect to registry failures=%s err=%s", failures, e.reason)
        self.store.replace(catalog)

        if self.counseling_probe is not None:
            try:
                self.flag.set(self.counseling_probe())
            except PortalError as e:
                # 探测失败保留上一次的值
                logger.debug("counseling probe failed err=%s", e)

        with self._lock:
            self._ticks_completed += 1
        return catalog

    def _run_tick(self) -> None:
        try:
            self.tick()
        except Exception as e:
            logger.warning("poll tick error: %s", e)

    def start(self) -> None:
        """STOPPED -> RUNNING；已在运行时忽略。"""
        with self._lock:
            if self._state is LoopState.RUNNING:
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._state = LoopState.RUNNING

        def _loop():
            while not stop_event.wait(self.interval_sec):
                threading.Thread(target=self._run_tick, name="portal-poll-tick", daemon=True).start()

        thread = threading.Thread(target=_loop, name="portal-poller", daemon=True)
        with self._lock:
            self._thread = thread
        thread.start()
        logger.info("polling started interval=%ss registry=%s", self.interval_sec, self.registry.base_url)

    def stop(self) -> None:
        """RUNNING -> STOPPED；停止调度，不取消进行中的请求。"""
        with self._lock:
            if self._state is LoopState.STOPPED:
                return
            self._state = LoopState.STOPPED
            stop_event, thread = self._stop_event, self._thread
            self._stop_event = None
            self._thread = None
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2)
        logger.info("polling stopped")


__all__ = ["LoopState", "CounselingFlag", "PollingLoop"]
