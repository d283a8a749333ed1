"""
门户配置：注册中心地址、轮询间隔、HTTP 超时与连接池
优先级：环境变量 PORTAL_* > 配置文件（PORTAL_CONFIG_PATH，JSON 或 YAML）> 默认值。
数值非法时回退默认值，不阻断启动。
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger("portal.config")

DEFAULT_REGISTRY_URL = "https://s0-registry.onrender.com"
DEFAULT_POLL_INTERVAL_SEC = 2.0
DEFAULT_HTTP_TIMEOUT_SEC = 10.0
DEFAULT_POOL_NUM_POOLS = 16
DEFAULT_POOL_MAXSIZE = 8
DEFAULT_OFFLINE_THRESHOLD = 1

# 环境变量 -> 配置项
_ENV_KEYS = {
    "PORTAL_REGISTRY_URL": "registry_url",
    "PORTAL_POLL_INTERVAL_SEC": "poll_interval_sec",
    "PORTAL_HTTP_TIMEOUT_SEC": "http_timeout_sec",
    "PORTAL_POOL_NUM_POOLS": "pool_num_pools",
    "PORTAL_POOL_MAXSIZE": "pool_maxsize",
    "PORTAL_OFFLINE_THRESHOLD": "offline_threshold",
}


@dataclass(frozen=True)
class PortalSettings:
    registry_url: str = DEFAULT_REGISTRY_URL
    poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC
    http_timeout_sec: float = DEFAULT_HTTP_TIMEOUT_SEC
    pool_num_pools: int = DEFAULT_POOL_NUM_POOLS
    pool_maxsize: int = DEFAULT_POOL_MAXSIZE
    # 连续多少次刷新失败后提示“注册中心不可达”
    offline_threshold: int = DEFAULT_OFFLINE_THRESHOLD


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _load_file(path: str) -> Dict[str, Any]:
    """读取配置文件：.yaml/.yml 走 PyYAML，其余按 JSON；支持顶层 portal 节。"""
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    if not content.strip():
        return {}
    if path.lower().endswith((".yaml", ".yml")):
        data = yaml.safe_load(content) or {}
    else:
        data = json.loads(content)
    if not isinstance(data, dict):
        logger.warning("portal config ignored, not a mapping path=%s", path)
        return {}
    section = data.get("portal", data)
    return section if isinstance(section, dict) else {}


def load_settings(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> PortalSettings:
    """加载门户配置；path 缺省取 PORTAL_CONFIG_PATH。"""
    env = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    path = path or (env.get("PORTAL_CONFIG_PATH") or "").strip()
    if path and os.path.isfile(path):
        raw.update(_load_file(path))
    for key, field in _ENV_KEYS.items():
        val = env.get(key)
        if val is not None and val.strip():
            raw[field] = val.strip()

    registry_url = str(raw.get("registry_url") or DEFAULT_REGISTRY_URL).strip().rstrip("/")
    interval = _as_float(raw.get("poll_interval_sec"), DEFAULT_POLL_INTERVAL_SEC)
    timeout = _as_float(raw.get("http_timeout_sec"), DEFAULT_HTTP_TIMEOUT_SEC)
    return PortalSettings(
        registry_url=registry_url,
        poll_interval_sec=interval if interval > 0 else DEFAULT_POLL_INTERVAL_SEC,
        http_timeout_sec=timeout if timeout > 0 else DEFAULT_HTTP_TIMEOUT_SEC,
        pool_num_pools=max(1, _as_int(raw.get("pool_num_pools"), DEFAULT_POOL_NUM_POOLS)),
        pool_maxsize=max(1, _as_int(raw.get("pool_maxsize"), DEFAULT_POOL_MAXSIZE)),
        offline_threshold=max(1, _as_int(raw.get("offline_threshold"), DEFAULT_OFFLINE_THRESHOLD)),
    )


__all__ = ["PortalSettings", "load_settings"]
