"""
调用埋点客户端：每次服务调用输出一条 JSON 日志。
字段：trace_id、service、method、path、outcome（ok | unavailable | error）、status_code、duration_ms、ts。
门控拒绝（unavailable）没有下游请求，method 照记、status_code 为 null。
"""
import json
import logging
import time
import uuid
from typing import Optional

logger = logging.getLogger("portal.monitor")

OUTCOMES = ("ok", "unavailable", "error")


def new_trace_id() -> str:
    return uuid.uuid4().hex


def emit_invocation(
    trace_id: str,
    service: str,
    method: str,
    path: str,
    outcome: str,
    started: Optional[float] = None,
    status_code: Optional[int] = None,
) -> None:
    """记录一次服务调用；started 为 time.monotonic() 起点，缺省时耗时记 0。"""
    if outcome not in OUTCOMES:
        raise ValueError(f"unknown outcome: {outcome}")
    duration_ms = int((time.monotonic() - started) * 1000) if started is not None else 0
    record = {
        "trace_id": trace_id,
        "service": service,
        "method": method,
        "path": path,
        "outcome": outcome,
        "status_code": status_code,
        "duration_ms": duration_ms,
        "ts": time.time(),
    }
    level = logging.INFO if outcome == "ok" else logging.WARNING
    logger.log(level, json.dumps(record, ensure_ascii=False))


__all__ = ["emit_invocation", "new_trace_id"]
