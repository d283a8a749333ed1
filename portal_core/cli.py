"""
门户状态控制台：查看注册中心目录、发起管理切换、持续轮询输出。
用法:
  portal-status --once
  portal-status --toggle tickets
  portal-status --registry-url http://localhost:4000
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from typing import List, Optional, TextIO

from .core.config import load_settings
from .core.registry.catalog import ServiceId
from .portal.state import PortalState


def render(state: PortalState) -> List[str]:
    """当前快照 -> 文本行。"""
    lines = []
    banner = state.banner()
    if banner:
        lines.append(f"!! {banner}")
    for card in state.service_cards():
        lines.append(f"{card.name:<20} {card.status_label:<8} {card.url_text}")
    lines.append(f"Counseling mode: {'ONLINE' if state.counseling_active else 'OFFLINE'}")
    refreshed = state.refreshed_at
    lines.append("Last refresh: " + (time.strftime("%H:%M:%S", time.localtime(refreshed)) if refreshed is not None else "never"))
    lines.extend(state.system_log())
    return lines


def _print(lines: List[str], out: TextIO) -> None:
    out.write("\n".join(lines) + "\n")
    out.flush()


def main(argv: Optional[List[str]] = None, out: TextIO = sys.stdout) -> int:
    ap = argparse.ArgumentParser(description="微服务演示门户：注册中心状态控制台")
    ap.add_argument("--registry-url", default=None, help="注册中心地址（默认取 PORTAL_REGISTRY_URL）")
    ap.add_argument("--interval", type=float, default=None, help="轮询间隔秒数")
    ap.add_argument("--once", action="store_true", help="只刷新一次并输出")
    ap.add_argument("--toggle", metavar="SERVICE", choices=[s.value for s in ServiceId], help="请求注册中心切换指定服务")
    ap.add_argument("--verbose", action="store_true", help="输出调试日志")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    settings = load_settings()
    if args.registry_url:
        settings = replace(settings, registry_url=args.registry_url.rstrip("/"))
    if args.interval and args.interval > 0:
        settings = replace(settings, poll_interval_sec=args.interval)

    state = PortalState(settings)
    if args.toggle:
        state.toggle_service(ServiceId(args.toggle))
        out.write(f"toggle requested: {args.toggle}\n")
        return 0

    state.refresh()
    _print(render(state), out)
    if args.once:
        return 0 if state.banner() is None else 1

    state.start()
    try:
        while True:
            time.sleep(settings.poll_interval_sec)
            out.write("\n")
            _print(render(state), out)
    except KeyboardInterrupt:
        pass
    finally:
        state.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
