#!/usr/bin/env python3
"""启动门户状态控制台：轮询注册中心（S0），输出各服务在线状态与咨询模式。"""
import os
import sys

sys.path.insert(0, os.environ.get("APP_ROOT", os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from portal_core.cli import main

sys.exit(main())
