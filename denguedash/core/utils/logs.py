#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/utils/logs.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Console log helpers shared by the importer and the web layer.
Inputs: log messages
Outputs: "[ts] [LEVEL] msg" lines on stdout.
Dependencies: -
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ts() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def log(level: str, msg: str) -> None:
    print(f"[{_ts()}] [{level}] {msg}")


def step(n: int, total: int, msg: str) -> None:
    log("STEP", f"({n}/{total}) {msg}")
