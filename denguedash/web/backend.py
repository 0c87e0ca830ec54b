#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: web/backend.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Per-app backend handles (collections, year resolver, settings) and the web action log.
Inputs: config/mongo.yaml, config/web.yaml (optional).
Outputs: lazily connected collections, JSON-lines action log.
Dependencies: flask, pymongo, pyyaml
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from flask import current_app
from pymongo import ASCENDING
from pymongo.collection import Collection

from denguedash.core.cases import ensure_indexes
from denguedash.core.utils.logs import log, utc_now
from denguedash.core.utils.mongo import get_mongo_client, load_yaml
from denguedash.core.years import YearResolver

BASE_DIR = Path(__file__).resolve().parents[2]
CONFIG_DIR = BASE_DIR / "config"
LOG_DIR = BASE_DIR / "logs"
EXTENSION_KEY = "denguedash"


@dataclass(frozen=True)
class WebCfg:
    secret_key: str
    session_days: int = 7
    cookie_secure: bool = False
    require_auth: bool = False
    host: str = "0.0.0.0"
    port: int = 5000


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def build_web_cfg(raw: Dict[str, Any]) -> WebCfg:
    """
    Reads the optional `web` section of web.yaml. Without a secret_key a random
    one is generated, so sessions do not survive a restart.
    """
    w = raw.get("web") if isinstance(raw.get("web"), dict) else {}
    secret_key = str(w.get("secret_key") or "").strip()
    if not secret_key:
        log("WARN", "web.secret_key not set; using a random key (sessions reset on restart)")
        secret_key = secrets.token_hex(32)
    return WebCfg(
        secret_key=secret_key,
        session_days=int(w.get("session_days") or 7),
        cookie_secure=_as_bool(w.get("cookie_secure")),
        require_auth=_as_bool(w.get("require_auth")),
        host=str(w.get("host") or "0.0.0.0"),
        port=int(w.get("port") or 5000),
    )


def load_web_cfg(config_dir: Path) -> WebCfg:
    path = config_dir / "web.yaml"
    if not path.exists():
        log("INFO", f"web.yaml not found in {config_dir.resolve()} (using defaults)")
        return build_web_cfg({})
    return build_web_cfg(load_yaml(path))


@dataclass
class Backend:
    config_dir: Path = CONFIG_DIR
    log_dir: Path = LOG_DIR
    resolver: YearResolver = field(default_factory=YearResolver)
    dengue_cases: Optional[Collection] = None
    users: Optional[Collection] = None
    require_auth: bool = False
    _log_file: Optional[Path] = field(default=None, init=False, repr=False)

    def _connect(self) -> None:
        client, cfg = get_mongo_client(self.config_dir / "mongo.yaml")
        db = client[cfg.database]
        if self.dengue_cases is None:
            self.dengue_cases = db[cfg.dengue_cases_collection]
            ensure_indexes(self.dengue_cases)
        if self.users is None:
            self.users = db[cfg.users_collection]
            self.users.create_index([("email", ASCENDING)], unique=True)
            self.users.create_index([("username", ASCENDING)], unique=True)

    def cases_collection(self) -> Collection:
        if self.dengue_cases is None:
            self._connect()
        return self.dengue_cases

    def users_collection(self) -> Collection:
        if self.users is None:
            self._connect()
        return self.users

    def web_log(self, action: str, payload: Dict[str, Any]) -> None:
        if self._log_file is None:
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
            self._log_file = self.log_dir / f"{stamp}-web-actions.log"
        entry = {
            "ts": utc_now().strftime("%Y-%m-%d %H:%M:%S"),
            "action": action,
            "payload": payload,
        }
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with self._log_file.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            log("WARN", f"Web action log write failed ({self._log_file}): {e}")


def get_backend() -> Backend:
    return current_app.extensions[EXTENSION_KEY]
