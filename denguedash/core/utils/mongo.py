#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/utils/mongo.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Loads the YAML configuration and opens MongoDB connections.
Inputs: config/mongo.yaml
Outputs: MongoClient / Collection ready to use.
Dependencies: pymongo, pyyaml
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from pymongo import MongoClient
from pymongo.collection import Collection

from denguedash.core.utils.logs import log

DENGUE_CASES_COLLECTION = "dengue_cases"
USERS_COLLECTION = "users"


@dataclass(frozen=True)
class MongoCfg:
    uri: str
    database: str
    dengue_cases_collection: str = DENGUE_CASES_COLLECTION
    users_collection: str = USERS_COLLECTION


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path.resolve()}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def build_mongo_cfg(raw: Dict[str, Any]) -> MongoCfg:
    """
    Reads the `mongo` section:

    mongo:
      uri: mongodb://localhost:27017
      database: dengue
      collections:            # optional
        dengue_cases: dengue_cases
        users: users
    """
    m = raw.get("mongo")
    if not isinstance(m, dict):
        raise ValueError("Invalid config: key 'mongo' missing or invalid.")
    uri = str(m.get("uri") or "").strip()
    db = str(m.get("database") or "").strip()
    if not uri:
        raise ValueError("Invalid config: 'mongo.uri' is empty.")
    if not db:
        raise ValueError("Invalid config: 'mongo.database' is empty.")

    collections = m.get("collections") if isinstance(m.get("collections"), dict) else {}
    return MongoCfg(
        uri=uri,
        database=db,
        dengue_cases_collection=str(collections.get("dengue_cases") or DENGUE_CASES_COLLECTION),
        users_collection=str(collections.get("users") or USERS_COLLECTION),
    )


def get_mongo_client(config_path: Path) -> tuple[MongoClient, MongoCfg]:
    """
    Returns the MongoClient and the parsed config from mongo.yaml.
    """
    log("INFO", f"Reading MongoDB config: {config_path}")
    cfg = build_mongo_cfg(load_yaml(config_path))
    log("INFO", "Connecting to MongoDB")
    client = MongoClient(cfg.uri)
    log("INFO", f"MongoDB OK | db='{cfg.database}'")
    return client, cfg


def get_dengue_cases_collection(config_path: Path) -> Collection:
    client, cfg = get_mongo_client(config_path)
    log("INFO", f"Collection | dengue_cases='{cfg.dengue_cases_collection}'")
    return client[cfg.database][cfg.dengue_cases_collection]
