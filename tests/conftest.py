from __future__ import annotations

from datetime import date
from typing import Any, Dict

import mongomock
import pytest

from denguedash.core.years import YearResolver
from denguedash.web.app import create_app

CLOCK_YEAR = 2025


def make_case(**overrides: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "provinceCode": "32",
        "provinceName": "JAWA BARAT",
        "regencyCode": "3201",
        "regencyName": "KABUPATEN BOGOR",
        "year": 2024,
        "totalCases": 100,
        "maleDeaths": 3,
        "femaleDeaths": 2,
    }
    row.update(overrides)
    return row


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["dengue_test"]


@pytest.fixture
def cases_collection(mongo_db):
    return mongo_db["dengue_cases"]


@pytest.fixture
def users_collection(mongo_db):
    return mongo_db["users"]


@pytest.fixture
def resolver() -> YearResolver:
    return YearResolver(clock=lambda: date(CLOCK_YEAR, 6, 1))


@pytest.fixture
def app(tmp_path, cases_collection, users_collection, resolver):
    app = create_app(
        tmp_path,
        dengue_cases=cases_collection,
        users=users_collection,
        resolver=resolver,
        log_dir=tmp_path / "logs",
        secret_key="test-secret",
        require_auth=False,
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
