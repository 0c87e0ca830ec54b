#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/cases.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Persistence helpers for dengue case records (dengue_cases collection).
Inputs: raw case rows (import dataset, admin scripts).
Outputs: validated documents with derived fields recomputed on every write.
Pipeline: validate row -> derive totalDeaths/caseFatalityRate -> stamp timestamps -> insert/upsert.
Dependencies: pymongo, pydantic
-----------------------------------------------------------------------------------------------------

Every write path in this module recomputes `totalDeaths` and `caseFatalityRate`
from the sex-split deaths; values present in the input are ignored.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field
from pymongo import ASCENDING
from pymongo.collection import Collection

from denguedash.core.utils.logs import log, utc_now


class CaseRecord(BaseModel):
    """Writable fields of a case record. Derived fields are not accepted here."""

    provinceCode: str = Field(min_length=1)
    provinceName: str = Field(min_length=1)
    regencyCode: str = Field(min_length=1)
    regencyName: str = Field(min_length=1)
    year: int
    totalCases: int = Field(ge=0)
    maleDeaths: int = Field(ge=0)
    femaleDeaths: int = Field(ge=0)
    month: Optional[int] = Field(default=None, ge=1, le=12)


def case_fatality_rate(total_deaths: int, total_cases: int) -> float:
    if not total_cases:
        return 0.0
    return round(total_deaths / total_cases * 100, 2)


def with_derived_fields(doc: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(doc)
    out["totalDeaths"] = int(out.get("maleDeaths") or 0) + int(out.get("femaleDeaths") or 0)
    out["caseFatalityRate"] = case_fatality_rate(out["totalDeaths"], int(out.get("totalCases") or 0))
    return out


def prepare_case_document(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validates a raw row and returns the document to persist.
    Raises pydantic.ValidationError for missing/negative fields.
    """
    record = CaseRecord.model_validate(dict(raw))
    return with_derived_fields(record.model_dump(exclude_none=True))


def ensure_indexes(collection: Collection) -> None:
    collection.create_index([("regencyCode", ASCENDING), ("year", ASCENDING)])
    collection.create_index([("provinceCode", ASCENDING), ("year", ASCENDING)])
    collection.create_index([("year", ASCENDING)])


def insert_cases(collection: Collection, rows: Iterable[Mapping[str, Any]]) -> int:
    now = utc_now()
    docs: List[Dict[str, Any]] = []
    for row in rows:
        doc = prepare_case_document(row)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        docs.append(doc)
    if not docs:
        return 0
    result = collection.insert_many(docs)
    return len(result.inserted_ids)


def save_case(collection: Collection, raw: Mapping[str, Any]) -> Tuple[bool, Any]:
    """Upsert of one record keyed by regency/year/month.
    Returns (created: bool, doc_id).
    """
    doc = prepare_case_document(raw)
    now = utc_now()
    doc["updatedAt"] = now

    key: Dict[str, Any] = {
        "regencyCode": doc["regencyCode"],
        "year": doc["year"],
        "month": doc.get("month"),
    }
    res = collection.update_one(
        key,
        {"$set": doc, "$setOnInsert": {"createdAt": now}},
        upsert=True,
    )

    created = bool(res.upserted_id)
    doc_id = res.upserted_id
    if not doc_id:
        existing = collection.find_one(key, projection={"_id": 1})
        doc_id = existing.get("_id") if existing else None
    log("INFO", f"Case {'inserted' if created else 'updated'} | regencyCode={doc['regencyCode']} | year={doc['year']}")
    return created, doc_id


def recompute_derived_fields(collection: Collection, match: Optional[Dict[str, Any]] = None) -> int:
    """Re-applies the derivation rule to stored records. Returns how many changed."""
    changed = 0
    projection = {"maleDeaths": 1, "femaleDeaths": 1, "totalCases": 1, "totalDeaths": 1, "caseFatalityRate": 1}
    for doc in collection.find(match or {}, projection=projection):
        derived = with_derived_fields(doc)
        if (
            doc.get("totalDeaths") == derived["totalDeaths"]
            and doc.get("caseFatalityRate") == derived["caseFatalityRate"]
        ):
            continue
        collection.update_one(
            {"_id": doc["_id"]},
            {"$set": {
                "totalDeaths": derived["totalDeaths"],
                "caseFatalityRate": derived["caseFatalityRate"],
                "updatedAt": utc_now(),
            }},
        )
        changed += 1
    return changed

