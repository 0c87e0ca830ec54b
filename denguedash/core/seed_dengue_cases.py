#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/seed_dengue_cases.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Imports the dengue fever dataset (JSON table export) into dengue_cases.
Inputs: config/mongo.yaml, dataset JSON (table "dengue_fever_dataset").
Outputs: dengue_cases records with derived fields, indexes, verification summary.
Pipeline: load JSON -> map header columns -> normalize rows -> replace/append -> ensure indexes -> verify.
Dependencies: pymongo, pyyaml, pydantic
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

import argparse
import json
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from denguedash.core.cases import ensure_indexes, insert_cases, prepare_case_document, recompute_derived_fields, save_case
from denguedash.core.utils.logs import log, step
from denguedash.core.utils.mongo import get_dengue_cases_collection
from denguedash.core.utils.normalize import normalize_code, normalize_region_name, parse_int

# =============================================================================
# 0) PATHS CONFIG
# =============================================================================

BASE_DIR = Path(__file__).resolve().parents[2]
CONFIG_DIR = BASE_DIR / "config"

TABLE_NAME = "dengue_fever_dataset"

# field -> column name in the source export
SOURCE_COLUMNS = {
    "id": "id",
    "provinceCode": "kode_provinsi",
    "provinceName": "nama_provinsi",
    "regencyCode": "kode_kabupaten_kota",
    "regencyName": "nama_kabupaten_kota",
    "year": "tahun",
    "totalCases": "jumlah_kasus",
    "maleDeaths": "jumlah_kasus_meninggal_laki",
    "femaleDeaths": "jumlah_kasus_meninggal_perempuan",
}


# =============================================================================
# 1) DATASET LOADER
# =============================================================================

def load_table_rows(path: Path, table_name: str = TABLE_NAME) -> List[Dict[str, Any]]:
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path.resolve()}")
    parsed = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(parsed, list):
        raise ValueError("Invalid dataset: expected a JSON array of export objects.")

    for obj in parsed:
        if isinstance(obj, dict) and obj.get("type") == "table" and obj.get("name") == table_name:
            data = obj.get("data")
            if not isinstance(data, list) or not data:
                raise ValueError(f"Table '{table_name}' has no data rows.")
            return data
    raise ValueError(f"Table '{table_name}' not found in {path.name}")


def _column_key(headers: Dict[str, Any], column_name: str) -> Optional[str]:
    for key, value in headers.items():
        if value == column_name:
            return key
    return None


def build_column_mapping(headers: Dict[str, Any]) -> Dict[str, str]:
    """Header row maps row keys to source column names. Every column is mandatory."""
    if not isinstance(headers, dict):
        raise ValueError("Invalid dataset: header row must be an object.")
    mapping: Dict[str, str] = {}
    for field, column in SOURCE_COLUMNS.items():
        key = _column_key(headers, column)
        if key is None:
            raise ValueError(f"Column mapping failed for {field} ('{column}')")
        mapping[field] = key
    return mapping


# =============================================================================
# 2) ROW MAPPING
# =============================================================================

def map_row(item: Dict[str, Any], mapping: Dict[str, str]) -> Optional[Dict[str, Any]]:
    province_code = normalize_code(item.get(mapping["provinceCode"]))
    regency_code = normalize_code(item.get(mapping["regencyCode"]))
    year = parse_int(item.get(mapping["year"]), default=None)
    if not province_code or not regency_code or year is None:
        return None

    return {
        "provinceCode": province_code,
        "provinceName": normalize_region_name(item.get(mapping["provinceName"])),
        "regencyCode": regency_code,
        "regencyName": normalize_region_name(item.get(mapping["regencyName"])),
        "year": year,
        "totalCases": parse_int(item.get(mapping["totalCases"])),
        "maleDeaths": parse_int(item.get(mapping["maleDeaths"])),
        "femaleDeaths": parse_int(item.get(mapping["femaleDeaths"])),
    }


def map_rows(rows: Sequence[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Returns (valid rows, skipped count). The first row is the header."""
    mapping = build_column_mapping(rows[0])
    out: List[Dict[str, Any]] = []
    skipped = 0
    for idx, item in enumerate(rows[1:], start=1):
        if not isinstance(item, dict):
            skipped += 1
            log("WARN", f"Row {idx}: not an object (skipped)")
            continue
        mapped = map_row(item, mapping)
        if mapped is None:
            skipped += 1
            log("WARN", f"Row {idx}: missing province code, regency code or year (skipped)")
            continue
        try:
            prepare_case_document(mapped)
        except ValidationError as e:
            skipped += 1
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            log("WARN", f"Row {idx}: invalid fields [{fields}] (skipped)")
            continue
        out.append(mapped)
    return out, skipped


# =============================================================================
# 3) PERSISTENCE
# =============================================================================

def write_rows(collection: Collection, rows: List[Dict[str, Any]], *, append: bool) -> Dict[str, int]:
    if not append:
        deleted = collection.delete_many({}).deleted_count
        log("INFO", f"Old dengue data cleared | deleted={deleted}")
        try:
            inserted = insert_cases(collection, rows)
        except PyMongoError:
            left = collection.count_documents({})
            log("ERROR", f"Insert failed after clearing {deleted} records; collection holds {left} (re-run the import)")
            raise
        return {"inserted": inserted, "updated": 0}

    inserted = 0
    updated = 0
    for row in rows:
        created, _ = save_case(collection, row)
        if created:
            inserted += 1
        else:
            updated += 1
    return {"inserted": inserted, "updated": updated}


def verify(collection: Collection) -> Dict[str, Any]:
    years = sorted(y for y in collection.distinct("year") if isinstance(y, int))
    summary = {
        "totalRecords": collection.count_documents({}),
        "years": years,
        "regencies": len(collection.distinct("regencyCode")),
    }
    log("INFO", f"Total records in database: {summary['totalRecords']}")
    log("INFO", f"Years covered: {', '.join(str(y) for y in years) or '-'}")
    log("INFO", f"Number of regencies: {summary['regencies']}")
    return summary


# =============================================================================
# 4) MAIN
# =============================================================================

def run(collection: Collection, mapped: List[Dict[str, Any]], *, append: bool = False) -> int:
    total_steps = 4

    step(3, total_steps, f"Writing dengue_cases ({'append/upsert' if append else 'replace'})")
    counts = write_rows(collection, mapped, append=append)
    ensure_indexes(collection)
    log("INFO", f"Successfully seeded | inserted={counts['inserted']} | updated={counts['updated']}")

    step(4, total_steps, "Verifying collection")
    verify(collection)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Imports the dengue fever dataset into dengue_cases.")
    parser.add_argument("--file", dest="file", help="Dataset JSON export.")
    parser.add_argument("--config-dir", dest="config_dir", default=str(CONFIG_DIR), help="Directory holding mongo.yaml.")
    parser.add_argument("--append", action="store_true", help="Upsert into existing data instead of replacing it.")
    parser.add_argument("--dry-run", action="store_true", help="Only parse and report; write nothing.")
    parser.add_argument(
        "--recompute-only",
        action="store_true",
        help="Skip the import; re-apply totalDeaths/caseFatalityRate to stored records.",
    )
    args = parser.parse_args(argv)

    if not args.recompute_only and not args.file:
        parser.error("--file is required unless --recompute-only is given")

    mongo_config_path = Path(args.config_dir) / "mongo.yaml"
    mapped: List[Dict[str, Any]] = []
    if not args.recompute_only:
        step(1, 4, f"Loading dataset: {args.file}")
        try:
            rows = load_table_rows(Path(args.file))
            step(2, 4, "Mapping dataset rows")
            mapped, skipped = map_rows(rows)
        except (FileNotFoundError, ValueError) as e:
            log("ERROR", str(e))
            return 1
        log("INFO", f"Processing {len(mapped)} records | skipped={skipped}")

        if args.dry_run:
            log("INFO", "Dry run: nothing written")
            return 0

    try:
        collection = get_dengue_cases_collection(mongo_config_path)
        if args.recompute_only:
            changed = recompute_derived_fields(collection)
            log("INFO", f"Derived fields recomputed | changed={changed}")
            return 0
        return run(collection, mapped, append=args.append)
    except PyMongoError as e:
        log("ERROR", f"MongoDB error: {e}")
        print(traceback.format_exc())
        return 2


if __name__ == "__main__":
    sys.exit(main())
