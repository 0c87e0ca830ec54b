#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/aggregation.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Aggregation engine over dengue_cases: yearly summary, province/regency breakdowns,
             multi-year series, high-risk ranking, case listings and chart bundle.
Inputs: dengue_cases collection, resolved year / filters.
Outputs: plain dict payloads with derived fields (fatality rate, trends).
Dependencies: pymongo
-----------------------------------------------------------------------------------------------------

Read-only. Sums and distinct counts are computed by MongoDB `$group` stages;
ratios, rounding and trends are computed here after the query so every
division is zero-guarded in one place.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pymongo.collection import Collection

from denguedash.core.cases import case_fatality_rate
from denguedash.core.monthly import MonthlySeries, estimate_monthly_distribution, measured_monthly_series
from denguedash.core.utils.logs import log

TOP_PROVINCES_LIMIT = 5
REGENCY_VIEW_LIMIT = 15
HIGH_RISK_DEFAULT_LIMIT = 10
CHART_TOP_REGENCIES_LIMIT = 10
DEFAULT_TREND_YEARS = 5

PROVINCE_VIEW = "province"
REGENCY_VIEW = "regency"
VIEWS = (PROVINCE_VIEW, REGENCY_VIEW)

CASE_LIST_PROJECTION = {
    "provinceName": 1,
    "regencyName": 1,
    "totalCases": 1,
    "totalDeaths": 1,
    "caseFatalityRate": 1,
    "month": 1,
}
CASE_DETAIL_PROJECTION = {
    **CASE_LIST_PROJECTION,
    "provinceCode": 1,
    "regencyCode": 1,
    "year": 1,
    "maleDeaths": 1,
    "femaleDeaths": 1,
}


# =============================================================================
# 1) DERIVED METRICS
# =============================================================================

def calculate_trend(current: int, previous: int) -> float:
    """Year-over-year change in percent, 1 decimal. 0 when there is no previous total."""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def _with_fatality_rate(row: Dict[str, Any]) -> Dict[str, Any]:
    row["caseFatalityRate"] = case_fatality_rate(
        int(row.get("totalDeaths") or 0), int(row.get("totalCases") or 0)
    )
    return row


def _sums() -> Dict[str, Any]:
    return {
        "totalCases": {"$sum": "$totalCases"},
        "totalDeaths": {"$sum": "$totalDeaths"},
        "maleDeaths": {"$sum": "$maleDeaths"},
        "femaleDeaths": {"$sum": "$femaleDeaths"},
    }


def _sum_projection() -> Dict[str, Any]:
    return {"totalCases": 1, "totalDeaths": 1, "maleDeaths": 1, "femaleDeaths": 1}


# =============================================================================
# 2) SUMMARY (one year)
# =============================================================================

def aggregate_year_totals(collection: Collection, year: int) -> Dict[str, Any]:
    pipeline: List[Dict[str, Any]] = [
        {"$match": {"year": year}},
        {
            "$group": {
                "_id": None,
                **_sums(),
                "records": {"$sum": 1},
                "provinces": {"$addToSet": "$provinceCode"},
                "regencies": {"$addToSet": "$regencyCode"},
            }
        },
        {
            "$project": {
                "_id": 0,
                **_sum_projection(),
                "records": 1,
                "affectedProvinces": {"$size": "$provinces"},
                "affectedRegencies": {"$size": "$regencies"},
            }
        },
    ]
    result = list(collection.aggregate(pipeline))
    if result:
        return result[0]
    return {
        "totalCases": 0,
        "totalDeaths": 0,
        "maleDeaths": 0,
        "femaleDeaths": 0,
        "records": 0,
        "affectedProvinces": 0,
        "affectedRegencies": 0,
    }


def aggregate_top_provinces(
    collection: Collection, year: int, limit: int = TOP_PROVINCES_LIMIT
) -> List[Dict[str, Any]]:
    pipeline: List[Dict[str, Any]] = [
        {"$match": {"year": year}},
        {
            "$group": {
                "_id": "$provinceName",
                "provinceCode": {"$first": "$provinceCode"},
                "totalCases": {"$sum": "$totalCases"},
                "totalDeaths": {"$sum": "$totalDeaths"},
            }
        },
        {"$project": {"_id": 0, "provinceName": "$_id", "provinceCode": 1, "totalCases": 1, "totalDeaths": 1}},
        {"$sort": {"totalCases": -1, "provinceName": 1}},
        {"$limit": limit},
    ]
    return [_with_fatality_rate(row) for row in collection.aggregate(pipeline)]


def build_summary(collection: Collection, year: int) -> Dict[str, Any]:
    current = aggregate_year_totals(collection, year)
    previous = aggregate_year_totals(collection, year - 1)

    summary = {
        "totalCases": current["totalCases"],
        "totalDeaths": current["totalDeaths"],
        "maleDeaths": current["maleDeaths"],
        "femaleDeaths": current["femaleDeaths"],
        "caseFatalityRate": case_fatality_rate(current["totalDeaths"], current["totalCases"]),
        "affectedProvinces": current["affectedProvinces"],
        "affectedRegencies": current["affectedRegencies"],
        "trends": {
            "cases": calculate_trend(current["totalCases"], previous["totalCases"]),
            "deaths": calculate_trend(current["totalDeaths"], previous["totalDeaths"]),
            "hasPreviousData": previous["records"] > 0,
        },
        "dataYear": year,
    }
    return {"summary": summary, "topProvinces": aggregate_top_provinces(collection, year)}


# =============================================================================
# 3) GROUPED BREAKDOWN (province / regency)
# =============================================================================

def aggregate_provinces(
    collection: Collection, year: int, province_code: Optional[str] = None
) -> List[Dict[str, Any]]:
    match: Dict[str, Any] = {"year": year}
    if province_code:
        match["provinceCode"] = province_code

    pipeline: List[Dict[str, Any]] = [
        {"$match": match},
        {
            "$group": {
                "_id": {"provinceCode": "$provinceCode", "provinceName": "$provinceName"},
                **_sums(),
                "regencies": {"$addToSet": "$regencyCode"},
            }
        },
        {
            "$project": {
                "_id": 0,
                "provinceCode": "$_id.provinceCode",
                "provinceName": "$_id.provinceName",
                **_sum_projection(),
                "affectedRegencies": {"$size": "$regencies"},
            }
        },
        {"$sort": {"totalCases": -1, "provinceName": 1}},
    ]
    return [_with_fatality_rate(row) for row in collection.aggregate(pipeline)]


def aggregate_regencies(
    collection: Collection, match: Dict[str, Any], limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Groups by (regencyCode, regencyName, provinceName) so same-named regencies stay apart."""
    pipeline: List[Dict[str, Any]] = []
    if match:
        pipeline.append({"$match": match})
    pipeline.append(
        {
            "$group": {
                "_id": {
                    "regencyCode": "$regencyCode",
                    "regencyName": "$regencyName",
                    "provinceName": "$provinceName",
                },
                **_sums(),
            }
        }
    )
    pipeline.append(
        {
            "$project": {
                "_id": 0,
                "regencyCode": "$_id.regencyCode",
                "regencyName": "$_id.regencyName",
                "provinceName": "$_id.provinceName",
                **_sum_projection(),
            }
        }
    )
    pipeline.append({"$sort": {"totalCases": -1, "regencyName": 1, "regencyCode": 1}})
    if limit:
        pipeline.append({"$limit": limit})
    return [_with_fatality_rate(row) for row in collection.aggregate(pipeline)]


def build_breakdown(
    collection: Collection, year: int, view: str = PROVINCE_VIEW, province_code: Optional[str] = None
) -> Dict[str, Any]:
    if view == REGENCY_VIEW:
        return {
            "regencyData": aggregate_regencies(collection, {"year": year}, limit=REGENCY_VIEW_LIMIT),
            "dataYear": year,
            "view": REGENCY_VIEW,
        }
    return {
        "provinceData": aggregate_provinces(collection, year, province_code),
        "dataYear": year,
        "view": PROVINCE_VIEW,
    }


def build_high_risk_areas(collection: Collection, year: int, limit: int = HIGH_RISK_DEFAULT_LIMIT) -> Dict[str, Any]:
    return {
        "highRiskAreas": aggregate_regencies(collection, {"year": year}, limit=limit),
        "year": year,
    }


# =============================================================================
# 4) MULTI-YEAR SERIES
# =============================================================================

def trend_window(
    current_year: int,
    years: int = DEFAULT_TREND_YEARS,
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
) -> Tuple[int, int]:
    """Returns (start, end) inclusive. Explicit bounds win over the window size."""
    end = end_year if end_year is not None else current_year
    start = start_year if start_year is not None else end - years
    return start, end


def aggregate_yearly_series(
    collection: Collection, start_year: Optional[int] = None, end_year: Optional[int] = None
) -> List[Dict[str, Any]]:
    year_match: Dict[str, Any] = {}
    if start_year is not None:
        year_match["$gte"] = start_year
    if end_year is not None:
        year_match["$lte"] = end_year

    pipeline: List[Dict[str, Any]] = []
    if year_match:
        pipeline.append({"$match": {"year": year_match}})
    pipeline.append(
        {
            "$group": {
                "_id": "$year",
                **_sums(),
                "provinces": {"$addToSet": "$provinceCode"},
            }
        }
    )
    pipeline.append(
        {
            "$project": {
                "_id": 0,
                "year": "$_id",
                **_sum_projection(),
                "affectedProvinces": {"$size": "$provinces"},
            }
        }
    )
    # chronological: charts read the series left to right
    pipeline.append({"$sort": {"year": 1}})
    return [_with_fatality_rate(row) for row in collection.aggregate(pipeline)]


def build_trends(collection: Collection, start_year: int, end_year: int) -> Dict[str, Any]:
    return {
        "trends": aggregate_yearly_series(collection, start_year, end_year),
        "period": f"{start_year}-{end_year}",
    }


# =============================================================================
# 5) MONTHLY SERIES
# =============================================================================

def aggregate_measured_months(collection: Collection, year: int) -> List[Dict[str, Any]]:
    pipeline: List[Dict[str, Any]] = [
        {"$match": {"year": year, "month": {"$gte": 1, "$lte": 12}}},
        {
            "$group": {
                "_id": "$month",
                "cases": {"$sum": "$totalCases"},
                "deaths": {"$sum": "$totalDeaths"},
                "records": {"$sum": 1},
            }
        },
        {"$project": {"_id": 0, "month": "$_id", "cases": 1, "deaths": 1, "records": 1}},
        {"$sort": {"month": 1}},
    ]
    return list(collection.aggregate(pipeline))


def build_monthly_series(
    collection: Collection, year: int, year_row: Optional[Dict[str, Any]] = None
) -> MonthlySeries:
    """
    Measured months only when every record of the year carries one. A year
    with some undated records falls back to the seasonal estimate of the full
    yearly totals.
    """
    totals = aggregate_year_totals(collection, year)
    measured = aggregate_measured_months(collection, year)
    dated = sum(int(row.get("records") or 0) for row in measured)
    if measured and dated == totals["records"]:
        return measured_monthly_series(measured, year)
    if measured:
        log("WARN", f"Monthly series {year}: {totals['records'] - dated} records without month (using estimate)")

    if year_row is None:
        year_row = {
            "year": year,
            "totalCases": totals["totalCases"],
            "totalDeaths": totals["totalDeaths"],
            "caseFatalityRate": case_fatality_rate(totals["totalDeaths"], totals["totalCases"]),
        }
    return estimate_monthly_distribution({**year_row, "year": year})


# =============================================================================
# 6) CASE LISTINGS
# =============================================================================

def _plain(doc: Dict[str, Any]) -> Dict[str, Any]:
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def fetch_cases(
    collection: Collection, match: Dict[str, Any], projection: Dict[str, Any]
) -> List[Dict[str, Any]]:
    cursor = collection.find(match, projection=projection).sort(
        [("totalCases", -1), ("regencyName", 1)]
    )
    return [_plain(doc) for doc in cursor]


def build_cases_by_year(collection: Collection, year: int) -> Dict[str, Any]:
    cases = fetch_cases(collection, {"year": year}, CASE_LIST_PROJECTION)
    return {
        "year": year,
        "totalRecords": len(cases),
        "cases": cases,
        "monthlyTrend": build_monthly_series(collection, year).to_dict(),
    }


def build_case_details(collection: Collection, year: int, regency_code: Optional[str] = None) -> Dict[str, Any]:
    match: Dict[str, Any] = {"year": year}
    if regency_code:
        match["regencyCode"] = regency_code
    return {
        "caseDetails": fetch_cases(collection, match, CASE_DETAIL_PROJECTION),
        "year": year,
    }


def code_exists(collection: Collection, field: str, code: str) -> bool:
    return collection.find_one({field: code}, projection={"_id": 1}) is not None


# =============================================================================
# 7) CHART BUNDLE
# =============================================================================

def build_chart_data(collection: Collection) -> Dict[str, Any]:
    yearly = aggregate_yearly_series(collection)
    top_regencies = aggregate_regencies(collection, {}, limit=CHART_TOP_REGENCIES_LIMIT)

    area_chart = [
        {
            "year": str(row["year"]),
            "cases": row["totalCases"],
            "deaths": row["totalDeaths"],
            "fatalityRate": row["caseFatalityRate"],
        }
        for row in yearly
    ]

    if yearly:
        latest = yearly[-1]
        monthly = build_monthly_series(collection, latest["year"], latest)
    else:
        monthly = estimate_monthly_distribution(None)

    return {
        "yearlyTrends": yearly,
        "topRegencies": top_regencies,
        "areaChartData": area_chart,
        "monthlyDistribution": monthly.to_dict(),
        "totalYears": len(yearly),
    }
