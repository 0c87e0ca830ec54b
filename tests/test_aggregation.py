"""Tests for the aggregation engine against an in-memory collection."""

from __future__ import annotations

from denguedash.core import aggregation
from denguedash.core.cases import insert_cases
from denguedash.core.monthly import ESTIMATED, MEASURED

from conftest import make_case


def _regency(code: str, cases: int, **overrides):
    return make_case(regencyCode=code, regencyName=f"KAB {code}", totalCases=cases, maleDeaths=0, femaleDeaths=0, **overrides)


def test_calculate_trend() -> None:
    assert aggregation.calculate_trend(150, 100) == 50.0
    assert aggregation.calculate_trend(90, 100) == -10.0
    assert aggregation.calculate_trend(1, 3) == -66.7
    assert aggregation.calculate_trend(10, 0) == 0.0


def test_summary_year_over_year(cases_collection) -> None:
    """150 cases against 100 the year before is a +50% trend."""
    insert_cases(
        cases_collection,
        [
            make_case(year=2023, totalCases=100, maleDeaths=3, femaleDeaths=2),
            make_case(year=2024, totalCases=150, maleDeaths=4, femaleDeaths=2),
        ],
    )
    data = aggregation.build_summary(cases_collection, 2024)
    summary = data["summary"]

    assert summary["totalCases"] == 150
    assert summary["totalDeaths"] == 6
    assert summary["maleDeaths"] == 4
    assert summary["femaleDeaths"] == 2
    assert summary["caseFatalityRate"] == 4.0
    assert summary["trends"] == {"cases": 50.0, "deaths": 20.0, "hasPreviousData": True}
    assert summary["dataYear"] == 2024
    assert summary["affectedProvinces"] == 1
    assert summary["affectedRegencies"] == 1


def test_summary_without_previous_year(cases_collection) -> None:
    insert_cases(cases_collection, [make_case(year=2024)])
    trends = aggregation.build_summary(cases_collection, 2024)["summary"]["trends"]
    assert trends == {"cases": 0.0, "deaths": 0.0, "hasPreviousData": False}


def test_summary_on_empty_collection(cases_collection) -> None:
    data = aggregation.build_summary(cases_collection, 2025)
    assert data["topProvinces"] == []
    summary = data["summary"]
    assert summary["totalCases"] == 0
    assert summary["caseFatalityRate"] == 0
    assert summary["affectedProvinces"] == 0
    assert summary["dataYear"] == 2025


def test_top_provinces_limited_and_tie_broken_by_name(cases_collection) -> None:
    rows = []
    for i, (name, cases) in enumerate(
        [("RIAU", 50), ("ACEH", 50), ("BALI", 300), ("PAPUA", 10), ("JAMBI", 70), ("BANTEN", 90)]
    ):
        rows.append(make_case(provinceCode=str(10 + i), provinceName=name, regencyCode=f"{10 + i}01", totalCases=cases))
    insert_cases(cases_collection, rows)

    top = aggregation.build_summary(cases_collection, 2024)["topProvinces"]
    assert [p["provinceName"] for p in top] == ["BALI", "BANTEN", "JAMBI", "ACEH", "RIAU"]
    assert top[0]["caseFatalityRate"] == round(5 / 300 * 100, 2)


def test_province_breakdown_counts_regencies(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(provinceCode="11", provinceName="PROVINCE A", regencyCode="1101", totalCases=120),
            make_case(provinceCode="11", provinceName="PROVINCE A", regencyCode="1102", totalCases=80),
            make_case(provinceCode="12", provinceName="PROVINCE B", regencyCode="1201", totalCases=30),
            make_case(provinceCode="11", provinceName="PROVINCE A", regencyCode="1101", totalCases=999, year=2023),
        ],
    )
    data = aggregation.build_breakdown(cases_collection, 2024, aggregation.PROVINCE_VIEW)
    assert data["view"] == "province"
    assert data["dataYear"] == 2024

    first, second = data["provinceData"]
    assert first["provinceName"] == "PROVINCE A"
    assert first["totalCases"] == 200
    assert first["affectedRegencies"] == 2
    assert first["totalDeaths"] == 10
    assert first["caseFatalityRate"] == 5.0
    assert second["provinceCode"] == "12"

    only_b = aggregation.build_breakdown(cases_collection, 2024, aggregation.PROVINCE_VIEW, "12")
    assert [p["provinceCode"] for p in only_b["provinceData"]] == ["12"]


def test_regency_view_is_capped(cases_collection) -> None:
    insert_cases(cases_collection, [_regency(f"32{i:02d}", 100 + i) for i in range(20)])
    data = aggregation.build_breakdown(cases_collection, 2024, aggregation.REGENCY_VIEW)
    assert data["view"] == "regency"
    assert len(data["regencyData"]) == aggregation.REGENCY_VIEW_LIMIT
    cases = [r["totalCases"] for r in data["regencyData"]]
    assert cases == sorted(cases, reverse=True)
    assert cases[0] == 119


def test_regencies_with_same_name_stay_separate(cases_collection) -> None:
    """Regencies sharing a name in different provinces are not merged."""
    insert_cases(
        cases_collection,
        [
            make_case(provinceCode="31", provinceName="DKI JAKARTA", regencyCode="3101", regencyName="KOTA BARU"),
            make_case(provinceCode="63", provinceName="KALIMANTAN SELATAN", regencyCode="6302", regencyName="KOTA BARU"),
        ],
    )
    rows = aggregation.aggregate_regencies(cases_collection, {"year": 2024})
    assert len(rows) == 2
    assert {r["provinceName"] for r in rows} == {"DKI JAKARTA", "KALIMANTAN SELATAN"}


def test_high_risk_areas_limit(cases_collection) -> None:
    insert_cases(cases_collection, [_regency(f"33{i:02d}", (i + 1) * 10) for i in range(10)])
    data = aggregation.build_high_risk_areas(cases_collection, 2024, limit=3)
    assert data["year"] == 2024
    assert [r["totalCases"] for r in data["highRiskAreas"]] == [100, 90, 80]


def test_high_risk_ties_ordered_by_name(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(regencyCode="3202", regencyName="KAB SUKABUMI", totalCases=40),
            make_case(regencyCode="3201", regencyName="KAB BOGOR", totalCases=40),
        ],
    )
    rows = aggregation.build_high_risk_areas(cases_collection, 2024)["highRiskAreas"]
    assert [r["regencyName"] for r in rows] == ["KAB BOGOR", "KAB SUKABUMI"]


def test_trend_window() -> None:
    assert aggregation.trend_window(2025) == (2020, 2025)
    assert aggregation.trend_window(2025, years=2) == (2023, 2025)
    assert aggregation.trend_window(2025, start_year=2018, end_year=2021) == (2018, 2021)
    assert aggregation.trend_window(2025, years=3, end_year=2022) == (2019, 2022)


def test_yearly_series_ascending_within_window(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(year=2022, totalCases=10),
            make_case(year=2019, totalCases=40),
            make_case(year=2024, totalCases=30),
            make_case(year=2024, totalCases=20, provinceCode="33", regencyCode="3301"),
            make_case(year=2015, totalCases=5),
        ],
    )
    data = aggregation.build_trends(cases_collection, 2019, 2024)
    assert data["period"] == "2019-2024"
    assert [r["year"] for r in data["trends"]] == [2019, 2022, 2024]
    latest = data["trends"][-1]
    assert latest["totalCases"] == 50
    assert latest["affectedProvinces"] == 2


def test_monthly_series_prefers_measured_months(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(month=2, totalCases=20, maleDeaths=1, femaleDeaths=0),
            make_case(month=1, totalCases=10, maleDeaths=0, femaleDeaths=0, regencyCode="3202"),
            make_case(month=2, totalCases=20, maleDeaths=0, femaleDeaths=1, regencyCode="3202"),
        ],
    )
    series = aggregation.build_monthly_series(cases_collection, 2024)
    assert series.source == MEASURED
    assert [(m["monthNumber"], m["cases"], m["deaths"]) for m in series.months] == [(1, 10, 0), (2, 40, 2)]


def test_monthly_series_estimates_without_month_field(cases_collection) -> None:
    insert_cases(cases_collection, [make_case(totalCases=1000, maleDeaths=30, femaleDeaths=20)])
    series = aggregation.build_monthly_series(cases_collection, 2024)
    assert series.source == ESTIMATED
    assert series.year == 2024
    assert series.months[6]["cases"] == 118
    assert sum(m["cases"] for m in series.months) == 1000
    assert all(m["fatalityRate"] == 5.0 for m in series.months)


def test_monthly_series_with_undated_records_uses_full_year(cases_collection) -> None:
    """A year where only some records carry a month is estimated from all of them."""
    insert_cases(
        cases_collection,
        [
            make_case(month=1, totalCases=10, maleDeaths=0, femaleDeaths=0),
            make_case(regencyCode="3202", totalCases=990, maleDeaths=30, femaleDeaths=20),
        ],
    )
    series = aggregation.build_monthly_series(cases_collection, 2024)
    assert series.source == ESTIMATED
    assert sum(m["cases"] for m in series.months) == 1000
    assert all(m["fatalityRate"] == 5.0 for m in series.months)

    listing = aggregation.build_cases_by_year(cases_collection, 2024)
    assert listing["monthlyTrend"]["source"] == ESTIMATED


def test_cases_by_year_listing(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(regencyCode="3201", regencyName="KAB B", totalCases=10),
            make_case(regencyCode="3202", regencyName="KAB A", totalCases=90),
            make_case(regencyCode="3203", regencyName="KAB C", totalCases=10, year=2023),
        ],
    )
    data = aggregation.build_cases_by_year(cases_collection, 2024)
    assert data["year"] == 2024
    assert data["totalRecords"] == 2
    assert [c["regencyName"] for c in data["cases"]] == ["KAB A", "KAB B"]
    assert isinstance(data["cases"][0]["_id"], str)
    assert "maleDeaths" not in data["cases"][0]
    assert data["monthlyTrend"]["source"] == ESTIMATED


def test_case_details_filtered_by_regency(cases_collection) -> None:
    insert_cases(cases_collection, [make_case(regencyCode="3201"), make_case(regencyCode="3202")])
    data = aggregation.build_case_details(cases_collection, 2024, "3202")
    assert [c["regencyCode"] for c in data["caseDetails"]] == ["3202"]
    assert data["caseDetails"][0]["maleDeaths"] == 3
    assert aggregation.code_exists(cases_collection, "regencyCode", "3202")
    assert not aggregation.code_exists(cases_collection, "regencyCode", "9999")


def test_chart_data(cases_collection) -> None:
    insert_cases(
        cases_collection,
        [
            make_case(year=2023, totalCases=400),
            make_case(year=2024, totalCases=1000, maleDeaths=30, femaleDeaths=20),
        ],
    )
    data = aggregation.build_chart_data(cases_collection)
    assert data["totalYears"] == 2
    assert [r["year"] for r in data["yearlyTrends"]] == [2023, 2024]
    assert data["areaChartData"][1] == {"year": "2024", "cases": 1000, "deaths": 50, "fatalityRate": 5.0}
    assert data["topRegencies"][0]["totalCases"] == 1400
    monthly = data["monthlyDistribution"]
    assert monthly["source"] == ESTIMATED
    assert monthly["year"] == 2024
    assert sum(m["cases"] for m in monthly["months"]) == 1000


def test_chart_data_on_empty_collection(cases_collection) -> None:
    """Empty store still returns every key of the bundle."""
    data = aggregation.build_chart_data(cases_collection)
    assert data["totalYears"] == 0
    assert data["yearlyTrends"] == []
    assert data["topRegencies"] == []
    assert data["areaChartData"] == []
    assert all(m["cases"] == 0 for m in data["monthlyDistribution"]["months"])
