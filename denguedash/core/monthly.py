#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/monthly.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Monthly case series, either measured (records carry `month`) or estimated from
             yearly totals with a fixed seasonal weight vector.
Inputs: yearly aggregate row / monthly aggregate rows.
Outputs: MonthlySeries tagged "measured" or "estimated".
Dependencies: -
-----------------------------------------------------------------------------------------------------

The estimated series is an approximation of the Indonesian wet/dry season
pattern, not observed data. Consumers must check `source` before treating the
months as real counts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from denguedash.core.cases import case_fatality_rate

MEASURED = "measured"
ESTIMATED = "estimated"

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# relative weights (sum 1.02); months are distributed with the normalized MONTH_SHARES
SEASONAL_WEIGHTS = (0.06, 0.07, 0.08, 0.09, 0.10, 0.11, 0.12, 0.10, 0.09, 0.08, 0.07, 0.05)
WEIGHT_SUM = sum(SEASONAL_WEIGHTS)
MONTH_SHARES = tuple(w / WEIGHT_SUM for w in SEASONAL_WEIGHTS)


@dataclass(frozen=True)
class MonthlySeries:
    source: str
    year: Optional[int]
    months: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_estimated(self) -> bool:
        return self.source == ESTIMATED

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "year": self.year, "months": list(self.months)}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_monthly_distribution(year_row: Optional[Mapping[str, Any]]) -> MonthlySeries:
    """Spreads one year's totals over 12 months. The fatality rate is the year's, unchanged."""
    year_row = year_row or {}
    total_cases = int(year_row.get("totalCases") or 0)
    total_deaths = int(year_row.get("totalDeaths") or 0)
    fatality_rate = float(year_row.get("caseFatalityRate") or 0)

    months = [
        {
            "month": label,
            "monthNumber": idx,
            "cases": _round_half_up(total_cases * share),
            "deaths": _round_half_up(total_deaths * share),
            "fatalityRate": fatality_rate,
        }
        for idx, (label, share) in enumerate(zip(MONTH_LABELS, MONTH_SHARES), start=1)
    ]
    return MonthlySeries(source=ESTIMATED, year=year_row.get("year"), months=months)


def measured_monthly_series(rows: Iterable[Mapping[str, Any]], year: Optional[int]) -> MonthlySeries:
    """Builds the series from per-month aggregate rows ({month, cases, deaths})."""
    months: List[Dict[str, Any]] = []
    for row in sorted(rows, key=lambda r: int(r["month"])):
        number = int(row["month"])
        cases = int(row.get("cases") or 0)
        deaths = int(row.get("deaths") or 0)
        months.append(
            {
                "month": MONTH_LABELS[number - 1],
                "monthNumber": number,
                "cases": cases,
                "deaths": deaths,
                "fatalityRate": case_fatality_rate(deaths, cases),
            }
        )
    return MonthlySeries(source=MEASURED, year=year, months=months)
