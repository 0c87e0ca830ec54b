#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/years.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Resolves the query year for endpoints taking an optional `year`.
Inputs: raw `year` parameter, dengue_cases collection, clock.
Outputs: concrete integer year.
Dependencies: pymongo
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

from pymongo.collection import Collection


def parse_year(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        return None


class YearResolver:
    """
    Year policy:
    1. an explicit year that parses to an integer is used verbatim (no range check);
    2. otherwise the latest year present in the collection;
    3. on an empty collection, the current calendar year from the clock.
    """

    def __init__(self, clock: Optional[Callable[[], date]] = None) -> None:
        self._clock = clock or date.today

    def current_year(self) -> int:
        return self._clock().year

    def latest_year(self, collection: Collection) -> int:
        years = [y for y in collection.distinct("year") if isinstance(y, int) and not isinstance(y, bool)]
        return max(years) if years else self.current_year()

    def resolve(self, collection: Collection, raw: Any = None) -> int:
        year = parse_year(raw)
        if year is not None:
            return year
        return self.latest_year(collection)
