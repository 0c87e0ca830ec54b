#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: core/utils/normalize.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Deterministic normalization of region codes/names and lenient integer parsing.
Inputs: raw values from the import dataset
Outputs: normalized strings / ints
Dependencies: re
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

import re
from typing import Any, Optional


def normalize_region_name(value: Any) -> Optional[str]:
    """
    Normalizes province/regency names:
    - strips the value
    - collapses inner whitespace
    Case is kept as-is so group keys stay identical to the source.
    """
    if value is None:
        return None
    s = re.sub(r"\s+", " ", str(value)).strip()
    return s or None


def normalize_code(value: Any) -> Optional[str]:
    """
    Normalizes administrative codes. Integral floats (32.0) become "32".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    s = str(value).strip()
    return s or None


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    # "12", " 12 ", 12.0 and "12.7" parse; anything else becomes the default
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    s = str(value).strip()
    if not s:
        return default
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return int(float(s))
    except (ValueError, OverflowError):
        return default
