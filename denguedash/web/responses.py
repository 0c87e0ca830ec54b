#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: web/responses.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: JSON response envelope and the API error types mapped onto it.
Inputs: payload, status, message.
Outputs: {success, statusCode, message, data, errors, path, timestamp}
Dependencies: flask
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from flask import Response, jsonify, request

from denguedash.core.utils.logs import utc_now


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message
        self.errors = errors


class ValidationFailed(ApiError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, fields: List[Dict[str, str]], message: Optional[str] = None) -> None:
        detail = "; ".join(f"{f['field']}: {f['message']}" for f in fields)
        super().__init__(message, {"detail": detail, "fields": fields})


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Unauthorized(ApiError):
    status_code = 401
    message = "Unauthorized"


def to_jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _request_path() -> str:
    # request.full_path always ends with "?" when there is no query string
    return request.full_path.rstrip("?") if request else ""


def send_response(
    status_code: int,
    success: bool,
    message: str,
    data: Any = None,
    errors: Any = None,
) -> Tuple[Response, int]:
    body = {
        "success": success,
        "statusCode": status_code,
        "message": message,
        "data": to_jsonable(data),
        "errors": to_jsonable(errors),
        "path": _request_path(),
        "timestamp": utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }
    return jsonify(body), status_code
