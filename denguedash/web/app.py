#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: web/app.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Flask JSON API over the dengue_cases aggregation engine plus the auth routes.
Inputs: config/mongo.yaml, config/web.yaml, dengue_cases / users collections.
Outputs: JSON envelopes {success, statusCode, message, data, errors, path, timestamp}.
Dependencies: flask, pymongo, pyyaml
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

import traceback
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from flask import Blueprint, Flask, request, session
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from denguedash.core import aggregation
from denguedash.core.utils.logs import log, utc_now
from denguedash.core.years import YearResolver, parse_year
from denguedash.web.auth import SESSION_USER_KEY, auth_bp
from denguedash.web.backend import CONFIG_DIR, EXTENSION_KEY, LOG_DIR, Backend, get_backend, load_web_cfg
from denguedash.web.responses import ApiError, NotFound, Unauthorized, ValidationFailed, send_response

dengue_bp = Blueprint("dengue", __name__, url_prefix="/api/dengue")


# =============================================================================
# 1) QUERY PARAMS
# =============================================================================

def _arg(name: str) -> str:
    return str(request.args.get(name) or "").strip()


def _limit_value(raw: Any, default: int = 10) -> int:
    try:
        value = int(raw)
        return value if value > 0 else default
    except (TypeError, ValueError):
        return default


def _optional_year(name: str) -> Optional[int]:
    raw = _arg(name)
    if not raw:
        return None
    year = parse_year(raw)
    if year is None:
        raise ValidationFailed([{"field": name, "message": "must be an integer year"}])
    return year


def _view() -> str:
    view = _arg("view") or aggregation.PROVINCE_VIEW
    if view not in aggregation.VIEWS:
        raise ValidationFailed(
            [{"field": "view", "message": f"must be one of: {', '.join(aggregation.VIEWS)}"}]
        )
    return view


def _cases() -> Collection:
    return get_backend().cases_collection()


def _resolver() -> YearResolver:
    return get_backend().resolver


def _resolve_year(collection: Collection) -> int:
    year = _resolver().resolve(collection, request.args.get("year"))
    log("INFO", f"{request.path} | year={year}")
    return year


# =============================================================================
# 2) DENGUE ROUTES
# =============================================================================

@dengue_bp.before_request
def _require_session() -> None:
    if get_backend().require_auth and not session.get(SESSION_USER_KEY):
        raise Unauthorized("Unauthorized - No session")


@dengue_bp.route("/stats")
def stats() -> Any:
    collection = _cases()
    year = _resolve_year(collection)
    data = aggregation.build_summary(collection, year)
    return send_response(200, True, "Dengue statistics retrieved successfully", data)


@dengue_bp.route("/cases-by-year")
def cases_by_year() -> Any:
    collection = _cases()
    year = _resolve_year(collection)
    data = aggregation.build_cases_by_year(collection, year)
    return send_response(200, True, "Dengue cases by year retrieved successfully", data)


@dengue_bp.route("/cases-by-province")
def cases_by_province() -> Any:
    view = _view()
    province_code = _arg("provinceCode")
    collection = _cases()

    if view == aggregation.PROVINCE_VIEW and province_code:
        if not aggregation.code_exists(collection, "provinceCode", province_code):
            raise NotFound(f"Province not found: {province_code}")

    year = _resolve_year(collection)
    data = aggregation.build_breakdown(collection, year, view, province_code or None)
    return send_response(200, True, f"Dengue cases by {view} retrieved successfully", data)


@dengue_bp.route("/trends")
def trends() -> Any:
    years = _limit_value(request.args.get("years"), default=aggregation.DEFAULT_TREND_YEARS)
    start_year = _optional_year("startYear")
    end_year = _optional_year("endYear")

    start, end = aggregation.trend_window(_resolver().current_year(), years, start_year, end_year)
    if start > end:
        raise ValidationFailed([{"field": "startYear", "message": "must not be greater than endYear"}])

    data = aggregation.build_trends(_cases(), start, end)
    return send_response(200, True, "Dengue trends retrieved successfully", data)


@dengue_bp.route("/high-risk-areas")
def high_risk_areas() -> Any:
    limit = _limit_value(request.args.get("limit"), default=aggregation.HIGH_RISK_DEFAULT_LIMIT)
    collection = _cases()
    year = _resolve_year(collection)
    data = aggregation.build_high_risk_areas(collection, year, limit)
    return send_response(200, True, "High-risk areas retrieved successfully", data)


@dengue_bp.route("/case-details")
def case_details() -> Any:
    regency_code = _arg("regencyCode")
    collection = _cases()

    if regency_code and not aggregation.code_exists(collection, "regencyCode", regency_code):
        raise NotFound(f"Regency not found: {regency_code}")

    year = _resolve_year(collection)
    data = aggregation.build_case_details(collection, year, regency_code or None)
    return send_response(200, True, "Case details retrieved successfully", data)


@dengue_bp.route("/chart-data")
def chart_data() -> Any:
    data = aggregation.build_chart_data(_cases())
    return send_response(200, True, "Chart data retrieved successfully", data)


# =============================================================================
# 3) ERROR HANDLERS
# =============================================================================

def _handle_api_error(err: ApiError) -> Any:
    return send_response(err.status_code, False, err.message, None, err.errors)


def _handle_http_error(err: HTTPException) -> Any:
    if err.code == 404:
        message = f"Not found endpoint: {request.path}"
        return send_response(404, False, message, None, {"detail": message})
    return send_response(err.code or 500, False, err.name, None, {"detail": err.description})


def _handle_storage_error(err: PyMongoError) -> Any:
    log("ERROR", f"MongoDB error on {request.path}: {err}")
    print(traceback.format_exc())
    get_backend().web_log("storage_error", {"path": request.path, "error": str(err)})
    return send_response(500, False, "Internal server error", None, {"detail": str(err)})


def _handle_unexpected(err: Exception) -> Any:
    log("ERROR", f"Unhandled error on {request.path}: {err}")
    print(traceback.format_exc())
    return send_response(500, False, "Internal server error", None, {"detail": str(err)})


# =============================================================================
# 4) APP FACTORY
# =============================================================================

def create_app(
    config_dir: Optional[Path] = None,
    *,
    dengue_cases: Optional[Collection] = None,
    users: Optional[Collection] = None,
    resolver: Optional[YearResolver] = None,
    log_dir: Optional[Path] = None,
    secret_key: Optional[str] = None,
    require_auth: Optional[bool] = None,
) -> Flask:
    """
    Builds the API. Collections passed in are used as-is; missing ones are
    opened lazily from config_dir/mongo.yaml on first use.
    """
    config_dir = config_dir or CONFIG_DIR
    web_cfg = load_web_cfg(config_dir)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=secret_key or web_cfg.secret_key,
        PERMANENT_SESSION_LIFETIME=timedelta(days=web_cfg.session_days),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Strict",
        SESSION_COOKIE_SECURE=web_cfg.cookie_secure,
        DENGUE_HOST=web_cfg.host,
        DENGUE_PORT=web_cfg.port,
    )
    app.json.sort_keys = False

    app.extensions[EXTENSION_KEY] = Backend(
        config_dir=config_dir,
        log_dir=log_dir or LOG_DIR,
        resolver=resolver or YearResolver(),
        dengue_cases=dengue_cases,
        users=users,
        require_auth=web_cfg.require_auth if require_auth is None else require_auth,
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(dengue_bp)

    @app.route("/api/health")
    def health() -> Any:
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }

    app.register_error_handler(ApiError, _handle_api_error)
    app.register_error_handler(HTTPException, _handle_http_error)
    app.register_error_handler(PyMongoError, _handle_storage_error)
    app.register_error_handler(Exception, _handle_unexpected)
    return app


def main() -> int:
    app = create_app()
    log("INFO", f"Server running on port {app.config['DENGUE_PORT']}")
    app.run(debug=False, host=app.config["DENGUE_HOST"], port=app.config["DENGUE_PORT"], use_reloader=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
