#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: web/auth.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Account routes (register, login, verify, reset password, check, logout) backed by the
             users collection, werkzeug password hashes and the Flask signed-cookie session.
Inputs: JSON bodies, session cookie.
Outputs: response envelopes with the public user view.
Dependencies: flask, werkzeug, pymongo, pydantic
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict

from bson import ObjectId
from bson.errors import InvalidId
from flask import Blueprint, request, session
from werkzeug.security import check_password_hash, generate_password_hash

from denguedash.core.utils.logs import log, utc_now
from denguedash.web.backend import get_backend
from denguedash.web.responses import NotFound, Unauthorized, send_response
from denguedash.web.schemas import (
    LoginSchema,
    ResetPasswordSchema,
    SignupSchema,
    VerifyAccountSchema,
    parse_body,
)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

SESSION_USER_KEY = "userId"
INVALID_CREDENTIALS = "Invalid credentials, please try again"


def _public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": str(doc.get("_id")),
        "fullName": doc.get("fullName"),
        "email": doc.get("email"),
        "username": doc.get("username"),
        "lastLogin": doc.get("lastLogin"),
        "createdAt": doc.get("createdAt"),
        "updatedAt": doc.get("updatedAt"),
    }


def current_user_id() -> str:
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        raise Unauthorized("Unauthorized - No session")
    return str(user_id)


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(view)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        current_user_id()
        return view(*args, **kwargs)

    return wrapped


@auth_bp.route("/register", methods=["POST"])
def register() -> Any:
    data = parse_body(SignupSchema, request.get_json(silent=True))
    users = get_backend().users_collection()

    existing = users.find_one({"$or": [{"email": data.email}, {"username": data.username}]})
    if existing:
        return send_response(409, False, "The user with that email/username is already registered")

    now = utc_now()
    doc = {
        "fullName": data.fullName,
        "email": data.email,
        "username": data.username,
        "password": generate_password_hash(data.password),
        "createdAt": now,
        "updatedAt": now,
    }
    doc["_id"] = users.insert_one(doc).inserted_id

    log("INFO", f"User registered | username={data.username}")
    get_backend().web_log("register", {"username": data.username})
    return send_response(201, True, "Successfully created new users", {"user": _public_user(doc)})


@auth_bp.route("/login", methods=["POST"])
def login() -> Any:
    data = parse_body(LoginSchema, request.get_json(silent=True))
    users = get_backend().users_collection()

    user = users.find_one({"username": data.username})
    if not user or not check_password_hash(user.get("password") or "", data.password):
        get_backend().web_log("login_failed", {"username": data.username})
        return send_response(400, False, INVALID_CREDENTIALS)

    session.clear()
    session[SESSION_USER_KEY] = str(user["_id"])
    session.permanent = True

    now = utc_now()
    users.update_one({"_id": user["_id"]}, {"$set": {"lastLogin": now, "updatedAt": now}})

    get_backend().web_log("login", {"username": data.username})
    return send_response(200, True, "Logged in successfully", {"user": _public_user(user)})


@auth_bp.route("/verify-account", methods=["POST"])
def verify_account() -> Any:
    data = parse_body(VerifyAccountSchema, request.get_json(silent=True))
    users = get_backend().users_collection()

    if not users.find_one({"username": data.username}, projection={"_id": 1}):
        return send_response(404, False, "User not found", {"exist": False})
    return send_response(200, True, "The user has been registered, please enter new password", {"exist": True})


@auth_bp.route("/reset-password", methods=["PUT"])
def reset_password() -> Any:
    data = parse_body(ResetPasswordSchema, request.get_json(silent=True))
    users = get_backend().users_collection()

    if not users.find_one({"username": data.username}, projection={"_id": 1}):
        return send_response(404, False, "User not found", {"exist": False})

    users.update_one(
        {"username": data.username},
        {"$set": {"password": generate_password_hash(data.password), "updatedAt": utc_now()}},
    )
    get_backend().web_log("reset_password", {"username": data.username})
    return send_response(200, True, "Successfully reset password")


@auth_bp.route("/check-auth", methods=["GET"])
@login_required
def check_auth() -> Any:
    try:
        user_id = ObjectId(current_user_id())
    except InvalidId:
        session.clear()
        raise Unauthorized("Unauthorized - Invalid session") from None

    user = get_backend().users_collection().find_one({"_id": user_id}, projection={"password": 0})
    if not user:
        raise NotFound("User not found")
    return send_response(200, True, "Authenticated user", {"user": _public_user(user)})


@auth_bp.route("/logout", methods=["POST"])
def logout() -> Any:
    user_id = session.get(SESSION_USER_KEY)
    session.clear()
    if user_id:
        get_backend().web_log("logout", {"userId": user_id})
    return send_response(200, True, "Logged out successfully")
