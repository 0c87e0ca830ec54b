#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
-----------------------------------------------------------------------------------------------------
Project: DENGUE-DASH         File: web/schemas.py
Version: v0.1           Date: 2026-10-19
Author:  DENGUE-DASH maintainers
-----------------------------------------------------------------------------------------------------
Description: Request body schemas for the auth routes.
Inputs: JSON bodies
Outputs: validated/normalized models, field-level error lists.
Dependencies: pydantic
-----------------------------------------------------------------------------------------------------
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator

from denguedash.web.responses import ValidationFailed

M = TypeVar("M", bound=BaseModel)


def _check_full_name(v: str) -> str:
    if not v:
        raise ValueError("Full name cannot be empty!")
    if len(v) < 5:
        raise ValueError("The full name must be at least 5 characters long!")
    return v.strip()


def _check_email(v: str) -> str:
    if not v:
        raise ValueError("Email address cannot be empty!")
    if len(v) > 100:
        raise ValueError("The email address are limited to 100 characters!")
    return v.lower().strip()


def _check_username(v: str) -> str:
    if not v:
        raise ValueError("Username cannot be empty!")
    if len(v) < 5:
        raise ValueError("The username must be at least 5 characters long!")
    return v.lower().strip()


def _check_password(v: str) -> str:
    if not v:
        raise ValueError("Password cannot be empty!")
    if len(v) < 8:
        raise ValueError("Passwords must be at least 8 characters long!")
    if not re.search(r"[0-9]", v):
        raise ValueError("Passwords must contain at least 1 number!")
    if not re.search(r"[a-z]", v):
        raise ValueError("Passwords must contain at least 1 lowercase letter!")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Passwords must contain at least 1 uppercase letter!")
    if not re.search(r"[^A-Za-z0-9]", v):
        raise ValueError("Passwords must contain at least 1 special character!")
    return v


class VerifyAccountSchema(BaseModel):
    username: str

    @field_validator("username")
    def validate_username(cls, v):
        return _check_username(v)


class LoginSchema(VerifyAccountSchema):
    password: str

    @field_validator("password")
    def validate_password(cls, v):
        return _check_password(v)


class ResetPasswordSchema(LoginSchema):
    pass


class SignupSchema(LoginSchema):
    fullName: str
    email: str

    @field_validator("fullName")
    def validate_full_name(cls, v):
        return _check_full_name(v)

    @field_validator("email")
    def validate_email(cls, v):
        return _check_email(v)


def field_errors(exc: ValidationError) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        msg = str(err.get("msg") or "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.append({"field": loc, "message": msg})
    return out


def parse_body(schema: Type[M], body: Any) -> M:
    if not isinstance(body, dict):
        raise ValidationFailed([{"field": "body", "message": "Request body must be a JSON object"}])
    try:
        return schema.model_validate(body)
    except ValidationError as exc:
        raise ValidationFailed(field_errors(exc)) from exc
