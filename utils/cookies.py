"""
Auth cookie helpers.

A cookie is identified by its name plus path/domain, and browsers only
accept a deletion carrying the same secure/samesite attributes. Setting and
clearing therefore both go through _cookie_scope().
"""
from __future__ import annotations

from typing import Optional

from flask import Request, Response, current_app


def _cookie_scope(path: str) -> dict:
    cfg = current_app.config
    return {
        "path": path,
        "domain": cfg.get("COOKIE_DOMAIN"),
        "secure": bool(cfg.get("COOKIE_SECURE")),
        "httponly": True,
        "samesite": cfg.get("COOKIE_SAMESITE", "Lax"),
    }


def access_cookie_scope() -> dict:
    return _cookie_scope(current_app.config["ACCESS_COOKIE_PATH"])


def refresh_cookie_scope() -> dict:
    return _cookie_scope(current_app.config["REFRESH_COOKIE_PATH"])


def set_access_cookie(resp: Response, token: str) -> None:
    max_age = int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())
    resp.set_cookie(current_app.config["ACCESS_COOKIE_NAME"], token, max_age=max_age, **access_cookie_scope())


def set_refresh_cookie(resp: Response, token: str, max_age: Optional[int] = None) -> None:
    if max_age is None:
        max_age = int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds())
    resp.set_cookie(current_app.config["REFRESH_COOKIE_NAME"], token, max_age=max_age, **refresh_cookie_scope())


def set_auth_cookies(resp: Response, access_token: str, refresh_token: str, refresh_max_age: Optional[int] = None) -> None:
    set_access_cookie(resp, access_token)
    set_refresh_cookie(resp, refresh_token, max_age=refresh_max_age)


def clear_auth_cookies(resp: Response) -> None:
    resp.delete_cookie(current_app.config["ACCESS_COOKIE_NAME"], **access_cookie_scope())
    resp.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"], **refresh_cookie_scope())


def _read(req: Request, name: str) -> Optional[str]:
    val = req.cookies.get(name)
    if not val or not isinstance(val, str):
        return None
    val = val.strip()
    return val or None


def read_access_cookie(req: Request) -> Optional[str]:
    return _read(req, current_app.config["ACCESS_COOKIE_NAME"])


def read_refresh_cookie(req: Request) -> Optional[str]:
    return _read(req, current_app.config["REFRESH_COOKIE_NAME"])
