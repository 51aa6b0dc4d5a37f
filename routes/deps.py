# ─────────────────────────────────────────────────────────────────
# routes/deps.py — Shared Route Dependencies
# ─────────────────────────────────────────────────────────────────

from typing import Optional

from fastapi import Header, HTTPException, Request

from services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """The raw token from "Authorization: Bearer <token>"; 401 if absent."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token. Send 'Authorization: Bearer <token>'.",
        )
    return token.strip()
