import hashlib
import secrets
from datetime import timedelta
from flask import request, current_app

from models import db
from models.db import utcnow
from models.session import AdminSession


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _cookie_token():
    return request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "airtransfer_session"))


def create_session(admin_id: str) -> str:
    """Start an admin session and return the raw token for the cookie."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 30 * 24 * 60 * 60)

    db.session.add(AdminSession(
        admin_id=admin_id,
        token_hash=_hash_token(raw_token),
        expires_at=utcnow() + timedelta(seconds=lifetime),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token


def get_session_from_request():
    """The caller's live admin session, touched for idle tracking; None when absent, expired or idle."""
    raw_token = _cookie_token()
    if not raw_token:
        return None

    sess = AdminSession.query.filter_by(token_hash=_hash_token(raw_token)).first()
    now = utcnow()
    if not sess or not sess.is_usable(now, current_app.config.get("IDLE_TIMEOUT_SECONDS", 8 * 60 * 60)):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    updated = (
        AdminSession.query
        .filter_by(token_hash=_hash_token(raw_token), revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return updated > 0


def revoke_all_sessions(admin_id: str) -> int:
    updated = (
        AdminSession.query
        .filter_by(admin_id=admin_id, revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return updated
