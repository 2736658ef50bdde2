from functools import wraps
from flask import g, jsonify

from models import db
from models.user import AdminUser
from security.session import get_session_from_request


def load_current_admin():
    """before_request: resolve the session cookie into g.admin (None for public callers)."""
    sess = get_session_from_request()
    g.admin_session = sess
    g.admin = db.session.get(AdminUser, sess.admin_id) if sess else None


def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "admin", None) is None:
            return jsonify(error="Unauthorized"), 401
        return fn(*args, **kwargs)
    return wrapper
