import json
from flask import g, has_request_context, request
from models import db
from models.audit_log import AuditLog

def log_event(action: str, admin_id=None, entity=None, entity_id=None, metadata=None):
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")
        if admin_id is None and getattr(g, "admin", None) is not None:
            admin_id = g.admin.id

    row = AuditLog(
        admin_id=admin_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    db.session.commit()
