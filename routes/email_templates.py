from flask import Blueprint, current_app, jsonify, request

from models import db
from models.db import utcnow
from models.email_template import EmailTemplate
from services.notifications import DEFAULT_TEMPLATES, send_templated
from services.templates import escape_variables, find_placeholders, render_placeholders, sample_variables
from utils.audit import log_event
from utils.auth_context import admin_required

email_templates_bp = Blueprint("email_templates", __name__, url_prefix="/api/admin/email-templates")


def _get_template(key: str):
    return EmailTemplate.query.filter_by(key=key).first()


def _preview_variables(template, subject, body):
    names = list(template.available_variables or [])
    for name in find_placeholders(subject) + find_placeholders(body):
        if name not in names:
            names.append(name)
    variables = sample_variables(names)
    variables["brandName"] = current_app.config.get("EMAIL_BRAND_NAME", "AirTransfer")
    return variables


@email_templates_bp.get("")
@admin_required
def list_templates():
    templates = EmailTemplate.query.order_by(EmailTemplate.key.asc()).all()
    return jsonify([t.to_dict() for t in templates]), 200


@email_templates_bp.get("/<key>")
@admin_required
def get_template(key: str):
    template = _get_template(key)
    if not template:
        return jsonify(error="Email template not found"), 404
    return jsonify(template.to_dict()), 200


@email_templates_bp.put("/<key>")
@admin_required
def update_template(key: str):
    template = _get_template(key)
    if not template:
        return jsonify(error="Email template not found"), 404

    data = request.get_json(silent=True) or {}
    for field in ("subject", "body", "name"):
        if data.get(field) is not None and not isinstance(data[field], str):
            return jsonify(error=f"{field} must be a string"), 400

    if "subject" in data:
        subject = (data.get("subject") or "").strip()
        if not subject:
            return jsonify(error="subject is required"), 400
        template.subject = subject[:255]
    if "body" in data:
        body = data.get("body") or ""
        if not body.strip():
            return jsonify(error="body is required"), 400
        template.body = body
    if (data.get("name") or "").strip():
        template.name = data["name"].strip()[:120]
    if "is_active" in data:
        template.is_active = bool(data.get("is_active"))

    template.updated_at = utcnow()
    db.session.commit()

    log_event("EMAIL_TEMPLATE_UPDATE", entity="email_template", entity_id=template.key,
              metadata={"is_active": template.is_active})
    return jsonify(template.to_dict()), 200


@email_templates_bp.post("/<key>/reset")
@admin_required
def reset_template(key: str):
    template = _get_template(key)
    default = DEFAULT_TEMPLATES.get(key)
    if not template or not default:
        return jsonify(error="Email template not found"), 404

    template.subject = default["subject"]
    template.body = default["body"]
    template.available_variables = list(default["variables"])
    template.updated_at = utcnow()
    db.session.commit()

    log_event("EMAIL_TEMPLATE_RESET", entity="email_template", entity_id=template.key)
    return jsonify(template.to_dict()), 200


@email_templates_bp.post("/<key>/preview")
@admin_required
def preview_template(key: str):
    """
    Render the template (or unsaved subject/body from the request) with
    sample data. Sample values are HTML-escaped before substitution; the
    template markup itself is admin-authored and left as is.
    """
    template = _get_template(key)
    if not template:
        return jsonify(error="Email template not found"), 404

    data = request.get_json(silent=True) or {}
    subject = data.get("subject") if isinstance(data.get("subject"), str) else template.subject
    body = data.get("body") if isinstance(data.get("body"), str) else template.body

    variables = _preview_variables(template, subject, body)
    if isinstance(data.get("variables"), dict):
        variables.update(data["variables"])
    safe = escape_variables(variables)

    return jsonify(
        subject=render_placeholders(subject, safe),
        body=render_placeholders(body, safe),
        variables=variables,
    ), 200


@email_templates_bp.post("/<key>/test-send")
@admin_required
def test_send(key: str):
    template = _get_template(key)
    if not template:
        return jsonify(error="Email template not found"), 404

    data = request.get_json(silent=True) or {}
    to_email = data.get("to")
    if to_email is not None and not isinstance(to_email, str):
        return jsonify(error="to must be a string"), 400
    to_email = (to_email or "").strip()
    variables = _preview_variables(template, template.subject, template.body)
    result = send_templated(template.key, to_email, variables)

    log_event("EMAIL_TEMPLATE_TEST_SEND", entity="email_template", entity_id=template.key,
              metadata={"to": to_email})
    return jsonify(success=True, **result), 200
