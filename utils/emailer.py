import re
import smtplib
from email.message import EmailMessage

from flask import current_app

TAG_RE = re.compile(r"<[^>]+>")


def _html_to_text(html: str) -> str:
    text = TAG_RE.sub("", html or "")
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def send_email(to_email: str, subject: str, html: str):
    """
    Sends an HTML email with a plain-text alternative.
    Returns (ok, error) instead of raising.
    """
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)
    brand = current_app.config.get("EMAIL_BRAND_NAME")

    if not host or not from_email:
        return False, "Email not configured"
    if not to_email:
        return False, "Recipient address missing"

    msg = EmailMessage()
    msg["From"] = f"{brand} <{from_email}>" if brand else from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(_html_to_text(html))
    msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)
