from flask import Blueprint, request, current_app
from markupsafe import escape

from models.booking import Booking

pay_pages_bp = Blueprint("pay_pages", __name__)


@pay_pages_bp.get("/pay/success")
def pay_success():
    # Simple page Stripe redirects to after payment
    base_url = current_app.config.get("FRONTEND_BASE_URL", "http://localhost:5173").rstrip("/")
    session_id = request.args.get("session_id")

    booking = Booking.query.filter_by(stripe_session_id=session_id).first() if session_id else None
    reference = f"<p>Booking reference: <b>{escape(booking.reference_number)}</b></p>" if booking else ""
    confirmation_url = escape(f"{base_url}/booking-confirmation?session_id={session_id or ''}")

    return f"""
    <html>
      <head><title>Payment Success</title></head>
      <body style="font-family: system-ui; max-width: 720px; margin: 40px auto;">
        <h1>Payment Successful</h1>
        <p>Your booking fee was received. A confirmation email is on its way.</p>
        {reference}
        <a href="{confirmation_url}" style="display: inline-block; padding: 12px 18px; background: #0ea5e9; color: white; text-decoration: none; border-radius: 8px; font-weight: 600;">View booking</a>
      </body>
    </html>
    """, 200


@pay_pages_bp.get("/pay/cancel")
def pay_cancel():
    # Nothing to undo: the booking stays unpaid and the admin can resend the link
    return """
    <html>
      <head><title>Payment Cancelled</title></head>
      <body style="font-family: system-ui; max-width: 720px; margin: 40px auto;">
        <h1>Payment Cancelled</h1>
        <p>No payment was taken. Use the link in your email to try again, or contact us for help.</p>
      </body>
    </html>
    """, 200
