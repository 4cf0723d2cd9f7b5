from __future__ import annotations

import io
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.core.config import settings


def _money(v) -> str:
    return f"PHP {float(v or 0):,.2f}"


def render_receipt_pdf_bytes(booking, payment=None) -> bytes:
    """Return an A4 PDF receipt for a booking and its latest payment. Pure function."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    _, h = A4

    # Header
    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h - 60, f"{settings.APP_NAME} Receipt")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 80, f"Booking Reference: {booking.booking_id}")
    c.drawString(40, h - 96, f"Status: {booking.status}")

    # Guest block
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 130, "Guest")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 148, f"{booking.guest_first_name} {booking.guest_last_name}".strip())
    c.drawString(40, h - 164, f"{booking.guest_email}  {booking.guest_phone}")

    # Stay block
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 200, "Stay")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 218, f"Room:      {booking.room_name or '-'}")
    c.drawString(40, h - 234, f"Check-in:  {booking.check_in_date} {booking.check_in_time or ''}")
    c.drawString(40, h - 250, f"Check-out: {booking.check_out_date} {booking.check_out_time or ''}")
    c.drawString(40, h - 266, f"Guests:    {booking.adults} Adults, {booking.children} Children, {booking.infants} Infants")

    # Payment
    y = h - 304
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, y, "Payment")
    c.setFont("Helvetica", 11)
    rows = [
        ("Room rate", booking.room_rate),
        ("Add-ons", booking.add_ons_total),
        ("Security deposit", booking.security_deposit),
        ("Total", payment.total_amount if payment is not None else booking.total_amount),
        ("Down payment", payment.down_payment if payment is not None else booking.down_payment),
    ]
    if payment is not None:
        rows.append(("Amount paid", payment.amount_paid))
    rows.append(("Remaining balance", payment.remaining_balance if payment is not None else booking.remaining_balance))
    for label, value in rows:
        y -= 18
        c.drawString(40, y, f"{label}:")
        c.drawRightString(300, y, _money(value))
    y -= 18
    method = (payment.payment_method if payment is not None else None) or booking.payment_method or "-"
    c.drawString(40, y, f"Method: {method}")
    if payment is not None:
        y -= 16
        c.drawString(40, y, f"Payment status: {payment.payment_status}")

    # Footer
    c.setFont("Helvetica", 9)
    c.drawString(40, 40, "This receipt is generated automatically from the booking record.")
    c.drawString(40, 26, f"Generated: {datetime.now(timezone.utc).isoformat()}")

    c.showPage()
    c.save()
    return buf.getvalue()
