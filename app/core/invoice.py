# app/core/invoice.py
from fpdf import FPDF

from app.models.order import Order, OrderItem
from app.models.user import User


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def render_invoice_pdf(order: Order, items: list[OrderItem], user: User) -> bytes:
    """
    Render a one-page invoice for a paid order.

    Layout is intentionally plain: header, customer block, one line per
    item, totals.
    """
    currency = "INR"
    pdf = FPDF()
    pdf.add_page()

    pdf.set_font("helvetica", "B", 18)
    pdf.cell(0, 12, "Invoice", align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    pdf.set_font("helvetica", size=12)
    header_lines = [
        f"Name: {user.name}",
        f"Email: {user.email}",
        f"Order ID: {order.id}",
        f"Date: {order.created_at:%d %b %Y}",
        f"Measurement slot: {order.slot_date:%d %b %Y} ({order.slot_time_range})",
    ]
    for line in header_lines:
        pdf.cell(0, 8, _latin1(line), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    pdf.set_font("helvetica", "B", 12)
    pdf.cell(0, 8, "Items", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("helvetica", size=12)
    for it in items:
        line = (
            f"{it.product_name} - Quantity: {it.quantity} - "
            f"Price: {currency} {it.unit_price * it.quantity:.2f}"
        )
        pdf.cell(0, 8, _latin1(line), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    totals = [
        ("Subtotal", order.subtotal),
        ("Discount", -order.discount),
        ("Delivery", order.delivery_fee),
        ("Total", order.total),
    ]
    for label, amount in totals:
        pdf.cell(0, 8, f"{label}: {currency} {amount:.2f}", new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())
