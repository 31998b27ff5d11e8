"""
Bill generation for orders.

generate_bill() freezes franchise, customer, items and totals into
Order.bill_data so a reprinted bill never changes when catalog prices do.
render_bill_pdf() draws that snapshot as an A4 tax invoice.
"""
import logging
from datetime import datetime, timezone
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.order import OrderStatus
from app.services.order_service import get_order
from app.services.pricing import money

logger = logging.getLogger(__name__)


def _amount(value) -> str:
    return str(money(value))


def build_bill(order) -> dict:
    """JSON-safe snapshot of an order for billing."""
    franchise = order.franchise
    customer = order.customer
    return {
        "order_number": order.order_number,
        "order_date": order.created_at.isoformat() if order.created_at else None,
        "status": order.status,
        "franchise": {
            "name": franchise.name,
            "address": franchise.address,
            "contact_number": franchise.contact_number,
            "email": franchise.email,
        },
        "customer": {
            "name": customer.full_name,
            "address": customer.address,
            "contact_number": customer.contact_number,
            "email": customer.email,
        },
        "items": [
            {
                "product_id": item.product_id,
                "name": item.product.name,
                "packing": item.product.packing,
                "prescription_required": bool(item.product.prescription_required),
                "quantity": item.quantity,
                "unit_price": _amount(item.unit_price),
                "discount": _amount(item.discount),
                "tax_rate": _amount(item.tax_rate),
                "tax_amount": _amount(item.tax_amount),
                "total_amount": _amount(item.total_amount),
            }
            for item in order.items
        ],
        "totals": {
            "total_amount": _amount(order.total_amount),
            "discount_amount": _amount(order.discount_amount),
            "tax_amount": _amount(order.tax_amount),
            "final_amount": _amount(order.final_amount),
        },
        "notes": order.notes,
    }


def generate_bill(db: Session, order_id: int, franchise_id: Optional[int] = None) -> dict:
    """
    Snapshot an order into bill_data and stamp bill_generated_at.

    Regenerating replaces the previous snapshot.

    Raises:
        NotFoundError: no such order (or it belongs to another franchise)
        ValidationError: the order was cancelled
    """
    order = get_order(db, order_id, franchise_id)
    if order.status == OrderStatus.CANCELLED.value:
        raise ValidationError.for_field("status", "Cancelled orders cannot be billed", "Invalid order state")

    order.bill_data = build_bill(order)
    order.bill_generated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(order)
    logger.info(f"Generated bill for order {order.id} ({order.order_number})")
    return {"order_id": order.id, "bill_generated_at": order.bill_generated_at, "bill": order.bill_data}


def get_or_generate_bill(db: Session, order_id: int, franchise_id: Optional[int] = None) -> dict:
    order = get_order(db, order_id, franchise_id)
    if order.bill_data:
        return order.bill_data
    return generate_bill(db, order_id, franchise_id)["bill"]


def render_bill_pdf(bill: dict) -> BytesIO:
    """
    Draw a bill snapshot as a PDF.

    Args:
        bill: snapshot produced by build_bill()

    Returns:
        BytesIO buffer containing PDF data
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch)

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'BillTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#0f766e'),
        alignment=TA_CENTER,
        spaceAfter=12
    )
    heading_style = ParagraphStyle(
        'BillHeading',
        parent=styles['Heading2'],
        fontSize=13,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )
    normal_style = ParagraphStyle(
        'BillNormal',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("TAX INVOICE", title_style))
    elements.append(Spacer(1, 0.2*inch))

    franchise = bill["franchise"]
    customer = bill["customer"]
    info_table = Table(
        [[
            Paragraph(
                f"<b>{franchise['name']}</b><br/>{franchise['address']}<br/>"
                f"Ph: {franchise['contact_number']}<br/>{franchise['email']}",
                normal_style,
            ),
            Paragraph(
                f"<b>Bill #:</b> {bill['order_number']}<br/>"
                f"<b>Date:</b> {(bill.get('order_date') or '')[:10]}<br/>"
                f"<b>Status:</b> {bill['status'].upper()}",
                normal_style,
            ),
        ]],
        colWidths=[3.8*inch, 2.8*inch],
    )
    info_table.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.2*inch))

    elements.append(Paragraph("<b>Bill To:</b>", heading_style))
    customer_info = f"<b>{customer['name']}</b><br/>{customer['address']}<br/>Ph: {customer['contact_number']}"
    if customer.get("email"):
        customer_info += f"<br/>{customer['email']}"
    elements.append(Paragraph(customer_info, normal_style))
    elements.append(Spacer(1, 0.2*inch))

    header = ["Item", "Qty", "Rate", "Disc", "GST %", "GST", "Amount"]
    rows = [[Paragraph(f"<b>{h}</b>", normal_style) for h in header]]
    for item in bill["items"]:
        name = f"{item['name']} ({item['packing']})"
        if item.get("prescription_required"):
            name += " [Rx]"
        rows.append([
            Paragraph(name, normal_style),
            str(item["quantity"]),
            item["unit_price"],
            item["discount"],
            item["tax_rate"],
            item["tax_amount"],
            item["total_amount"],
        ])

    items_table = Table(rows, colWidths=[2.4*inch, 0.5*inch, 0.8*inch, 0.7*inch, 0.6*inch, 0.7*inch, 0.9*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 1), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    totals = bill["totals"]
    total_table = Table(
        [
            ["", Paragraph("<b>Subtotal:</b>", normal_style), totals["total_amount"]],
            ["", Paragraph("<b>Discount:</b>", normal_style), f"-{totals['discount_amount']}"],
            ["", Paragraph("<b>GST:</b>", normal_style), totals["tax_amount"]],
            ["", Paragraph("<b>TOTAL:</b>", heading_style), Paragraph(f"<b>{totals['final_amount']}</b>", heading_style)],
        ],
        colWidths=[3.9*inch, 1.5*inch, 1.2*inch],
    )
    total_table.setStyle(TableStyle([
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (1, 3), (-1, 3), 1, colors.black),
    ]))
    elements.append(total_table)

    if bill.get("notes"):
        elements.append(Spacer(1, 0.2*inch))
        elements.append(Paragraph(f"<b>Notes:</b> {bill['notes']}", normal_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.5*inch))
    elements.append(Paragraph("Medicines once sold are subject to the pharmacy's return policy.", footer_style))
    elements.append(Paragraph(f"Printed on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
