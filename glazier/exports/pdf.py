# glazier/exports/pdf.py
"""Render an estimate read (``Estimate.to_dict(detail=True)``) to PDF bytes.

Pure layout: no database or network access.  Output is byte-for-byte stable
for the same input because reportlab runs in invariant mode.
"""

from __future__ import annotations

import io
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

HEADER_BLUE = colors.Color(59 / 255, 130 / 255, 246 / 255)
DIVIDER_GREY = colors.Color(200 / 255, 200 / 255, 200 / 255)
TOTAL_FILL = colors.Color(240 / 255, 240 / 255, 240 / 255)
FOOTER_TEXT = 'Thank you for your business!'

# Description, Qty, Unit, Unit Price, Total
COLUMN_WIDTHS = [80 * mm, 20 * mm, 25 * mm, 30 * mm, 30 * mm]


def filename_for(estimate: Dict[str, Any]) -> str:
    return f"Estimate_{estimate['estimateNumber']}.pdf"


def _fmt_money(value) -> str:
    amount = Decimal(str(value or 0)).quantize(Decimal('0.01'))
    return f'${amount:,.2f}'


def _fmt_qty(value) -> str:
    qty = Decimal(str(value or 0)).normalize()
    return f'{qty:f}'


def _fmt_rate(value) -> str:
    return f'{Decimal(str(value)).normalize():f}'


def _fmt_date(value) -> str:
    if not value:
        return ''
    return datetime.fromisoformat(value).strftime('%m/%d/%Y')


def _p(text: str, style) -> Paragraph:
    return Paragraph(escape(text).replace('\n', '<br/>'), style)


def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    normal = ParagraphStyle('GlazierNormal', parent=base['Normal'], fontName='Helvetica', fontSize=10, leading=13)
    return {
        'normal': normal,
        'company': ParagraphStyle('Company', parent=normal, fontName='Helvetica-Bold', fontSize=20, leading=24),
        'title': ParagraphStyle('Title', parent=normal, fontName='Helvetica-Bold', fontSize=24, leading=28, alignment=TA_RIGHT),
        'right': ParagraphStyle('Right', parent=normal, alignment=TA_RIGHT),
        'label': ParagraphStyle('Label', parent=normal, fontName='Helvetica-Bold', fontSize=11),
        'cell': ParagraphStyle('Cell', parent=normal, fontSize=9, leading=11),
        'footer': ParagraphStyle('Footer', parent=normal, fontSize=8, textColor=colors.grey, alignment=TA_CENTER),
    }


def _header(estimate, st) -> Table:
    issuer = estimate.get('user') or {}
    left = [_p(issuer.get('companyName') or '', st['company'])]
    for key in ('companyAddress', 'companyPhone', 'companyEmail'):
        if issuer.get(key):
            left.append(_p(issuer[key], st['normal']))
    right = [
        _p('ESTIMATE', st['title']),
        _p(f"#{estimate['estimateNumber']}", st['right']),
        _p(f"Date: {_fmt_date(estimate.get('createdAt'))}", st['right']),
    ]
    t = Table([[left, right]], colWidths=[110 * mm, 75 * mm])
    t.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.75, DIVIDER_GREY),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return t


def _parties(estimate, st) -> Table:
    customer = estimate.get('customer') or {}
    left = [_p('CUSTOMER:', st['label']), _p(customer.get('name') or '', st['normal'])]
    for key in ('phone', 'email'):
        if customer.get(key):
            left.append(_p(customer[key], st['normal']))

    right: List[Any] = []
    if estimate.get('jobAddress'):
        right = [_p('JOB ADDRESS:', st['label']), _p(estimate['jobAddress'], st['normal'])]
        if estimate.get('jobCity'):
            line = estimate['jobCity']
            if estimate.get('jobState'):
                line += f", {estimate['jobState']}"
            line += f" {estimate.get('jobZip') or ''}"
            right.append(_p(line.strip(), st['normal']))
    t = Table([[left, right]], colWidths=[92.5 * mm, 92.5 * mm])
    t.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
    return t


def _line_items(estimate, st) -> Table:
    rows: List[List[Any]] = [['Description', 'Qty', 'Unit', 'Unit Price', 'Total']]
    for item in estimate.get('lineItems') or []:
        rows.append([
            _p(item.get('description') or '', st['cell']),
            _fmt_qty(item.get('quantity')),
            item.get('unit') or '',
            _fmt_money(item.get('unitPrice')),
            _fmt_money(item.get('total')),
        ])
    t = Table(rows, colWidths=COLUMN_WIDTHS, repeatRows=1)
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (2, -1), 'CENTER'),
        ('ALIGN', (3, 0), (4, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]
    for i in range(2, len(rows), 2):
        style.append(('BACKGROUND', (0, i), (-1, i), colors.whitesmoke))
    t.setStyle(TableStyle(style))
    return t


def _totals(estimate) -> Table:
    rows = [['Subtotal:', _fmt_money(estimate.get('subtotal'))]]
    if estimate.get('taxRate') and estimate.get('taxAmount'):
        rows.append([f"Tax ({_fmt_rate(estimate['taxRate'])}%):", _fmt_money(estimate['taxAmount'])])
    rows.append(['TOTAL:', _fmt_money(estimate.get('total'))])
    last = len(rows) - 1
    t = Table(rows, colWidths=[35 * mm, 30 * mm], hAlign='RIGHT')
    t.setStyle(TableStyle([
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('BACKGROUND', (0, last), (-1, last), TOTAL_FILL),
        ('FONTNAME', (0, last), (-1, last), 'Helvetica-Bold'),
        ('FONTSIZE', (0, last), (-1, last), 12),
    ]))
    return t


def _footer(canvas, doc):
    canvas.saveState()
    canvas.setFont('Helvetica', 8)
    canvas.setFillColor(colors.grey)
    canvas.drawCentredString(doc.pagesize[0] / 2, 15 * mm, FOOTER_TEXT)
    canvas.restoreState()


def render_estimate_pdf(estimate: Dict[str, Any]) -> bytes:
    """Lay out ``estimate`` and return the PDF document as bytes."""
    st = _styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=LETTER,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=25 * mm,
        title=f"Estimate {estimate['estimateNumber']}",
        invariant=1,
    )
    story: List[Any] = [
        _header(estimate, st),
        Spacer(1, 8 * mm),
        _parties(estimate, st),
        Spacer(1, 8 * mm),
        _line_items(estimate, st),
        Spacer(1, 6 * mm),
        _totals(estimate),
    ]
    if estimate.get('notes'):
        story += [
            Spacer(1, 8 * mm),
            _p('Notes:', st['label']),
            _p(estimate['notes'], st['normal']),
        ]
    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buf.getvalue()
