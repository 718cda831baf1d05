"""
PDF quote document.

Uses fpdf2 (pure Python, no system dependencies). Sections:
1. Header + quote summary
2. One block per sub-quote: materials table + labor line
3. Project total
4. Recommendations (when the quote was analyzed)
"""

from datetime import datetime

from fpdf import FPDF

from .config import settings

STATUS_LABELS = {
    "draft": "Draft",
    "analyzing": "Analyzing",
    "pending": "Pending approval",
    "approved": "Approved",
    "rejected": "Rejected",
    "expired": "Expired",
}


def _fmt(amount) -> str:
    """Format a number as X,XXX.XX"""
    try:
        return f"{float(amount):,.2f}"
    except (ValueError, TypeError):
        return "0.00"


def _fmt_qty(quantity) -> str:
    try:
        value = float(quantity)
    except (ValueError, TypeError):
        return "0"
    return f"{value:.0f}" if value.is_integer() else f"{value:.2f}"


def _safe(text: str) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        text
        .replace("•", "-")
        .replace("—", " - ")
        .replace("–", "-")
        .replace("’", "'")
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class QuotePDF(FPDF):

    def __init__(self):
        super().__init__()
        self.set_auto_page_break(auto=True, margin=20)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {_safe(title)}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label in ("Qty", "Unit price", "Total") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths):
        self.set_font("Helvetica", "", 8)
        for i, (val, width) in enumerate(zip(values, widths)):
            align = "L" if i < 2 else "R"
            self.cell(width, 5.5, str(val), align=align)
        self.ln()

    def subtotal_row(self, label, amount):
        self.set_font("Helvetica", "B", 9)
        self.cell(140, 6, _safe(label), align="R", border="T")
        self.cell(50, 6, _fmt(amount), align="R", border="T")
        self.ln(8)


def generate_quote_pdf(summary: dict, owner_name: str = "") -> bytes:
    """
    Render a quote summary (``QuoteAggregator.quote_summary``) as PDF bytes.
    """
    pdf = QuotePDF()
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin

    # Header
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(settings.COMPANY_NAME), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(100, 100, 100)
    pdf.cell(0, 5, _safe(settings.COMPANY_EMAIL), new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    created = summary.get("created_at") or ""
    try:
        date_str = datetime.fromisoformat(created).strftime("%B %d, %Y")
    except ValueError:
        date_str = datetime.utcnow().strftime("%B %d, %Y")

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, _safe(summary.get("title", "Quote")), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Reference: {summary.get('id', '')}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Date: {date_str}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Status: {STATUS_LABELS.get(summary.get('status'), summary.get('status'))}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Valid for: {summary.get('valid_days') or settings.QUOTE_VALID_DAYS} days", new_x="LMARGIN", new_y="NEXT")
    if owner_name:
        pdf.cell(0, 5, f"Prepared for: {_safe(owner_name)}", new_x="LMARGIN", new_y="NEXT")

    room = (summary.get("room_type") or "").replace("_", " ")
    surface = summary.get("surface_area")
    if room or surface:
        details = [room.capitalize()] if room else []
        if surface:
            details.append(f"{surface:g} m2")
        details.append(f"{(summary.get('quality_tier') or 'standard').capitalize()} quality")
        pdf.cell(0, 5, _safe(" - ".join(details)), new_x="LMARGIN", new_y="NEXT")

    if summary.get("description"):
        pdf.ln(2)
        pdf.set_font("Helvetica", "", 9)
        pdf.multi_cell(0, 4.5, _safe(summary["description"]))
    pdf.ln(6)

    # Sub-quotes
    cols = [("Material", 80), ("Unit", 25), ("Qty", 20), ("Unit price", 30), ("Total", 35)]
    widths = [c[1] for c in cols]
    for sub in summary.get("sub_quotes", []):
        pdf.section_header(f"{sub['priority']}. {sub['title']}")
        if sub.get("description"):
            pdf.set_font("Helvetica", "I", 8)
            pdf.multi_cell(0, 4, _safe(sub["description"]))
            pdf.ln(1)

        materials = sub.get("materials", [])
        if materials:
            pdf.table_header(cols)
            for m in materials:
                pdf.table_row(
                    [_safe(m["name"][:45]), _safe(m["unit"]), _fmt_qty(m["quantity"]), _fmt(m["unit_price"]), _fmt(m["total_price"])],
                    widths,
                )
        pdf.subtotal_row("Materials", sub.get("materials_cost", 0))

        pdf.set_font("Helvetica", "", 9)
        pdf.cell(140, 6, f"Labor: {_fmt_qty(sub['labor_hours'])} h x {_fmt(sub['labor_rate'])}/h", align="R")
        pdf.cell(50, 6, _fmt(sub.get("labor_cost", 0)), align="R")
        pdf.ln()
        pdf.subtotal_row("Sub-total", sub.get("total_cost", 0))

    # Project total
    pdf.section_header("PROJECT TOTAL")
    pdf.set_font("Helvetica", "", 10)
    for label, key in (("Materials", "materials_total"), ("Labor", "labor_total")):
        pdf.cell(130, 6, label)
        pdf.cell(60, 6, _fmt(summary.get(key, 0)), align="R")
        pdf.ln()

    pdf.ln(1)
    pdf.set_fill_color(45, 55, 72)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, "  QUOTE TOTAL", fill=True)
    pdf.cell(60, 10, f"{_fmt(summary.get('total_amount', 0))}  ", fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    recommendations = summary.get("recommendations") or []
    if recommendations:
        pdf.section_header("RECOMMENDATIONS")
        pdf.set_font("Helvetica", "", 8)
        for rec in recommendations:
            pdf.set_x(pdf.l_margin)
            pdf.multi_cell(pw, 4.5, _safe(f"  - {rec['title']}: {rec['description']}"))

    pdf.ln(6)
    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.set_x(pdf.l_margin)
    pdf.cell(pw, 4, "Estimates assume standard site conditions; hidden defects are billed separately.", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
