"""
PDF download endpoint.

GET /api/quotes/{quote_id}/pdf: download the quote as a PDF document.

Supports auth via:
1. Authorization: Bearer <token> header (standard)
2. ?token=<jwt> query param (for window.open / direct download links)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..aggregator import QuoteAggregator
from ..auth import bearer_scheme, require_quote_access, user_from_token
from ..database import get_db
from ..pdf_generator import generate_quote_pdf

router = APIRouter(prefix="/quotes", tags=["pdf"])


@router.get("/{quote_id}/pdf")
def download_pdf(
    quote_id: str,
    token: Optional[str] = Query(None),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Generate and download a PDF quote document.

    Auth: Bearer header OR ?token= query param.
    Returns: application/pdf
    """
    header_token = credentials.credentials if credentials else None
    current_user = user_from_token(token or header_token, db)

    agg = QuoteAggregator(db)
    quote = require_quote_access(current_user, agg.get_quote(quote_id))

    summary = agg.quote_summary(quote_id)
    if quote.analysis_json:
        summary["recommendations"] = quote.analysis_json.get("recommendations", [])

    pdf_bytes = generate_quote_pdf(summary, owner_name=current_user.full_name or current_user.email)

    filename = f"Quote-{quote_id[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
