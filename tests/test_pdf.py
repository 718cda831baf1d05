"""
PDF output tests.

Tests:
1. Generator renders a full summary to PDF bytes
2. Generator copes with an empty quote and odd characters
3-4. Download endpoint (header auth, ?token= auth, ownership)
"""

from renoquote.pdf_generator import _fmt, _safe, generate_quote_pdf


def _summary():
    return {
        "id": "7d1c6a1e-0000-4000-8000-000000000000",
        "title": "Bathroom remodel",
        "status": "pending",
        "room_type": "bathroom",
        "surface_area": 8.0,
        "quality_tier": "premium",
        "description": "Full strip-out — new shower and tiles",
        "materials_total": 350.0,
        "labor_total": 500.0,
        "total_amount": 850.0,
        "valid_days": 30,
        "created_at": "2026-03-02T10:15:00",
        "sub_quotes": [{
            "title": "Painting",
            "description": None,
            "priority": 1,
            "labor_hours": 10.0,
            "labor_rate": 50.0,
            "labor_cost": 500.0,
            "materials_cost": 350.0,
            "total_cost": 850.0,
            "materials": [{
                "name": "Cable 2.5mm²",
                "unit": "meter",
                "quantity": 10.0,
                "unit_price": 35.0,
                "total_price": 350.0,
            }],
        }],
        "recommendations": [
            {"type": "budget", "title": "Safety margin", "description": "Keep a 10-15% budget margin."},
        ],
    }


def test_generate_quote_pdf():
    pdf = generate_quote_pdf(_summary(), owner_name="Jo Homeowner")
    assert isinstance(pdf, bytes)
    assert pdf.startswith(b"%PDF")


def test_generate_empty_quote_pdf():
    pdf = generate_quote_pdf({"id": "q1", "title": "Empty", "status": "draft", "sub_quotes": []})
    assert pdf.startswith(b"%PDF")
    assert _fmt(1234.5) == "1,234.50"
    assert _fmt(None) == "0.00"
    assert _safe("a — b") == "a  -  b"


def test_pdf_download(client, auth_headers):
    quote = client.post("/api/quotes/", json={"title": "Kitchen"}, headers=auth_headers).json()
    client.post(f"/api/quotes/{quote['id']}/sub-quotes", json={
        "work_category": "carpentry", "title": "Cabinets", "labor_hours": 8, "labor_rate": 60,
    }, headers=auth_headers)

    response = client.get(f"/api/quotes/{quote['id']}/pdf", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")

    token = auth_headers["Authorization"].split(" ", 1)[1]
    via_query = client.get(f"/api/quotes/{quote['id']}/pdf", params={"token": token})
    assert via_query.status_code == 200


def test_pdf_download_auth(client, auth_headers, other_headers):
    quote = client.post("/api/quotes/", json={"title": "Kitchen"}, headers=auth_headers).json()
    assert client.get(f"/api/quotes/{quote['id']}/pdf").status_code == 401
    assert client.get(f"/api/quotes/{quote['id']}/pdf", headers=other_headers).status_code == 403
