"""
Tests d'intégration API pour les stages.
"""

from datetime import datetime
from unittest.mock import patch

from app.auth import CurrentUser, require_approved_student
from app.main import app
from app.schemas.internship import InternshipResponse

PAYLOAD = {
    "company_name": "Acme Labs",
    "internship_type": "Summer",
    "duration": "1-2 months",
    "stipend": "Paid",
    "has_ppo": False,
}


def make_response():
    return InternshipResponse(id=1, enrollment_no="0101CS211001", created_at=datetime.now(), **PAYLOAD)


def approve_student():
    app.dependency_overrides[require_approved_student] = lambda: CurrentUser(subject="0101CS211001", role="student")


def test_ajout(client):
    approve_student()
    with patch("app.routers.internships.internship_service.add_internship", return_value=make_response()) as add:
        resp = client.post("/api/v1/internships/me", json=PAYLOAD)

    assert resp.status_code == 201
    assert resp.json()["company_name"] == "Acme Labs"
    assert add.call_args.args[1] == "0101CS211001"


def test_ajout_duree_invalide(client):
    approve_student()
    resp = client.post("/api/v1/internships/me", json={**PAYLOAD, "duration": "2 weeks"})
    assert resp.status_code == 422


def test_liste_admin(client, admin_headers):
    with patch("app.routers.internships.internship_service.list_internships", return_value=[make_response()]) as ls:
        resp = client.get("/api/v1/internships/0101cs211001", headers=admin_headers)

    assert resp.status_code == 200
    assert ls.call_args.args[1] == "0101CS211001"
