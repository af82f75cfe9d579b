"""End-to-end over HTTP: upload, pay, review, read."""
from decimal import Decimal

import pytest

USER_EMAIL = "reader@library.test"
OTHER_EMAIL = "other@library.test"

PDF = b"%PDF-1.4\n%paid\n"


def upload(client, headers, price="49", title="Physics Class 10", filename="physics.pdf", content=PDF):
    return client.post(
        "/documents",
        headers=headers,
        data={"title": title, "category": "Maharashtra", "price": price},
        files={"file": (filename, content, "application/pdf")},
    )


@pytest.fixture
def paid_doc(client, admin_headers):
    resp = upload(client, admin_headers)
    assert resp.status_code == 201
    return resp.json()


def submit(client, headers, document_id, ref):
    return client.post("/payment-requests", headers=headers, json={"documentId": document_id, "utrId": ref})


class TestPaymentFlow:
    def test_submit_approve_read(self, client, paid_doc, admin_headers, user_headers):
        doc_id = paid_doc["id"]
        assert paid_doc["locked"] is True

        resp = client.get(f"/documents/{doc_id}/file", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 402
        body = resp.json()
        assert body["code"] == "payment_required"
        assert Decimal(body["decision"]["price"]) == Decimal("49")

        resp = submit(client, user_headers, doc_id, "UTR123")
        assert resp.status_code == 201
        claim = resp.json()
        assert claim["status"] == "pending"
        assert claim["user_email"] == USER_EMAIL
        assert claim["document_title"] == "Physics Class 10"

        resp = client.get("/payment-requests/status", headers=user_headers, params={"documentId": doc_id})
        assert resp.json() == {"status": "pending"}

        resp = client.post(f"/admin/payment-requests/{claim['id']}/approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["changed"] is True
        assert resp.json()["claim"]["status"] == "approved"

        resp = client.get("/payment-requests/status", headers=user_headers, params={"documentId": doc_id})
        assert resp.json() == {"status": "approved"}
        resp = client.get("/purchases/check", headers=user_headers, params={"documentId": doc_id})
        assert resp.json() == {"entitled": True}

        resp = client.get(f"/documents/{doc_id}/file?page=7", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 307
        location = resp.headers["location"]
        assert "/files/" in location

        resp = client.get(location)
        assert resp.status_code == 200
        assert resp.content == PDF
        assert resp.headers["content-type"] == "application/pdf"

    def test_duplicate_reference(self, client, paid_doc, user_headers, other_headers):
        assert submit(client, user_headers, paid_doc["id"], "UTR999").status_code == 201
        resp = submit(client, other_headers, paid_doc["id"], "UTR999")
        assert resp.status_code == 400
        assert resp.json()["code"] == "duplicate_reference"
        assert resp.json()["detail"] == "This transaction reference has already been submitted."

    def test_free_document_not_payable(self, client, admin_headers, user_headers):
        free = upload(client, admin_headers, price="").json()
        resp = submit(client, user_headers, free["id"], "UTR1")
        assert resp.status_code == 400
        assert resp.json()["code"] == "document_not_payable"

    def test_unknown_document(self, client, user_headers):
        resp = submit(client, user_headers, "missing", "UTR1")
        assert resp.status_code == 404

    def test_submit_requires_sign_in(self, client, paid_doc):
        resp = client.post("/payment-requests", json={"documentId": paid_doc["id"], "utrId": "UTR1"})
        assert resp.status_code == 401

    def test_submit_for_other_user_forbidden(self, client, paid_doc, user_headers):
        resp = client.post(
            "/payment-requests",
            headers=user_headers,
            json={"documentId": paid_doc["id"], "utrId": "UTR1", "user": OTHER_EMAIL},
        )
        assert resp.status_code == 403

    def test_status_of_other_user(self, client, paid_doc, user_headers, other_headers, admin_headers):
        submit(client, user_headers, paid_doc["id"], "UTR1")
        params = {"documentId": paid_doc["id"], "user": USER_EMAIL}
        assert client.get("/payment-requests/status", headers=other_headers, params=params).status_code == 403
        resp = client.get("/payment-requests/status", headers=admin_headers, params=params)
        assert resp.json() == {"status": "pending"}

    def test_status_without_claims(self, client, paid_doc, user_headers):
        resp = client.get("/payment-requests/status", headers=user_headers, params={"documentId": paid_doc["id"]})
        assert resp.json() == {"status": None}

    def test_my_claims(self, client, paid_doc, user_headers, other_headers):
        submit(client, user_headers, paid_doc["id"], "UTR1")
        submit(client, other_headers, paid_doc["id"], "UTR2")
        refs = [c["transaction_ref"] for c in client.get("/payment-requests", headers=user_headers).json()]
        assert refs == ["UTR1"]


class TestReview:
    def test_non_admin_cannot_review(self, client, paid_doc, user_headers):
        claim = submit(client, user_headers, paid_doc["id"], "UTR1").json()
        resp = client.post(f"/admin/payment-requests/{claim['id']}/approve", headers=user_headers)
        assert resp.status_code == 403
        resp = client.get(f"/documents/{paid_doc['id']}/file", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 402

    def test_admin_list_newest_first(self, client, paid_doc, user_headers, other_headers, admin_headers):
        submit(client, user_headers, paid_doc["id"], "UTR1")
        submit(client, other_headers, paid_doc["id"], "UTR2")
        refs = [c["transaction_ref"] for c in client.get("/admin/payment-requests", headers=admin_headers).json()]
        assert refs == ["UTR2", "UTR1"]

    def test_approve_twice_and_reject_after(self, client, paid_doc, user_headers, admin_headers):
        claim = submit(client, user_headers, paid_doc["id"], "UTR1").json()
        url = f"/admin/payment-requests/{claim['id']}"
        assert client.post(f"{url}/approve", headers=admin_headers).json()["changed"] is True
        resp = client.post(f"{url}/approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["changed"] is False
        resp = client.post(f"{url}/reject", headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_transition"

    def test_reject_then_approve_refused(self, client, paid_doc, user_headers, admin_headers):
        claim = submit(client, user_headers, paid_doc["id"], "UTR1").json()
        url = f"/admin/payment-requests/{claim['id']}"
        resp = client.post(f"{url}/reject", headers=admin_headers)
        assert resp.json()["claim"]["status"] == "rejected"
        assert client.post(f"{url}/approve", headers=admin_headers).status_code == 409
        resp = client.get("/purchases/check", headers=user_headers, params={"documentId": paid_doc["id"]})
        assert resp.json() == {"entitled": False}

    def test_review_unknown_claim(self, client, admin_headers):
        assert client.post("/admin/payment-requests/9999/approve", headers=admin_headers).status_code == 404

    def test_review_is_audited(self, client, paid_doc, user_headers, admin_headers):
        claim = submit(client, user_headers, paid_doc["id"], "UTR1").json()
        client.post(f"/admin/payment-requests/{claim['id']}/approve", headers=admin_headers)
        resp = client.get(
            "/admin/audit",
            headers=admin_headers,
            params={"entity_type": "payment_claim", "entity_id": str(claim["id"])},
        )
        rows = resp.json()
        assert [r["action"] for r in rows] == ["claim_approved"]

    def test_promoted_user_can_review(self, client, paid_doc, user_headers, other_headers, admin_headers):
        claim = submit(client, user_headers, paid_doc["id"], "UTR1").json()
        resp = client.put(f"/admin/users/{OTHER_EMAIL}/role", headers=admin_headers, json={"role": "admin"})
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        resp = client.post(f"/admin/payment-requests/{claim['id']}/approve", headers=other_headers)
        assert resp.status_code == 200

    def test_unknown_role(self, client, admin_headers):
        resp = client.put(f"/admin/users/{USER_EMAIL}/role", headers=admin_headers, json={"role": "owner"})
        assert resp.status_code == 400
