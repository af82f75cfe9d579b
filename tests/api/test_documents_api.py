"""Catalog routes, entitlement grants and the gated file endpoint."""
import os
from decimal import Decimal
from unittest.mock import patch

from app.core.config import settings

PDF = b"%PDF-1.4\n%catalog\n"


def upload(client, headers, price="", title="Maths", category="CBSE", filename="maths.pdf"):
    return client.post(
        "/documents",
        headers=headers,
        data={"title": title, "category": category, "price": price},
        files={"file": (filename, PDF, "application/pdf")},
    )


class TestCatalog:
    def test_upload_requires_admin(self, client, user_headers):
        assert upload(client, user_headers).status_code == 403

    def test_upload_requires_sign_in(self, client):
        assert upload(client, {}).status_code == 401

    def test_upload_rejects_non_pdf(self, client, admin_headers):
        resp = upload(client, admin_headers, filename="notes.txt")
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_upload_over_size_limit(self, client, admin_headers, storage):
        big = b"%PDF-1.4\n" + b"0" * (1024 * 1024)
        with patch.object(settings, "max_file_size_mb", 1):
            resp = client.post(
                "/documents",
                headers=admin_headers,
                data={"title": "Big", "category": "CBSE"},
                files={"file": ("big.pdf", big, "application/pdf")},
            )
        assert resp.status_code == 400
        assert "1 MB" in resp.json()["detail"]
        assert not os.path.exists(storage.base_path)
        assert client.get("/documents").json() == []

    def test_upload_rejects_negative_price(self, client, admin_headers):
        assert upload(client, admin_headers, price="-3").status_code == 400

    def test_list_and_filter(self, client, admin_headers):
        upload(client, admin_headers, title="A", category="CBSE")
        upload(client, admin_headers, title="B", category="Maharashtra", price="30")
        docs = client.get("/documents").json()
        assert {d["title"] for d in docs} == {"A", "B"}
        docs = client.get("/documents", params={"category": "Maharashtra"}).json()
        assert [d["title"] for d in docs] == ["B"]
        assert docs[0]["locked"] is True

    def test_get_unknown(self, client):
        resp = client.get("/documents/missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_update_price_relocks(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers).json()
        assert doc["locked"] is False
        resp = client.patch(f"/documents/{doc['id']}", headers=admin_headers, json={"price": "15"})
        assert resp.status_code == 200
        assert resp.json()["locked"] is True
        assert Decimal(resp.json()["price"]) == Decimal("15")
        resp = client.get(f"/documents/{doc['id']}/file", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 402

    def test_update_null_price_keeps_document_locked(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers, price="49").json()
        resp = client.patch(f"/documents/{doc['id']}", headers=admin_headers, json={"price": None})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert client.get(f"/documents/{doc['id']}").json()["locked"] is True
        resp = client.get(f"/documents/{doc['id']}/file", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 402

    def test_update_null_author_is_bad_request(self, client, admin_headers):
        doc = upload(client, admin_headers).json()
        resp = client.patch(f"/documents/{doc['id']}", headers=admin_headers, json={"author": None})
        assert resp.status_code == 400
        assert client.get(f"/documents/{doc['id']}").json()["author"] == "Unknown"

    def test_update_requires_admin(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers).json()
        resp = client.patch(f"/documents/{doc['id']}", headers=user_headers, json={"price": "0"})
        assert resp.status_code == 403

    def test_delete_removes_blob(self, client, admin_headers, storage, db):
        doc = upload(client, admin_headers).json()
        from app.models.document import Document

        blob_ref = db.query(Document).filter(Document.id == doc["id"]).one().blob_ref
        path = storage.path_for(blob_ref)
        assert os.path.isfile(path)
        resp = client.delete(f"/documents/{doc['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/documents/{doc['id']}").status_code == 404
        assert not os.path.exists(path)


class TestFileGate:
    def test_free_document_anonymous_redirect(self, client, admin_headers):
        doc = upload(client, admin_headers).json()
        resp = client.get(f"/documents/{doc['id']}/file", follow_redirects=False)
        assert resp.status_code == 307
        assert client.get(resp.headers["location"]).content == PDF

    def test_unknown_document(self, client):
        resp = client.get("/documents/missing/file", follow_redirects=False)
        assert resp.status_code == 404

    def test_admin_reads_paid_document(self, client, admin_headers):
        doc = upload(client, admin_headers, price="99").json()
        resp = client.get(f"/documents/{doc['id']}/file", headers=admin_headers, follow_redirects=False)
        assert resp.status_code == 307

    def test_access_check(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers, price="99").json()
        resp = client.get(f"/documents/{doc['id']}/access", headers=user_headers, params={"page": 3})
        body = resp.json()
        assert body["page"] == 3
        assert body["decision"]["allowed"] is False
        assert body["decision"]["reason"] == "payment_required"
        assert body["decision"]["currency"] == "INR"

    def test_page_must_be_positive(self, client, admin_headers):
        doc = upload(client, admin_headers).json()
        assert client.get(f"/documents/{doc['id']}/access", params={"page": 0}).status_code == 422

    def test_bad_signed_link(self, client):
        assert client.get("/files/not-a-token").status_code == 403

    def test_invalid_bearer_token(self, client, admin_headers):
        doc = upload(client, admin_headers).json()
        resp = client.get(f"/documents/{doc['id']}/file", headers={"Authorization": "Bearer junk"})
        assert resp.status_code == 401


class TestPurchases:
    def test_free_document_self_grant(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers).json()
        first = client.post("/purchases", headers=user_headers, json={"documentId": doc["id"]})
        assert first.status_code == 201
        assert first.json()["source"] == "free"
        second = client.post("/purchases", headers=user_headers, json={"documentId": doc["id"]})
        assert second.json()["id"] == first.json()["id"]
        assert len(client.get("/purchases", headers=user_headers).json()) == 1

    def test_paid_document_self_grant_refused(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers, price="49").json()
        resp = client.post("/purchases", headers=user_headers, json={"documentId": doc["id"]})
        assert resp.status_code == 402
        resp = client.get("/purchases/check", headers=user_headers, params={"documentId": doc["id"]})
        assert resp.json() == {"entitled": False}

    def test_admin_grants_paid_document(self, client, admin_headers, user_headers):
        doc = upload(client, admin_headers, price="49").json()
        resp = client.post(
            "/purchases",
            headers=admin_headers,
            json={"documentId": doc["id"], "user": "reader@library.test"},
        )
        assert resp.status_code == 201
        assert resp.json()["source"] == "admin"
        resp = client.get(f"/documents/{doc['id']}/file", headers=user_headers, follow_redirects=False)
        assert resp.status_code == 307

    def test_unknown_document(self, client, user_headers):
        resp = client.post("/purchases", headers=user_headers, json={"documentId": "missing"})
        assert resp.status_code == 404
