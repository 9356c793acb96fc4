"""
Tests for the document endpoints.

Covers ingestion of text, URLs and uploads, listing, owner scoping,
re-ingestion, deletion and the mapping of pipeline errors to status codes.

System role: Verification of the document HTTP API
"""

import uuid

from tests.api.conftest import API_MAX_DOCUMENTS
from tests.conftest import build_text_pdf

OWNER_HEADERS = {"X-Owner-Id": "student-42"}
OTHER_HEADERS = {"X-Owner-Id": "student-7"}

STUDY_TEXT = "\n\n".join(
    f"Paragraph {n}. The citric acid cycle oxidises acetyl-CoA to carbon dioxide, "
    "producing NADH and FADH2 that feed the electron transport chain."
    for n in range(1, 8)
)

PAGE_HTML = (
    "<html><head><title>Citric Acid Cycle</title></head><body><article>"
    f"<p>{STUDY_TEXT}</p></article></body></html>"
)


def ingest_text(client, headers=OWNER_HEADERS, content=STUDY_TEXT, title=None):
    return client.post(
        "/api/v1/documents/text",
        json={"content": content, "title": title},
        headers=headers,
    )


class TestIngestEndpoints:
    """Test suite for the ingestion routes."""

    def test_text_should_return_ready_result(self, client, api_vector_store) -> None:
        """Test raw text is ingested synchronously."""
        response = ingest_text(client, title="Krebs cycle")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ready"
        assert body["chunk_count"] >= 1
        assert body["error_kind"] is None
        assert len(api_vector_store) == body["chunk_count"]

    def test_short_text_should_return_400(self, client) -> None:
        """Test validation failures map to 400 with the error kind."""
        response = ingest_text(client, content="too short")

        assert response.status_code == 400
        assert response.json()["detail"]["error_kind"] == "validation"

    def test_missing_owner_header_should_be_rejected(self, client) -> None:
        """Test requests without an owner are refused."""
        response = client.post("/api/v1/documents/text", json={"content": STUDY_TEXT})

        assert response.status_code == 422

    def test_blank_owner_header_should_return_400(self, client) -> None:
        """Test whitespace-only owner IDs are refused."""
        response = ingest_text(client, headers={"X-Owner-Id": "   "})

        assert response.status_code == 400

    def test_quota_should_return_429(self, client) -> None:
        """Test the submission past the owner limit is rejected."""
        for _ in range(API_MAX_DOCUMENTS):
            assert ingest_text(client).status_code == 200

        response = ingest_text(client)

        assert response.status_code == 429
        assert response.json()["detail"]["error_kind"] == "quota_exceeded"

    def test_url_should_be_fetched(self, client, api_pages: dict) -> None:
        """Test web pages are ingested through the secure fetcher."""
        api_pages["learn.example.com"] = PAGE_HTML

        response = client.post(
            "/api/v1/documents/url",
            json={"url": "https://learn.example.com/krebs"},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_blocked_url_should_return_400(self, client) -> None:
        """Test SSRF rejections map to 400."""
        response = client.post(
            "/api/v1/documents/url",
            json={"url": "https://169.254.169.254/latest/meta-data/"},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error_kind"] == "security_blocked"

    def test_missing_page_should_return_failed_result(self, client) -> None:
        """Test fetch failures after the document exists come back as FAILED."""
        response = client.post(
            "/api/v1/documents/url",
            json={"url": "https://gone.example.com/"},
            headers=OWNER_HEADERS,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "failed"
        assert body["error_kind"] == "extraction"

    def test_pdf_upload_should_be_ingested(self, client, pdf_lines) -> None:
        """Test multipart PDF uploads are parsed and titled."""
        pdf = build_text_pdf(pdf_lines, title="Cell Biology Notes")

        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("notes.pdf", pdf, "application/pdf")},
            headers=OWNER_HEADERS,
        )

        document = client.get(
            f"/api/v1/documents/{response.json()['document_id']}", headers=OWNER_HEADERS
        ).json()
        assert response.status_code == 200
        assert document["title"] == "Cell Biology Notes"
        assert document["original_filename"] == "notes.pdf"

    def test_non_pdf_upload_should_return_400(self, client) -> None:
        """Test uploads that are not PDFs are rejected."""
        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("notes.pdf", b"<html><body>hi</body></html>", "application/pdf")},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 400

    def test_oversized_upload_should_return_400(self, client) -> None:
        """Test uploads over the byte limit are rejected."""
        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("big.pdf", b"%PDF-1.4\n" + b"0" * (64 * 1024), "application/pdf")},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 400


class TestDocumentQueries:
    """Test suite for listing and fetching documents."""

    def test_list_should_be_owner_scoped(self, client) -> None:
        """Test each owner sees only their documents."""
        ingest_text(client)
        ingest_text(client, headers=OTHER_HEADERS)

        response = client.get("/api/v1/documents", headers=OWNER_HEADERS)

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 1
        assert body["documents"][0]["owner_id"] == "student-42"

    def test_invalid_paging_should_return_400(self, client) -> None:
        """Test non-positive limits are rejected."""
        response = client.get("/api/v1/documents?limit=0", headers=OWNER_HEADERS)

        assert response.status_code == 400

    def test_other_owners_document_should_be_hidden(self, client) -> None:
        """Test documents of another owner look missing."""
        document_id = ingest_text(client, headers=OTHER_HEADERS).json()["document_id"]

        response = client.get(f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS)

        assert response.status_code == 404

    def test_unknown_document_should_return_404(self, client) -> None:
        """Test unknown IDs map to 404."""
        response = client.get(f"/api/v1/documents/{uuid.uuid4()}", headers=OWNER_HEADERS)

        assert response.status_code == 404
        assert response.json()["detail"]["error_kind"] == "not_found"


class TestReingestAndDelete:
    """Test suite for re-ingestion and deletion routes."""

    def test_reingest_text_should_accept_new_content(self, client) -> None:
        """Test text documents are re-ingested from the request body."""
        document_id = ingest_text(client).json()["document_id"]

        response = client.post(
            f"/api/v1/documents/{document_id}/reingest",
            json={"content": STUDY_TEXT.split("\n\n")[0] * 2},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_reingest_text_without_body_should_return_400(self, client) -> None:
        """Test text documents need their content again."""
        document_id = ingest_text(client).json()["document_id"]

        response = client.post(
            f"/api/v1/documents/{document_id}/reingest", headers=OWNER_HEADERS
        )

        assert response.status_code == 400

    def test_delete_should_remove_document(self, client, api_vector_store) -> None:
        """Test deletion clears the document and its vectors and frees quota."""
        document_id = ingest_text(client).json()["document_id"]

        response = client.delete(f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS)

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert len(api_vector_store) == 0
        assert client.get(
            f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS
        ).status_code == 404

    def test_stalled_delete_should_report_pending(self, client, api_vector_store) -> None:
        """Test a deletion that cannot finish reports deletion_pending."""
        document_id = ingest_text(client).json()["document_id"]
        api_vector_store.delete_failures = 10

        response = client.delete(f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS)

        body = response.json()
        assert response.status_code == 200
        assert body["deleted"] is False
        assert body["status"] == "deletion_pending"

    def test_reingest_during_deletion_should_return_409(self, client, api_vector_store) -> None:
        """Test a document mid-deletion cannot be re-ingested."""
        document_id = ingest_text(client).json()["document_id"]
        api_vector_store.delete_failures = 10
        client.delete(f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS)

        response = client.post(
            f"/api/v1/documents/{document_id}/reingest",
            json={"content": STUDY_TEXT},
            headers=OWNER_HEADERS,
        )

        assert response.status_code == 409

    def test_delete_other_owners_document_should_return_404(self, client) -> None:
        """Test owners cannot delete each other's documents."""
        document_id = ingest_text(client, headers=OTHER_HEADERS).json()["document_id"]

        response = client.delete(f"/api/v1/documents/{document_id}", headers=OWNER_HEADERS)

        assert response.status_code == 404
