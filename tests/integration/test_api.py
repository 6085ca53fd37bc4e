"""End-to-end tests through the FastAPI routes with in-memory services."""


def approval_payload(email_id: str) -> dict:
    return {"resource_type": "email", "resource_id": email_id, "approved_by": "reviewer"}


def start_draft(test_client) -> tuple[str, str]:
    started = test_client.post("/api/workflows", json={
        "campaign_id": "campaign-reefs",
        "user_id": "user-1",
        "organization_id": "ngo-008",
    })
    assert started.status_code == 200
    workflow_id = started.json()["workflow_id"]

    drafted = test_client.post(f"/api/workflows/{workflow_id}/draft", json={
        "user_id": "user-1",
        "campaign_name": "Caribbean Reef Revival",
    })
    assert drafted.status_code == 200
    return workflow_id, drafted.json()["draft_email"]["id"]


class TestHealth:

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestSearchEndpoints:

    def test_search_ranks_coral_alliance_first(self, test_client, coral_brief):
        response = test_client.post("/api/organizations/search", json={"brief": coral_brief})

        assert response.status_code == 200
        body = response.json()
        assert body["organizations"][0]["id"] == "ngo-008"
        assert body["total"] == len(body["organizations"]) <= 12
        assert all(org["selected_for_outreach"] is False for org in body["organizations"])

    def test_search_with_scores(self, test_client, coral_brief):
        response = test_client.post(
            "/api/organizations/search", json={"brief": coral_brief, "include_scores": True}
        )

        top = response.json()["organizations"][0]
        assert top["organization"]["id"] == "ngo-008"
        assert top["score"] == 285
        assert "focus_hits" in top["breakdown"]

    def test_empty_brief(self, test_client):
        response = test_client.post("/api/organizations/search", json={"brief": "   "})

        assert response.json() == {"organizations": [], "total": 0}

    def test_list_organizations(self, test_client):
        response = test_client.get("/api/organizations")

        assert len(response.json()) == 41

    def test_analyze_brief(self, test_client, coral_brief):
        response = test_client.post("/api/briefs/analyze", json={"brief": coral_brief})

        assert response.status_code == 200
        body = response.json()
        assert body["processed"]["word_count"] == 17
        assert set(body) == {"processed", "entities", "intent", "tone", "gaps"}


class TestWorkflowEndpoints:

    def test_full_approval_flow(self, test_client):
        """Test that a draft moves from review to a single send through the API."""
        workflow_id, email_id = start_draft(test_client)

        reviewed = test_client.post(f"/api/workflows/{workflow_id}/review", json={"user_id": "user-1"})
        assert reviewed.json()["workflow_state"]["stage"] == "user_review"

        recorded = test_client.post("/api/approvals", json={
            "user_id": "reviewer",
            "campaign_id": "campaign-reefs",
            "approval": approval_payload(email_id),
        })
        assert recorded.status_code == 200
        approval = {**approval_payload(email_id), "id": recorded.json()["approval_id"]}

        sent = test_client.post(f"/api/emails/{email_id}/send", json={"user_id": "user-1", "approval": approval})
        again = test_client.post(f"/api/emails/{email_id}/send", json={"user_id": "user-1", "approval": approval})

        assert sent.status_code == 200
        assert sent.json()["already_sent"] is False
        assert again.json()["already_sent"] is True
        assert test_client.get(f"/api/emails/{email_id}").json()["status"] == "sent"
        assert test_client.get(f"/api/workflows/{workflow_id}").json()["stage"] == "completed"

    def test_send_without_approval_is_forbidden(self, test_client):
        _, email_id = start_draft(test_client)

        response = test_client.post(f"/api/emails/{email_id}/send", json={"user_id": "user-1"})

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error_kind"] == "approval"
        assert detail["approval_reason"] == "missing"
        assert test_client.get(f"/api/emails/{email_id}").json()["status"] == "draft"

    def test_unrecorded_approval_is_forbidden(self, test_client):
        _, email_id = start_draft(test_client)

        response = test_client.post(
            f"/api/emails/{email_id}/send",
            json={"user_id": "user-1", "approval": approval_payload(email_id)},
        )

        assert response.status_code == 403
        assert response.json()["detail"]["approval_reason"] == "not_recorded"

    def test_unknown_organization(self, test_client):
        response = test_client.post("/api/workflows", json={
            "campaign_id": "campaign-reefs",
            "user_id": "user-1",
            "organization_id": "ngo-999",
        })

        assert response.status_code == 404

    def test_invalid_inline_organization(self, test_client):
        response = test_client.post("/api/workflows", json={
            "campaign_id": "campaign-reefs",
            "user_id": "user-1",
            "organization": {"id": "x", "name": "X", "email": "not-an-email"},
        })

        assert response.status_code == 422
        assert response.json()["detail"]["error_kind"] == "validation"

    def test_unknown_email(self, test_client):
        response = test_client.post("/api/emails/email-missing/send", json={"user_id": "user-1"})

        assert response.status_code == 404

    def test_risk_is_advisory(self, test_client):
        response = test_client.get("/api/organizations/ngo-008/risk")

        body = response.json()
        assert body["advisory_only"] is True
        assert body["risk_score"] == 3
        assert test_client.get("/api/organizations/ngo-999/risk").status_code == 404
