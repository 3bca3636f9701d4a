import uuid

from fastapi import status

from tests.conftest import API_KEY, MEMBER, OUTSIDER, PROJECT_ID, bearer, make_session

INGEST_PATH = "/v1/ingest"


def _analytics(metric: str, project_id: str = PROJECT_ID) -> str:
    return f"/v1/analytics/{project_id}/{metric}"


# ---------------------------------------------------------------------------
# Health & docs
# ---------------------------------------------------------------------------


def test_health(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").status_code == 200


def test_public_openapi_yaml(api_client):
    resp = api_client.get("/public/openapi.yaml")
    assert resp.status_code == 200
    assert "/v1/ingest" in resp.text
    assert "/v1/analytics/{project_id}/churn" in resp.text
    assert resp.headers["cache-control"] == "public, max-age=300"
    assert resp.headers["content-type"].startswith("application/x-yaml")


def test_request_id_is_echoed(api_client):
    resp = api_client.get("/health", headers={"X-Request-Id": "abc123"})
    assert resp.headers["X-Request-Id"] == "abc123"


# ---------------------------------------------------------------------------
# POST /v1/ingest
# ---------------------------------------------------------------------------


def test_ingest_success(api_client):
    events = [
        {"type": "REVENUE", "value": 99.99, "occurredAt": "2025-10-18T10:30:00Z", "eventId": str(uuid.uuid4())},
        {"type": "ACTIVE", "userId": "user_456", "occurredAt": "2025-10-18T11:00:00Z"},
    ]
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {"projectId": PROJECT_ID, "received": 2, "inserted": 2}


def test_ingest_replay_reports_zero_inserted(api_client):
    events = [{"type": "SIGNUP", "userId": "u1", "occurredAt": "2025-10-18", "eventId": str(uuid.uuid4())}]
    api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == 200
    assert resp.json()["received"] == 1
    assert resp.json()["inserted"] == 0


def test_ingest_missing_key_is_bad_request(api_client):
    resp = api_client.post(INGEST_PATH, json=[{"type": "ACTIVE"}])
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["error"] == "bad_request"


def test_ingest_unknown_key_is_unauthorized(api_client, db):
    events = [{"type": "ACTIVE", "userId": "u", "occurredAt": "2025-10-18"}]
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": "proj_unknown"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED
    assert db.tables["metric_events"] == []


def test_ingest_validation_failure_is_itemized(api_client, db):
    events = [
        {"type": "REVENUE", "value": -1, "occurredAt": "2025-10-18"},
        {"type": "ACTIVE", "occurredAt": "2025-10-18"},
    ]
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert [i["path"] for i in body["issues"]] == ["0.value", "1.userId"]
    assert db.tables["metric_events"] == []


def test_ingest_empty_and_oversized_batches(api_client):
    resp = api_client.post(INGEST_PATH, json=[], headers={"x-api-key": API_KEY})
    assert resp.status_code == 400
    assert resp.json()["issues"][0]["path"] == "root"

    batch = [{"type": "ACTIVE", "userId": "u", "occurredAt": "2025-10-18"}] * 501
    resp = api_client.post(INGEST_PATH, json=batch, headers={"x-api-key": API_KEY})
    assert resp.status_code == 400


def test_ingest_rejects_non_json_body(api_client):
    resp = api_client.post(
        INGEST_PATH,
        content=b"{not json",
        headers={"x-api-key": API_KEY, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["issues"][0]["path"] == "root"


def test_ingest_rejects_large_payload(api_client, monkeypatch):
    from eventmetrics.routers import ingest_routes

    monkeypatch.setattr(ingest_routes, "INGEST_MAX_BYTES", 1024)
    events = [{"type": "ACTIVE", "userId": "u" * 2048, "occurredAt": "2025-10-18"}]
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


def test_ingest_storage_failure_is_generic(api_client, db):
    db.fail_on.add(("metric_events", "upsert"))
    events = [{"type": "ACTIVE", "userId": "u", "occurredAt": "2025-10-18"}]
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert "connection refused" not in resp.text


# ---------------------------------------------------------------------------
# GET /v1/analytics/{project_id}/...
# ---------------------------------------------------------------------------


def _ingest(api_client, events):
    resp = api_client.post(INGEST_PATH, json=events, headers={"x-api-key": API_KEY})
    assert resp.status_code == 200, resp.text


def test_mrr_scenario(api_client):
    _ingest(
        api_client,
        [
            {"type": "REVENUE", "value": 100, "occurredAt": "2025-10-01"},
            {"type": "REVENUE", "value": 200, "occurredAt": "2025-10-02"},
        ],
    )
    resp = api_client.get(
        _analytics("mrr"),
        params={"from": "2025-10-01", "to": "2025-10-02", "interval": "day"},
        headers=bearer(MEMBER),
    )
    assert resp.status_code == 200
    assert resp.json() == {"labels": ["2025-10-01", "2025-10-02"], "series": [100, 200]}


def test_calendar_date_to_stops_at_midnight(api_client):
    _ingest(
        api_client,
        [
            {"type": "REVENUE", "value": 100, "occurredAt": "2025-10-02T15:00:00Z"},
            {"type": "REVENUE", "value": 40, "occurredAt": "2025-10-02"},
        ],
    )
    resp = api_client.get(
        _analytics("mrr"),
        params={"from": "2025-10-01", "to": "2025-10-02"},
        headers=bearer(MEMBER),
    )
    assert resp.json() == {"labels": ["2025-10-01", "2025-10-02"], "series": [0, 40]}


def test_active_users_scenario(api_client):
    _ingest(
        api_client,
        [
            {"type": "ACTIVE", "userId": "user_1", "occurredAt": "2025-10-05T08:00:00Z"},
            {"type": "ACTIVE", "userId": "user_2", "occurredAt": "2025-10-05T09:00:00Z"},
        ],
    )
    resp = api_client.get(
        _analytics("active-users"),
        params={"from": "2025-10-05", "to": "2025-10-05T23:59:59Z"},
        headers=bearer(MEMBER),
    )
    assert resp.json() == {"labels": ["2025-10-05"], "series": [2]}


def test_churn_scenario(api_client):
    events = [{"type": "SUBSCRIPTION_START", "userId": f"u{i}", "occurredAt": "2025-10-07T10:00:00Z"} for i in range(3)]
    events.append({"type": "SUBSCRIPTION_CANCEL", "userId": "u1", "occurredAt": "2025-10-07T18:00:00Z"})
    _ingest(api_client, events)
    resp = api_client.get(
        _analytics("churn"),
        params={"from": "2025-10-07", "to": "2025-10-07T23:59:59Z"},
        headers=bearer(MEMBER),
    )
    assert resp.json() == {"labels": ["2025-10-07"], "series": [33.33]}


def test_default_range_is_last_30_days(api_client):
    resp = api_client.get(_analytics("mrr"), headers=bearer(MEMBER))
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["labels"]) == 31
    assert len(body["series"]) == 31


def test_month_interval(api_client):
    resp = api_client.get(
        _analytics("churn"),
        params={"from": "2025-01-15", "to": "2025-04-02", "interval": "month"},
        headers=bearer(MEMBER),
    )
    assert resp.json()["labels"] == ["2025-01-01", "2025-02-01", "2025-03-01", "2025-04-01"]


def test_analytics_requires_session(api_client):
    assert api_client.get(_analytics("mrr")).status_code == status.HTTP_401_UNAUTHORIZED
    resp = api_client.get(_analytics("mrr"), headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_analytics_rejects_expired_or_forged_session(api_client):
    expired = make_session(MEMBER, expires_in=-60)
    resp = api_client.get(_analytics("mrr"), headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401

    forged = make_session(MEMBER, secret="some-other-secret")
    resp = api_client.get(_analytics("mrr"), headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


def test_analytics_unknown_project_is_404(api_client):
    resp = api_client.get(_analytics("mrr", "proj-missing"), headers=bearer(MEMBER))
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    assert resp.json()["error"] == "not_found"


def test_analytics_non_member_is_403(api_client):
    resp = api_client.get(_analytics("active-users"), headers=bearer(OUTSIDER))
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_analytics_bad_interval_is_400(api_client):
    resp = api_client.get(_analytics("mrr"), params={"interval": "hour"}, headers=bearer(MEMBER))
    assert resp.status_code == 400
    assert resp.json()["issues"][0]["path"] == "interval"
