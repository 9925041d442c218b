"""Integration tests for API endpoints."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from command_tracker.config import Settings
from command_tracker.database.connection import storage_path
from command_tracker.main import create_app
from command_tracker.tracking.days import to_day_number


def _settings(tmp_path, **overrides):
    values = dict(
        _env_file=None,
        environment="test",
        installation_id="api-test",
        data_dir=tmp_path,
        enable_metrics=True,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(tmp_path):
    """Test client running the full lifespan against a temporary store."""
    app = create_app(_settings(tmp_path))
    with TestClient(app) as test_client:
        yield test_client


CATALOGUE = [
    {"command_id": "foo", "name": "Foo: run", "hotkeys": ["Ctrl + F"]},
    {"command_id": "bar", "name": "Bar: open"},
]


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_check(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"] == "open"
        assert "timestamp" in data


class TestInvocationsAPI:
    """Host callback endpoint."""

    def test_record_invocation(self, client: TestClient):
        response = client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})
        assert response.status_code == 202

        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        records = client.get("/api/v1/records").json()
        assert records["total"] == 1
        item = records["items"][0]
        assert item["command_id"] == "foo"
        assert item["day"] == to_day_number(date.today())
        assert item["hotkey_count"] == 2
        assert item["palette_count"] == 0

    def test_command_palette_alias(self, client: TestClient):
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "command-palette"})

        item = client.get("/api/v1/records").json()["items"][0]
        assert item["palette_count"] == 1

    def test_invalid_channel_rejected(self, client: TestClient):
        response = client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "mouse"})

        assert response.status_code == 422

    def test_tracking_disabled(self, client: TestClient):
        client.put("/api/v1/preferences", json={"tracking_enabled": False})

        response = client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        assert response.status_code == 202
        assert client.get("/api/v1/records").json()["total"] == 0

    def test_store_failure_does_not_fail_the_host(self, client: TestClient):
        client.portal.call(client.app.state.store.close)

        response = client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        assert response.status_code == 202


class TestRecordsAPI:
    """Record listing and purge."""

    def test_clear_records(self, client: TestClient):
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})
        client.post("/api/v1/invocations", json={"command_id": "bar", "channel": "palette"})

        response = client.delete("/api/v1/records")

        assert response.status_code == 200
        assert response.json()["deleted"] == 2
        assert client.get("/api/v1/records").json() == {"items": [], "total": 0}

    def test_closed_store_returns_notice(self, client: TestClient):
        client.portal.call(client.app.state.store.close)

        response = client.get("/api/v1/records")

        assert response.status_code == 503
        assert "Failed to load records" in response.json()["detail"]


class TestProjectionsAPI:
    """Projection endpoint."""

    def test_per_command_projection(self, client: TestClient):
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "palette"})

        response = client.post("/api/v1/projections", json={"catalogue": CATALOGUE})

        assert response.status_code == 200
        data = response.json()
        assert data["view_kind"] == "per_command"
        assert data["date_heading"] == "Date of last use"
        assert [row["command"] for row in data["rows"]] == ["Bar: open", "Foo: run"]
        bar, foo = data["rows"]
        assert (bar["total_count"], bar["date"]) == (0, "")
        assert (foo["hotkey_count"], foo["palette_count"], foo["total_count"]) == (1, 1, 2)
        assert foo["hotkeys"] == "Ctrl + F"
        assert foo["date"] == date.today().strftime("%Y/%m/%d")

    def test_view_kind_and_date_format_from_preferences(self, client: TestClient):
        client.put("/api/v1/preferences", json={
            "view_kind": "per_command_and_day",
            "date_format": "dd/mm/yyyy",
        })
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        data = client.post("/api/v1/projections", json={"catalogue": CATALOGUE}).json()

        assert data["view_kind"] == "per_command_and_day"
        assert data["date_heading"] == "Date of use"
        foo = next(row for row in data["rows"] if row["command_id"] == "foo")
        assert foo["date"] == date.today().strftime("%d/%m/%Y")

    def test_request_overrides_preferences(self, client: TestClient):
        data = client.post("/api/v1/projections", json={
            "catalogue": CATALOGUE,
            "view_kind": "per_command_and_day",
            "date_format": "mm/dd/yyyy",
        }).json()

        assert data["view_kind"] == "per_command_and_day"
        assert data["date_format"] == "mm/dd/yyyy"


class TestPreferencesAPI:
    """Preference persistence."""

    def test_defaults(self, client: TestClient):
        data = client.get("/api/v1/preferences").json()

        assert data == {
            "view_kind": "per_command",
            "date_format": "yyyy/mm/dd",
            "tracking_enabled": True,
            "protect_data_on_teardown": False,
        }

    def test_update_is_persisted(self, client: TestClient, tmp_path):
        response = client.put("/api/v1/preferences", json={"protect_data_on_teardown": True})

        assert response.status_code == 200
        assert response.json()["protect_data_on_teardown"] is True
        assert "protect_data_on_teardown" in (tmp_path / "preferences.json").read_text()


class TestMetricsEndpoint:
    """Prometheus endpoint."""

    def test_metrics(self, client: TestClient):
        client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "command_tracker_invocations_total" in response.text


class TestTeardown:
    """Store handling on application shutdown."""

    def test_store_destroyed_without_protection(self, tmp_path):
        app = create_app(_settings(tmp_path))
        with TestClient(app) as client:
            client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        assert not storage_path("api-test", tmp_path).exists()

    def test_store_kept_with_protection(self, tmp_path):
        app = create_app(_settings(tmp_path))
        with TestClient(app) as client:
            client.put("/api/v1/preferences", json={"protect_data_on_teardown": True})
            client.post("/api/v1/invocations", json={"command_id": "foo", "channel": "hotkey"})

        assert storage_path("api-test", tmp_path).exists()

        with TestClient(create_app(_settings(tmp_path))) as client:
            records = client.get("/api/v1/records").json()

        assert records["total"] == 1
