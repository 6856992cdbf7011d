"""
Tests for the FastAPI web application.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src import config
from src.app import app


@pytest.fixture(autouse=True)
def temp_db(monkeypatch):
    """Point every HabitStorage at a fresh temporary database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "habits.db"
        monkeypatch.setattr(config, "DB_PATH", str(db_path))
        monkeypatch.setattr(config, "FIRST_DAY_OF_WEEK", "sunday")
        monkeypatch.setattr(config, "INTENSITY_MODE", "gradient")
        monkeypatch.setattr(config, "WINDOW_DAYS", "365")
        yield db_path


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def habit_id(client):
    """Create a habit and return its id."""
    response = client.post("/api/habits", json={"name": "Read", "color": "green"})
    return response.json()["habit"]["id"]


def _find_cell(grid: dict, day: str) -> dict:
    for column in grid["weeks"]:
        for cell in column:
            if cell["date"] == day:
                return cell
    raise AssertionError(f"{day} not in grid")


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client):
        """Health endpoint should return status ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestHabitEndpoints:
    """Tests for /api/habits."""

    def test_list_empty(self, client):
        response = client.get("/api/habits")

        assert response.status_code == 200
        assert response.json() == {"habits": []}

    def test_create_habit(self, client):
        response = client.post(
            "/api/habits",
            json={"name": "Stretch", "color": "orange", "description": "Five minutes"},
        )

        assert response.status_code == 200
        habit = response.json()["habit"]
        assert habit["name"] == "Stretch"
        assert habit["color"] == "orange"
        assert habit["description"] == "Five minutes"
        assert habit["completions"] == []

    def test_create_habit_default_description(self, client):
        response = client.post("/api/habits", json={"name": "Walk"})

        assert response.json()["habit"]["description"] == "Track your progress with walk"
        assert response.json()["habit"]["color"] == "green"

    def test_create_habit_rejects_unknown_color(self, client):
        response = client.post("/api/habits", json={"name": "Walk", "color": "pink"})

        assert response.status_code == 422

    def test_create_habit_rejects_empty_name(self, client):
        response = client.post("/api/habits", json={"name": ""})

        assert response.status_code == 422

    def test_create_habit_rejects_blank_name(self, client):
        response = client.post("/api/habits", json={"name": "   "})

        assert response.status_code == 400

    def test_list_returns_created_habits(self, client):
        client.post("/api/habits", json={"name": "A"})
        client.post("/api/habits", json={"name": "B"})

        names = [h["name"] for h in client.get("/api/habits").json()["habits"]]
        assert names == ["A", "B"]

    def test_delete_habit(self, client, habit_id):
        response = client.delete(f"/api/habits/{habit_id}")

        assert response.status_code == 200
        assert response.json() == {"deleted": habit_id}
        assert client.get("/api/habits").json() == {"habits": []}

    def test_delete_missing_habit(self, client):
        response = client.delete("/api/habits/999")

        assert response.status_code == 404


class TestToggleEndpoint:
    """Tests for /api/habits/{id}/toggle."""

    def test_toggle_on_and_off(self, client, habit_id):
        first = client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-05"})
        assert first.status_code == 200
        assert first.json() == {"habit_id": habit_id, "date": "2024-01-05", "completed": True}

        second = client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-05"})
        assert second.json()["completed"] is False

    def test_toggle_invalid_date(self, client, habit_id):
        response = client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-02-30"})

        assert response.status_code == 400
        assert "Invalid date" in response.json()["detail"]

    def test_toggle_unpadded_date(self, client, habit_id):
        response = client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-1-5"})

        assert response.status_code == 400

    def test_toggle_missing_habit(self, client):
        response = client.post("/api/habits/999/toggle", json={"date": "2024-01-05"})

        assert response.status_code == 404


class TestGridEndpoint:
    """Tests for /api/habits/{id}/grid."""

    def test_grid_structure(self, client, habit_id):
        client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-10"})

        response = client.get(
            f"/api/habits/{habit_id}/grid",
            params={"year": 2024, "today": "2024-06-15", "first_day": "sunday", "mode": "gradient"},
        )

        assert response.status_code == 200
        data = response.json()
        grid = data["grid"]
        assert data["color"] == "green"
        assert grid["week_count"] == 53
        assert all(len(column) == 7 for column in grid["weeks"])
        assert grid["weeks"][0][0]["date"] == "2023-12-31"
        assert grid["weeks"][0][0]["visible"] is False

        cell = _find_cell(grid, "2024-01-10")
        assert cell["level"] == 2
        assert cell["completed"] is True
        assert cell["color"] == "#006d32"
        assert cell["tooltip"] == "Wednesday, January 10, 2024 - Completed"

        future = _find_cell(grid, "2024-06-16")
        assert future["visible"] is False
        assert future["tooltip"] == ""

    def test_grid_binary_mode(self, client, habit_id):
        client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-10"})

        response = client.get(
            f"/api/habits/{habit_id}/grid",
            params={"year": 2024, "today": "2024-06-15", "mode": "binary"},
        )

        assert _find_cell(response.json()["grid"], "2024-01-10")["level"] == 1

    def test_grid_uses_saved_first_day(self, client, habit_id):
        client.post("/api/settings", json={"first_day_of_week": "monday"})

        response = client.get(
            f"/api/habits/{habit_id}/grid", params={"year": 2024, "today": "2024-06-15"}
        )

        grid = response.json()["grid"]
        assert grid["first_day_of_week"] == "monday"
        assert grid["weeks"][0][0]["date"] == "2024-01-01"

    def test_grid_invalid_today(self, client, habit_id):
        response = client.get(f"/api/habits/{habit_id}/grid", params={"today": "June 1"})

        assert response.status_code == 400

    def test_grid_invalid_first_day(self, client, habit_id):
        response = client.get(f"/api/habits/{habit_id}/grid", params={"first_day": "friday"})

        assert response.status_code == 422

    def test_grid_missing_habit(self, client):
        response = client.get("/api/habits/999/grid")

        assert response.status_code == 404

    def test_grid_config_error(self, client, habit_id, monkeypatch):
        monkeypatch.setattr(config, "FIRST_DAY_OF_WEEK", "tuesday")

        response = client.get(f"/api/habits/{habit_id}/grid")

        assert response.status_code == 500
        assert "Configuration error" in response.json()["detail"]


class TestStatsEndpoint:
    """Tests for /api/habits/{id}/stats."""

    def test_stats_example(self, client, habit_id):
        for day in ("2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05"):
            client.post(f"/api/habits/{habit_id}/toggle", json={"date": day})

        response = client.get(
            f"/api/habits/{habit_id}/stats", params={"today": "2024-01-05", "window_days": 365}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["window_days"] == 365
        assert data["stats"]["total_completions"] == 4
        assert data["stats"]["longest_streak"] == 3
        assert data["stats"]["current_streak"] == 1

    def test_stats_empty(self, client, habit_id):
        response = client.get(f"/api/habits/{habit_id}/stats", params={"today": "2024-01-05"})

        assert response.json()["stats"] == {
            "total_completions": 0,
            "average_per_week": 0.0,
            "longest_streak": 0,
            "current_streak": 0,
        }

    def test_stats_default_window_from_config(self, client, habit_id, monkeypatch):
        monkeypatch.setattr(config, "WINDOW_DAYS", "30")

        response = client.get(f"/api/habits/{habit_id}/stats", params={"today": "2024-01-05"})

        assert response.json()["window_days"] == 30

    def test_stats_invalid_window(self, client, habit_id):
        response = client.get(f"/api/habits/{habit_id}/stats", params={"window_days": 0})

        assert response.status_code == 400

    def test_stats_missing_habit(self, client):
        response = client.get("/api/habits/999/stats")

        assert response.status_code == 404


class TestSettingsEndpoints:
    """Tests for /api/settings."""

    def test_default_settings(self, client):
        response = client.get("/api/settings")

        assert response.json() == {
            "first_day_of_week": "sunday",
            "intensity_mode": "gradient",
            "dark_mode": True,
        }

    def test_partial_update(self, client):
        response = client.post("/api/settings", json={"intensity_mode": "binary", "dark_mode": False})

        assert response.json() == {
            "first_day_of_week": "sunday",
            "intensity_mode": "binary",
            "dark_mode": False,
        }
        assert client.get("/api/settings").json()["intensity_mode"] == "binary"

    def test_invalid_value(self, client):
        response = client.post("/api/settings", json={"first_day_of_week": "friday"})

        assert response.status_code == 422

    def test_theme_toggle_flips_dark_mode(self, client):
        response = client.post("/api/settings/theme")

        assert response.status_code == 200
        assert response.json()["dark_mode"] is False

        response = client.post("/api/settings/theme")
        assert response.json()["dark_mode"] is True


class TestImportExport:
    """Tests for /api/export and /api/import."""

    def test_export_download(self, client, habit_id):
        client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-05"})

        response = client.get("/api/export")

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        habits = response.json()["habits"]
        assert habits == [
            {
                "id": habit_id,
                "name": "Read",
                "color": "green",
                "description": "Track your progress with read",
                "completions": ["2024-01-05"],
            }
        ]

    def test_import_restores_export(self, client, habit_id):
        client.post(f"/api/habits/{habit_id}/toggle", json={"date": "2024-01-05"})
        client.post("/api/habits", json={"name": "Walk", "color": "blue"})
        exported = client.get("/api/export").content
        before = client.get("/api/habits").json()

        client.delete(f"/api/habits/{habit_id}")
        response = client.post("/api/import", content=exported)

        assert response.status_code == 200
        assert response.json() == {"imported": 2}
        assert client.get("/api/habits").json() == before

    def test_import_invalid_document(self, client, habit_id):
        response = client.post("/api/import", content=b"{not json")

        assert response.status_code == 422
        # Existing data untouched
        assert len(client.get("/api/habits").json()["habits"]) == 1

    def test_import_invalid_date(self, client):
        document = b'{"habits": [{"id": 1, "name": "A", "completions": ["2024-13-01"]}]}'

        response = client.post("/api/import", content=document)

        assert response.status_code == 422


class TestPages:
    """Tests for the HTML pages."""

    def test_dashboard_seeds_default_habits(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "Walk around the block" in response.text
        assert len(client.get("/api/habits").json()["habits"]) == 5

    def test_detail_page(self, client, habit_id):
        response = client.get(f"/habits/{habit_id}")

        assert response.status_code == 200
        assert "Read" in response.text
        assert "Longest Streak" in response.text

    def test_detail_page_missing_habit(self, client):
        response = client.get("/habits/999")

        assert response.status_code == 404

    @patch("src.app.validate_config")
    def test_dashboard_config_error(self, mock_validate, client):
        mock_validate.side_effect = ValueError("HABIT_GRID_FIRST_DAY must be 'sunday' or 'monday'")

        response = client.get("/")

        assert response.status_code == 500
        assert "Configuration error" in response.json()["detail"]
