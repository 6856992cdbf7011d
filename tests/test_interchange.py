"""
Tests for JSON import and export.
"""

import json

import pytest

from src.date_utils import InvalidDate
from src.habits import ColorToken, Habit
from src.interchange import InterchangeError, export_habits, import_habits


@pytest.fixture
def habits():
    return [
        Habit(
            id=5,
            name="Walk around the block",
            color=ColorToken.GREEN,
            description="Go for a short walk",
            completions={"2024-01-02": True, "2024-01-01": True},
        ),
        Habit(id=2, name="Learn Norwegian", color=ColorToken.PURPLE),
        Habit(
            id=9,
            name="Stretch",
            color=ColorToken.ORANGE,
            description="",
            completions={"2023-12-31": True},
        ),
    ]


class TestExport:
    """Tests for export_habits."""

    def test_export_document_structure(self, habits):
        document = json.loads(export_habits(habits))

        assert document["version"] == 1
        assert [h["id"] for h in document["habits"]] == [5, 2, 9]
        assert document["habits"][0] == {
            "id": 5,
            "name": "Walk around the block",
            "color": "green",
            "description": "Go for a short walk",
            "completions": ["2024-01-01", "2024-01-02"],
        }

    def test_export_empty_collection(self):
        assert json.loads(export_habits([])) == {"version": 1, "habits": []}


class TestImport:
    """Tests for import_habits."""

    def test_round_trip(self, habits):
        assert import_habits(export_habits(habits)) == habits

    def test_round_trip_preserves_order(self, habits):
        imported = import_habits(export_habits(habits))

        assert [h.id for h in imported] == [5, 2, 9]

    def test_missing_optional_fields_use_defaults(self):
        text = json.dumps({"habits": [{"id": 1, "name": "Read"}]})

        assert import_habits(text) == [Habit(id=1, name="Read")]

    def test_duplicate_completions_collapse(self):
        text = json.dumps(
            {"habits": [{"id": 1, "name": "Read", "completions": ["2024-01-01", "2024-01-01"]}]}
        )

        assert import_habits(text)[0].completions == {"2024-01-01": True}

    def test_invalid_json_raises(self):
        with pytest.raises(InterchangeError):
            import_habits("{not json")

    def test_wrong_shape_raises(self):
        with pytest.raises(InterchangeError):
            import_habits(json.dumps([{"id": 1}]))

    def test_missing_name_raises(self):
        with pytest.raises(InterchangeError):
            import_habits(json.dumps({"habits": [{"id": 1}]}))

    def test_unknown_color_raises(self):
        text = json.dumps({"habits": [{"id": 1, "name": "Read", "color": "pink"}]})

        with pytest.raises(InterchangeError):
            import_habits(text)

    def test_duplicate_ids_raise(self):
        text = json.dumps({"habits": [{"id": 1, "name": "A"}, {"id": 1, "name": "B"}]})

        with pytest.raises(InterchangeError, match="Duplicate habit id"):
            import_habits(text)

    def test_unsupported_version_raises(self):
        with pytest.raises(InterchangeError, match="version"):
            import_habits(json.dumps({"version": 2, "habits": []}))

    def test_invalid_completion_date_raises(self):
        text = json.dumps({"habits": [{"id": 1, "name": "Read", "completions": ["2024-02-30"]}]})

        with pytest.raises(InvalidDate):
            import_habits(text)

    def test_unpadded_completion_date_raises(self):
        text = json.dumps({"habits": [{"id": 1, "name": "Read", "completions": ["2024-1-5"]}]})

        with pytest.raises(InvalidDate):
            import_habits(text)
