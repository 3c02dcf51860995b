"""
test_validate.py - form validation pipeline

Order per field: normalize -> trim -> rules -> escape.
The pipeline never raises; failures come back as labeled errors.
"""

from datetime import date

import pytest
from starlette.datastructures import FormData

from src.app.services.validate import (
    ALPHANUMERIC,
    ISO_DATE,
    MANY,
    ONE_OF,
    OPTIONAL,
    REQUIRED,
    FieldRule,
    escape_html,
    normalize_multi,
    parse_iso_date,
    run_pipeline,
)

# =============================================================================
# Helpers
# =============================================================================


class TestEscapeHtml:
    def test_entity_set(self):
        assert escape_html("<a href='x'>&\"/\\`") == (
            "&lt;a href=&#x27;x&#x27;&gt;&amp;&quot;&#x2F;&#x5C;&#96;"
        )

    def test_plain_text_unchanged(self):
        assert escape_html("Science Fiction") == "Science Fiction"


class TestNormalizeMulti:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, []),
            ("g1", ["g1"]),
            (["g1", "g2"], ["g1", "g2"]),
            (("g1",), ["g1"]),
            ([], []),
        ],
    )
    def test_shapes(self, raw, expected):
        assert normalize_multi(raw) == expected


class TestParseIsoDate:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1920-10-08", date(1920, 10, 8)),
            ("2027-01-05T10:30:00Z", date(2027, 1, 5)),
            ("2027-01-05 10:30", date(2027, 1, 5)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_iso_date(text) == expected

    @pytest.mark.parametrize("text", ["08/10/1920", "not-a-date", "2027-13-01", "2027-02-30", ""])
    def test_invalid(self, text):
        assert parse_iso_date(text) is None


class TestFieldRule:
    def test_unknown_rule_rejected(self):
        with pytest.raises(ValueError, match="Unknown validation rule"):
            FieldRule("name", "shouting")


# =============================================================================
# Pipeline
# =============================================================================


class TestRunPipeline:
    """run_pipeline tests."""

    def test_required_trimmed(self):
        rules = [FieldRule("name", REQUIRED, "Genre name required")]

        result = run_pipeline({"name": "  Fantasy  "}, rules)

        assert not result.has_errors
        assert result.values["name"] == "Fantasy"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_required_empty(self, raw):
        rules = [FieldRule("name", REQUIRED, "Genre name required")]

        result = run_pipeline({"name": raw}, rules)

        assert result.has_errors
        assert result.errors_for("name") == ["Genre name required"]
        assert result.values["name"] == ""

    def test_missing_field_is_required_failure(self):
        result = run_pipeline({}, [FieldRule("title", REQUIRED, "Title must not be empty.")])

        assert result.to_list() == [
            {"field": "title", "message": "Title must not be empty.", "value": ""}
        ]

    def test_value_escaped_after_validation(self):
        rules = [FieldRule("title", REQUIRED)]

        result = run_pipeline({"title": " <b>Dune</b> & Sons "}, rules)

        assert result.values["title"] == "&lt;b&gt;Dune&lt;&#x2F;b&gt; &amp; Sons"

    def test_first_failure_per_field_only(self):
        rules = [
            FieldRule("first_name", REQUIRED, "First name must be specified."),
            FieldRule("first_name", ALPHANUMERIC, "First name has non-alphanumeric characters."),
        ]

        result = run_pipeline({"first_name": ""}, rules)

        assert result.errors_for("first_name") == ["First name must be specified."]

    def test_alphanumeric(self):
        rules = [FieldRule("family_name", ALPHANUMERIC, "bad")]

        assert not run_pipeline({"family_name": "Herbert2"}, rules).has_errors
        assert run_pipeline({"family_name": "Le Guin"}, rules).has_errors
        assert run_pipeline({"family_name": "O'Brien"}, rules).has_errors

    def test_optional_empty_is_none(self):
        rules = [
            FieldRule("date_of_birth", OPTIONAL),
            FieldRule("date_of_birth", ISO_DATE, "Invalid date of birth"),
        ]

        result = run_pipeline({"date_of_birth": "  "}, rules)

        assert not result.has_errors
        assert result.values["date_of_birth"] is None

    def test_iso_date_converted(self):
        rules = [
            FieldRule("date_of_birth", OPTIONAL),
            FieldRule("date_of_birth", ISO_DATE, "Invalid date of birth"),
        ]

        result = run_pipeline({"date_of_birth": "1920-10-08"}, rules)

        assert result.values["date_of_birth"] == date(1920, 10, 8)

    def test_iso_date_invalid_keeps_entered_text(self):
        rules = [
            FieldRule("date_of_birth", OPTIONAL),
            FieldRule("date_of_birth", ISO_DATE, "Invalid date of birth"),
        ]

        result = run_pipeline({"date_of_birth": "yesterday"}, rules)

        assert result.errors_for("date_of_birth") == ["Invalid date of birth"]
        assert result.values["date_of_birth"] == "yesterday"

    def test_one_of(self):
        rules = [FieldRule("status", ONE_OF, "Invalid status", choices=("Available", "Loaned"))]

        assert not run_pipeline({"status": "Loaned"}, rules).has_errors
        assert run_pipeline({"status": "Lost"}, rules).errors_for("status") == ["Invalid status"]

    def test_errors_in_declaration_order(self):
        rules = [
            FieldRule("title", REQUIRED, "Title must not be empty."),
            FieldRule("author", REQUIRED, "Author must not be empty."),
            FieldRule("isbn", REQUIRED, "ISBN must not be empty."),
        ]

        result = run_pipeline({"author": "a1"}, rules)

        assert [e.field for e in result.errors] == ["title", "isbn"]

    def test_undeclared_fields_ignored(self):
        result = run_pipeline({"name": "Poetry", "extra": "x"}, [FieldRule("name", REQUIRED)])

        assert result.values == {"name": "Poetry"}


class TestMultiValueFields:
    """MANY fields normalize to a list with one entry per submitted value."""

    rules = [FieldRule("genre", MANY)]

    def test_absent(self):
        assert run_pipeline(FormData([]), self.rules).values["genre"] == []

    def test_single(self):
        form = FormData([("genre", "g1")])

        assert run_pipeline(form, self.rules).values["genre"] == ["g1"]

    def test_many(self):
        form = FormData([("genre", "g1"), ("genre", "g2"), ("genre", "g3")])

        assert run_pipeline(form, self.rules).values["genre"] == ["g1", "g2", "g3"]

    def test_plain_mapping_scalar(self):
        assert run_pipeline({"genre": "g1"}, self.rules).values["genre"] == ["g1"]

    def test_items_trimmed_and_escaped(self):
        form = FormData([("genre", " g1 "), ("genre", "<g2>")])

        assert run_pipeline(form, self.rules).values["genre"] == ["g1", "&lt;g2&gt;"]
