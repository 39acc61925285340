import pytest

from core.summary import (
    UNKNOWN_LABEL,
    NumericPolicy,
    format_numeric_value,
    section_to_dict,
    summarize_field,
    summarize_group,
)


class TestCategorical:
    def test_age_with_one_missing_row(self, frame, lookup):
        rows = frame([{"BLD_AGE_GRP": 1}, {"BLD_AGE_GRP": None}])
        section = summarize_field(rows, "BLD_AGE_GRP", lookup)

        assert section.mode == "categorical"
        assert section.total == 2
        assert [(i.label, i.count) for i in section.items] == [("18-24", 1), (UNKNOWN_LABEL, 1)]
        assert [i.pct for i in section.items] == [50.0, 50.0]

    def test_ties_keep_first_seen_order(self, frame, lookup):
        rows = frame([{"BLD_AGE_GRP": c} for c in (2, 1, 1, 2, 3)])
        section = summarize_field(rows, "BLD_AGE_GRP", lookup)
        assert [i.label for i in section.items] == ["25-34", "18-24", "3"]

    def test_pcts_sum_to_100(self, frame, lookup):
        rows = frame([{"BLD_AGE_GRP": c} for c in (1, 2, 3)] + [{"BLD_AGE_GRP": ""}] * 4)
        section = summarize_field(rows, "BLD_AGE_GRP", lookup)
        assert section.items[-1].label == UNKNOWN_LABEL
        assert sum(i.pct for i in section.items) == 100.0

    def test_missing_column_is_all_unknown(self, frame, lookup):
        rows = frame([{"OTHER": 1}, {"OTHER": 2}])
        section = summarize_field(rows, "BLD_AGE_GRP", lookup)
        assert [(i.label, i.pct) for i in section.items] == [(UNKNOWN_LABEL, 100.0)]

    def test_empty_scope_yields_nothing(self, frame, lookup):
        assert summarize_field(frame([]), "BLD_AGE_GRP", lookup) is None


class TestNumeric:
    def test_average_over_coercible_values(self, frame, lookup):
        rows = frame([{"FIN_PU_APR": "3.5"}, {"FIN_PU_APR": 4.5}, {"FIN_PU_APR": None}, {"FIN_PU_APR": "abc"}])
        section = summarize_field(rows, "FIN_PU_APR", lookup)

        assert section.mode == "numeric"
        assert section.average == pytest.approx(4.0)
        assert section.valid_count == 2
        assert section.missing_count == 2
        assert section.display == "4.0%"

    def test_currency_values_with_dollar_signs(self, frame, lookup):
        rows = frame([{"FIN_PRICE_UNEDITED": "$40,000"}, {"FIN_PRICE_UNEDITED": "$50,000"}])
        section = summarize_field(rows, "FIN_PRICE_UNEDITED", lookup)
        assert section.average == pytest.approx(45000.0)
        assert section.display == "$45,000"

    def test_falls_back_to_categorical_when_nothing_parses(self, frame, lookup):
        rows = frame([{"FIN_PU_APR": "n/a"}, {"FIN_PU_APR": "n/a"}])
        section = summarize_field(rows, "FIN_PU_APR", lookup)
        assert section.mode == "categorical"
        assert [(i.label, i.pct) for i in section.items] == [("n/a", 100.0)]

    def test_categorical_override_in_numeric_group(self, frame, lookup):
        rows = frame([{"C1_PL": 1}, {"C1_PL": 2}, {"C1_PL": 2}])
        section = summarize_field(rows, "C1_PL", lookup)
        assert section.mode == "categorical"
        assert section.items[0].label == "Finance"

    def test_custom_policy(self, frame, lookup):
        rows = frame([{"SCORE": 1}, {"SCORE": 3}])
        policy = NumericPolicy(numeric_fields=frozenset({"SCORE"}))
        assert summarize_field(rows, "SCORE", lookup, policy).average == pytest.approx(2.0)

    def test_formatting(self):
        assert format_numeric_value("FIN_PU_LENGTH", 60) == "60 mo"
        assert format_numeric_value("FIN_PU_DOWN_PAY", 1234.4) == "$1,234"
        assert format_numeric_value("SCORE", 2.5) == "2.5"


class TestGroup:
    def test_numeric_sections_first_then_by_top_share(self, frame, lookup):
        rows = frame(
            [
                {"BLD_AGE_GRP": 1, "C1_PL": 1, "FIN_PU_APR": 2.0},
                {"BLD_AGE_GRP": 1, "C1_PL": 2, "FIN_PU_APR": 4.0},
            ]
        )
        sections = summarize_group(rows, ["C1_PL", "BLD_AGE_GRP", "FIN_PU_APR"], lookup)
        assert [s.field for s in sections] == ["FIN_PU_APR", "BLD_AGE_GRP", "C1_PL"]

    def test_section_dicts(self, frame, lookup):
        rows = frame([{"FIN_PU_APR": 2.0, "BLD_AGE_GRP": 2}])
        numeric = section_to_dict(summarize_field(rows, "FIN_PU_APR", lookup))
        categorical = section_to_dict(summarize_field(rows, "BLD_AGE_GRP", lookup))
        assert numeric["kpi"]["value"] == pytest.approx(2.0)
        assert numeric["kpi"]["n_valid"] == 1
        assert categorical["items"] == [{"label": "25-34", "count": 1, "pct": 100.0}]
