"""Tests for ``bq_jobs.body``."""

from __future__ import annotations

from bq_jobs.body import camelize, merge_body, to_camel


class TestToCamel:
    """Tests for ``to_camel``."""

    def test_snake_case(self) -> None:
        """Underscore-separated words are joined in camelCase."""
        assert to_camel("print_header") == "printHeader"

    def test_multiple_underscores(self) -> None:
        """Every underscore boundary is converted."""
        assert to_camel("maximum_bytes_billed") == "maximumBytesBilled"

    def test_already_camel(self) -> None:
        """camelCase names pass through unchanged."""
        assert to_camel("useLegacySql") == "useLegacySql"

    def test_no_underscore(self) -> None:
        """Names without underscores pass through."""
        assert to_camel("labels") == "labels"


class TestCamelize:
    """Tests for ``camelize``."""

    def test_nested_keys(self) -> None:
        """Keys are converted at every level."""
        value = {"job_reference": {"job_id": "abc"}}
        assert camelize(value) == {"jobReference": {"jobId": "abc"}}

    def test_mappings_inside_lists(self) -> None:
        """Mappings nested in lists are camelCased too."""
        value = {"query_parameters": [{"parameter_type": {"type": "STRING"}}]}
        assert camelize(value) == {
            "queryParameters": [{"parameterType": {"type": "STRING"}}]
        }

    def test_values_untouched(self) -> None:
        """String values that look like snake_case are not rewritten."""
        value = {"labels": {"team": "data_eng"}}
        assert camelize(value) == {"labels": {"team": "data_eng"}}


class TestMergeBody:
    """Tests for ``merge_body``."""

    BODY = {
        "configuration": {
            "query": {
                "query": "SELECT 1",
                "useLegacySql": False,
                "priority": "INTERACTIVE",
            }
        }
    }

    def test_no_options_returns_copy(self) -> None:
        """Without options the body is deep-copied unchanged."""
        merged = merge_body(self.BODY)
        assert merged == self.BODY
        assert merged is not self.BODY

    def test_nested_merge_keeps_siblings(self) -> None:
        """Options merge into nested mappings without dropping built keys."""
        merged = merge_body(
            self.BODY,
            configuration={"query": {"maximum_bytes_billed": "1000"}},
        )
        query = merged["configuration"]["query"]
        assert query["maximumBytesBilled"] == "1000"
        assert query["query"] == "SELECT 1"
        assert query["priority"] == "INTERACTIVE"

    def test_option_overrides_built_value(self) -> None:
        """An option replaces the built value for the same key."""
        merged = merge_body(self.BODY, configuration={"query": {"priority": "BATCH"}})
        assert merged["configuration"]["query"]["priority"] == "BATCH"

    def test_none_removes_key(self) -> None:
        """A ``None`` option removes the key."""
        merged = merge_body(self.BODY, configuration={"query": {"priority": None}})
        assert "priority" not in merged["configuration"]["query"]

    def test_top_level_option(self) -> None:
        """Options land at the root of the job resource."""
        merged = merge_body(self.BODY, job_reference={"location": "EU"})
        assert merged["jobReference"] == {"location": "EU"}

    def test_lists_replaced(self) -> None:
        """Lists are replaced wholesale, not merged."""
        body = {"configuration": {"extract": {"destinationUris": ["gs://a/x"]}}}
        merged = merge_body(
            body, configuration={"extract": {"destination_uris": ["gs://b/y"]}}
        )
        assert merged["configuration"]["extract"]["destinationUris"] == ["gs://b/y"]

    def test_input_not_mutated(self) -> None:
        """The caller's body is never mutated."""
        merge_body(self.BODY, configuration={"query": {"priority": None}})
        assert self.BODY["configuration"]["query"]["priority"] == "INTERACTIVE"
