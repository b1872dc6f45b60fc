"""Vision reply parsing tests."""

import json

import pytest

from chivecut.analysis.parsing import extract_json_object, parse_raw_metrics
from chivecut.errors import MalformedResponseError

from conftest import make_payload


class TestExtractJsonObject:
    def test_bare_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_object_surrounded_by_prose(self):
        text = 'Sure! Here you go: {"a": {"b": 2}} Let me know if you need more.'

        assert extract_json_object(text) == {"a": {"b": 2}}

    def test_markdown_fence(self):
        text = '```json\n{"a": 1}\n```'

        assert extract_json_object(text) == {"a": 1}

    def test_skips_braces_that_are_not_json(self):
        text = 'Grid is {r1c1..r3c3}. Result: {"a": 1} and {"b": 2}'

        assert extract_json_object(text) == {"a": 1}

    def test_no_object(self):
        assert extract_json_object("I cannot analyze this image.") is None

    def test_array_is_not_an_object(self):
        assert extract_json_object("[1, 2, 3]") is None


class TestParseRawMetrics:
    def test_valid_reply(self):
        metrics = parse_raw_metrics("Analysis:\n" + json.dumps(make_payload()))

        assert metrics.averageThicknessMm == 2.1
        assert metrics.cutQualityLabel == "clean"
        assert len(metrics.regions) == 9
        assert metrics.regions[0].id == "r1c1"

    def test_missing_optional_fields_get_defaults(self):
        metrics = parse_raw_metrics('{"regions": []}')

        assert metrics.averageThicknessMm is None
        assert metrics.thicknessStdDevMm is None
        assert metrics.cutQualityLabel == "unknown"
        assert metrics.rawNotes == ""

    def test_null_label_and_notes_get_defaults(self):
        metrics = parse_raw_metrics('{"cutQualityLabel": null, "rawNotes": null}')

        assert metrics.cutQualityLabel == "unknown"
        assert metrics.rawNotes == ""
        assert metrics.regions == []

    def test_wrong_region_count_is_left_to_scorer(self):
        payload = make_payload(regions=make_payload()["regions"][:4])

        assert len(parse_raw_metrics(json.dumps(payload)).regions) == 4

    def test_region_labels_are_normalized(self):
        payload = make_payload()
        payload["regions"][0]["regionCutQualityLabel"] = " Clean "

        metrics = parse_raw_metrics(json.dumps(payload))

        assert metrics.regions[0].regionCutQualityLabel == "clean"

    @pytest.mark.parametrize("text", ["", "   ", "no json here"])
    def test_no_json_object(self, text):
        with pytest.raises(MalformedResponseError):
            parse_raw_metrics(text)

    def test_regions_not_a_list(self):
        with pytest.raises(MalformedResponseError, match="regions"):
            parse_raw_metrics('{"regions": {"id": "r1c1"}}')

    def test_wrong_field_types(self):
        with pytest.raises(MalformedResponseError, match="wrong shape"):
            parse_raw_metrics('{"averageThicknessMm": "thick", "regions": []}')

    def test_region_missing_id_is_left_to_the_scorer(self):
        raw = parse_raw_metrics('{"regions": [{"regionCutQualityLabel": "clean"}]}')

        assert raw.regions[0].id is None
