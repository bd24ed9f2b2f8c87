"""Tests for the JSON renderer."""

import datetime
import json

from reportx.renderers.json_renderer import JsonRenderer, inject_timestamp
from reportx.types import Footer, Report


class TestJsonRenderer:
    def test_without_timestamp_matches_plain_serialization(self, sample_report):
        data = JsonRenderer(sample_report).render()

        assert json.loads(data) == json.loads(json.dumps(sample_report))
        assert data.decode('utf-8') == json.dumps(sample_report, ensure_ascii=False, indent=2)

    def test_timestamp_appended_to_note(self):
        data = JsonRenderer(
            {'Footer': {'Note': 'x'}},
            include_timestamp=True,
            timestamp_format='2006-01-02',
        ).render()

        today = datetime.date.today().strftime('%Y-%m-%d')
        assert json.loads(data) == {'Footer': {'Note': f'x | Generated at: {today}'}}

    def test_input_is_not_mutated(self, sample_report):
        JsonRenderer(sample_report, include_timestamp=True).render()

        assert sample_report['Footer']['Note'] == 'Prepared by the reporting team'

    def test_writes_file(self, tmp_path, sample_report):
        output = tmp_path / 'out' / 'report.json'

        data = JsonRenderer(sample_report).render(output)

        assert output.read_bytes() == data

    def test_report_model_uses_capitalized_keys(self):
        report = Report(footer=Footer(note='n'), data={'k': 'v'})

        payload = json.loads(JsonRenderer(report).render())

        assert payload['Footer'] == {'Note': 'n'}
        assert payload['Data'] == {'k': 'v'}
        assert set(payload['Header']) == {'Title', 'Subtitle', 'Explanation', 'Logo', 'LogoAlign'}


class TestInjectTimestamp:
    def test_missing_note_reads_as_empty(self):
        assert inject_timestamp({'Footer': {}}, 'T') == {'Footer': {'Note': ' | Generated at: T'}}

    def test_non_string_note_reads_as_empty(self):
        assert inject_timestamp({'Footer': {'Note': 5}}, 'T')['Footer']['Note'] == ' | Generated at: T'

    def test_malformed_footer_is_skipped(self):
        payload = {'Footer': 'not a mapping', 'Other': 1}

        assert inject_timestamp(payload, 'T') == payload

    def test_missing_footer_is_skipped(self):
        assert inject_timestamp({'Header': {}}, 'T') == {'Header': {}}
