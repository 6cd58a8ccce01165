"""Tests for the history and consensus payload parsers."""

import json

import pytest

from earnings_models import NET_INCOME, OPERATING_PROFIT, SALES
from market_sources import label_from_date_text, parse_consensus_json, parse_history_html
from quarter_labels import QuarterLabel, parse_label


class TestHistory:
    """Tests for parse_history_html()."""

    def test_facts(self, history_html):
        facts = parse_history_html(history_html)
        table = {(str(f.quarter), f.item): f.value for f in facts}
        assert table == {
            ("1Q25", SALES): 1100.0,
            ("4Q24", SALES): 1050.0,
            ("3Q24", SALES): 980.0,
            ("1Q25", OPERATING_PROFIT): 100.0,
            ("4Q24", OPERATING_PROFIT): -12.5,
            ("1Q25", NET_INCOME): 40.0,
        }

    def test_nothing_usable(self):
        assert parse_history_html("<html><body><p>점검중</p></body></html>") is None
        assert parse_history_html("") is None

    def test_date_text(self):
        assert label_from_date_text("2025/06") == QuarterLabel(2, 25)
        assert label_from_date_text("2025.12(E)") == QuarterLabel(4, 25)
        assert label_from_date_text("N/A") is None


class TestConsensus:
    """Tests for parse_consensus_json()."""

    PAYLOAD = {
        "JsonData": [
            {"YYMM": "2025.03", "SALES": "1,100", "OP": "90", "NP": "10"},
            {"YYMM": "2025.06", "SALES": "1,234", "OP": "0", "NP": "12"},
        ]
    }

    def test_matching_quarter(self):
        fc = parse_consensus_json(self.PAYLOAD, parse_label("2Q25"))
        assert fc.sales == 1234.0
        assert fc.operating_profit is None
        assert fc.net_income == 12.0

    def test_json_text(self):
        fc = parse_consensus_json(json.dumps(self.PAYLOAD), parse_label("1Q25"))
        assert fc.get(OPERATING_PROFIT) == 90.0

    def test_no_match(self):
        assert parse_consensus_json(self.PAYLOAD, parse_label("3Q25")) is None

    @pytest.mark.parametrize("payload", ["not json", "[]", {"JsonData": []}, {}])
    def test_unusable_payload(self, payload):
        assert parse_consensus_json(payload, parse_label("2Q25")) is None

    def test_unparsable_value(self):
        payload = {"JsonData": [{"YYMM": "2025.06", "SALES": "N/A", "OP": "", "NP": None}]}
        fc = parse_consensus_json(payload, parse_label("2Q25"))
        assert (fc.sales, fc.operating_profit, fc.net_income) == (None, None, None)
