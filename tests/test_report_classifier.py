"""Tests for report title classification."""

import pytest

from earnings_models import PERIODIC, PRELIMINARY
from report_classifier import classify, is_threshold_30pct


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize("title", ["분기보고서 (2025.03)", "반기보고서 (2025.06)", "사업보고서 (2024.12)"])
    def test_periodic(self, title):
        assert classify(title) == PERIODIC

    @pytest.mark.parametrize(
        "title",
        [
            "연결재무제표기준영업(잠정)실적(공정공시)",
            "영업(잠정)실적(공정공시)",
            "매출액또는손익구조30%(대규모법인은15%)이상변경",
            "매출액 또는 손익구조 30%(대규모법인은 15%) 이상 변경",
        ],
    )
    def test_preliminary(self, title):
        assert classify(title) == PRELIMINARY

    def test_periodic_checked_first(self):
        """A title carrying both markers is periodic."""
        assert classify("[첨부정정]반기보고서 영업(잠정)실적(공정공시)") == PERIODIC

    @pytest.mark.parametrize("title", ["주요사항보고서(유상증자결정)", "기업설명회(IR)개최", ""])
    def test_unclassified(self, title):
        assert classify(title) is None


class TestThreshold:
    def test_threshold_title(self):
        assert is_threshold_30pct("매출액또는손익구조30%(대규모법인은15%)이상변경")

    def test_regular_preliminary_is_not_threshold(self):
        assert not is_threshold_30pct("영업(잠정)실적(공정공시)")
