"""Tests for leave classification."""

import pytest
from datetime import date

from leave_forecast.classifier import (
    BEREAVEMENT,
    EMERGENCY,
    FAMILY_EMERGENCY,
    MEDICAL,
    OTHER,
    SICK,
    category_of,
    classify,
    is_compassionate,
    is_emergency_reason,
    is_parental,
    reason_label,
)
from leave_forecast.models import MATERNITY, PATERNITY

from conftest import approved


class TestClassify:
    """Tests for keyword classification of free-text reasons."""

    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("Maternity leave", MATERNITY),
            ("PATERNITY", PATERNITY),
            ("Bereavement", BEREAVEMENT),
            ("Funeral of grandmother", BEREAVEMENT),
            ("Death in the family", BEREAVEMENT),
            ("sick", SICK),
            ("Flu illness", SICK),
            ("Doctor appointment", MEDICAL),
            ("Hospital visit", MEDICAL),
            ("Medical Emergency", MEDICAL),
            ("Family Emergency", FAMILY_EMERGENCY),
            ("family", FAMILY_EMERGENCY),
            ("Personal Crisis", EMERGENCY),
            ("Other Emergency", EMERGENCY),
            ("vacation", OTHER),
            ("", OTHER),
        ],
    )
    def test_keyword_families(self, reason: str, expected: str):
        """Reasons map to the first matching keyword family."""
        assert classify(reason) == expected

    def test_parental_wins_over_other_keywords(self):
        """Parental keywords are checked before anything else."""
        assert classify("Maternity - hospital stay") == MATERNITY

    def test_family_alone_is_not_a_substring_match(self):
        """Only the bare word 'family' maps to a family emergency."""
        assert classify("family vacation") == OTHER


class TestCategoryOf:
    """Tests for request categories."""

    def test_explicit_category_wins(self):
        """A tagged category overrides the reason text."""
        request = approved(
            "alice", date(2026, 1, 5), date(2026, 1, 9), reason="vacation", category=SICK
        )
        assert category_of(request) == SICK

    def test_falls_back_to_reason(self):
        """Untagged requests are classified from their reason."""
        request = approved("alice", date(2026, 1, 5), date(2026, 1, 9), reason="Funeral")
        assert category_of(request) == BEREAVEMENT


class TestCategoryPredicates:
    """Tests for category predicates."""

    @pytest.mark.parametrize(
        "category,expected",
        [(MATERNITY, True), (PATERNITY, True), (BEREAVEMENT, False), (OTHER, False)],
    )
    def test_is_parental(self, category: str, expected: bool):
        """Only maternity and paternity draw from the parental pool."""
        assert is_parental(category) == expected

    def test_bereavement_is_compassionate_not_parental(self):
        """Bereavement justifies overage but still uses the ordinary pool."""
        assert is_compassionate(BEREAVEMENT)
        assert not is_parental(BEREAVEMENT)

    def test_other_is_not_compassionate(self):
        """Ordinary leave is not compassionate."""
        assert not is_compassionate(OTHER)

    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("Medical Emergency", True),
            ("Other Emergency", True),
            ("medical emergency", False),
            ("Emergency dentist", False),
        ],
    )
    def test_emergency_reason_is_exact(self, reason: str, expected: bool):
        """Only the exact emergency reason values count."""
        assert is_emergency_reason(reason) == expected

    def test_reason_label(self):
        """Known reason values have a display label; unknown pass through."""
        assert reason_label("study") == "Study/Education"
        assert reason_label("sabbatical") == "sabbatical"
