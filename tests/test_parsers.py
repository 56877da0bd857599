"""Tests for free-text field parsers."""

import pytest

from risk_scorer.parsers import (
    has_sensitive_data,
    match_certifications,
    parse_scaling_mechanism,
    parse_sla,
    parse_technical_debt,
)
from risk_scorer.schema import ScalingMechanism, TechnicalDebtLevel


class TestParseSla:
    @pytest.mark.parametrize("text,expected", [
        ("99.9%", 99.9),
        ("99,5", 99.5),
        ("SLA de 99,95 % par mois", 99.95),
        ("100", 100.0),
        ("Availability 98% (best effort 99.9%)", 98.0),
    ])
    def test_extracts_first_number(self, text, expected):
        assert parse_sla(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "best effort", "n/a"])
    def test_no_number(self, text):
        assert parse_sla(text) is None


class TestParseScalingMechanism:
    def test_horizontal(self):
        assert parse_scaling_mechanism("Horizontale") == ScalingMechanism.HORIZONTAL

    def test_vertical(self):
        assert parse_scaling_mechanism("Verticale") == ScalingMechanism.VERTICAL

    def test_horizontal_wins_when_both_present(self):
        assert parse_scaling_mechanism("Verticale puis Horizontale") == ScalingMechanism.HORIZONTAL

    @pytest.mark.parametrize("text", [None, "", "none", "auto"])
    def test_unrecognized(self, text):
        assert parse_scaling_mechanism(text) is None


class TestParseTechnicalDebt:
    def test_exact_match(self):
        assert parse_technical_debt("Low") == TechnicalDebtLevel.LOW
        assert parse_technical_debt("High") == TechnicalDebtLevel.HIGH

    def test_case_sensitive(self):
        assert parse_technical_debt("low") is None
        assert parse_technical_debt(None) is None


class TestMatchCertifications:
    def test_case_insensitive_substring(self):
        found = match_certifications(["iso 27001:2022 certified", "hds"])
        assert found == ["ISO 27001", "HDS"]

    def test_ignores_spacing_and_hyphens(self):
        assert match_certifications(["ISO27001"]) == ["ISO 27001"]
        assert match_certifications(["SOC-2 Type II"]) == ["SOC 2"]

    def test_each_certification_counted_once(self):
        assert match_certifications(["HDS", "HDS v2"]) == ["HDS"]

    def test_unknown_labels(self):
        assert match_certifications(["SecNumCloud", ""]) == []

    def test_returned_in_known_order(self):
        assert match_certifications(["PCI DSS", "SOC 1", "ISO 27001"]) == ["ISO 27001", "PCI", "SOC 1"]


class TestHasSensitiveData:
    def test_health_or_financial(self):
        assert has_sensitive_data(["Personal", "health"])
        assert has_sensitive_data(["Financial"])

    def test_other_types(self):
        assert not has_sensitive_data(["Personal", "Public"])
        assert not has_sensitive_data([])
