"""Tests for cardholder name comparison."""

from bullion_aml.compliance.name_matching import compare_payment_name


class TestComparePaymentName:
    def test_exact_match(self):
        result = compare_payment_name("Jane", "Citizen", "JANE CITIZEN", has_kyc=True)
        assert result.is_match is True
        assert result.mismatch_severity == "none"
        assert result.confidence == 100

    def test_middle_name_tolerated(self):
        result = compare_payment_name("Jane", "Citizen", "Jane Mary Citizen", has_kyc=True)
        assert result.is_match is True
        assert result.mismatch_severity == "low"
        assert result.confidence == 95

    def test_first_initial(self):
        result = compare_payment_name("Jane", "Citizen", "J Citizen", has_kyc=True)
        assert result.is_match is True
        assert result.confidence == 85

    def test_reversed_order(self):
        result = compare_payment_name("Jane", "Citizen", "Citizen Jane", has_kyc=False)
        assert result.is_match is True
        assert result.confidence == 90

    def test_last_name_only_with_kyc_is_high(self):
        result = compare_payment_name("Jane", "Citizen", "Robert Citizen", has_kyc=True)
        assert result.is_match is False
        assert result.mismatch_severity == "high"
        assert result.confidence == 40

    def test_first_name_only_without_kyc_is_medium(self):
        result = compare_payment_name("Jane", "Citizen", "Jane Doe", has_kyc=False)
        assert result.is_match is False
        assert result.mismatch_severity == "medium"

    def test_completely_different(self):
        result = compare_payment_name("Jane", "Citizen", "Robert Brown", has_kyc=True)
        assert result.is_match is False
        assert result.mismatch_severity == "high"
        assert result.confidence == 0
        assert "government-verified" in result.details

    def test_completely_different_without_kyc(self):
        result = compare_payment_name("Jane", "Citizen", "Robert Brown", has_kyc=False)
        assert result.mismatch_severity == "medium"
        assert result.details == "Payment card name does not match registered name"

    def test_missing_cardholder_name(self):
        for name in (None, "", "   "):
            result = compare_payment_name("Jane", "Citizen", name, has_kyc=True)
            assert result.is_match is False
            assert result.mismatch_severity == "medium"
            assert result.payment_name == "N/A"

    def test_extra_whitespace(self):
        result = compare_payment_name("Jane", "Citizen", "  Jane   Citizen ", has_kyc=True)
        assert result.is_match is True
