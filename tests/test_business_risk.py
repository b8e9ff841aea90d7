"""Tests for business-entity risk scoring and the hard-block override."""

import pytest

from bullion_aml.compliance.business_risk import (
    calculate_business_risk_score,
    get_business_risk_level,
    should_block_business,
)
from bullion_aml.models import BeneficialOwner, BusinessRiskFactors


def verified_owner(**overrides) -> BeneficialOwner:
    return BeneficialOwner(verification_status="verified", **overrides)


def business(**overrides) -> BusinessRiskFactors:
    base = dict(
        entity_type="company",
        years_in_operation=10,
        industry_code="4711",
        abn_status="Active",
        gst_registered=True,
        ubo_count=1,
        ubos=[verified_owner()],
    )
    base.update(overrides)
    return BusinessRiskFactors(**base)


class TestCalculateBusinessRiskScore:
    def test_established_company_scores_zero(self):
        assert calculate_business_risk_score(business()) == 0

    @pytest.mark.parametrize("entity_type", ["trust", "smsf"])
    def test_opaque_structures(self, entity_type):
        assert calculate_business_risk_score(business(entity_type=entity_type)) == 15

    def test_partnership_with_three_owners(self):
        owners = [verified_owner() for _ in range(3)]
        factors = business(entity_type="partnership", ubo_count=3, ubos=owners)
        # 10 for the partnership structure + 10 for 2-3 owners
        assert calculate_business_risk_score(factors) == 20

    def test_small_partnership_only_scores_owner_count(self):
        owners = [verified_owner() for _ in range(2)]
        factors = business(entity_type="partnership", ubo_count=2, ubos=owners)
        assert calculate_business_risk_score(factors) == 10

    @pytest.mark.parametrize(
        "years,expected", [(0.5, 20), (1.5, 15), (3, 5), (5, 0), (None, 0)]
    )
    def test_years_in_operation(self, years, expected):
        assert calculate_business_risk_score(business(years_in_operation=years)) == expected

    def test_high_risk_industry(self):
        assert calculate_business_risk_score(business(industry_code="7320")) == 20

    def test_custom_industry_list(self):
        factors = business(industry_code="4711")
        assert calculate_business_risk_score(factors, high_risk_industries={"4711"}) == 20

    def test_inactive_abn(self):
        assert calculate_business_risk_score(business(abn_status="Cancelled")) == 25

    def test_no_gst(self):
        assert calculate_business_risk_score(business(gst_registered=False)) == 5

    def test_many_owners(self):
        owners = [verified_owner() for _ in range(4)]
        assert calculate_business_risk_score(business(ubo_count=4, ubos=owners)) == 15

    def test_pep_owner(self):
        factors = business(ubos=[verified_owner(is_pep=True)])
        assert calculate_business_risk_score(factors) == 30

    def test_sanctioned_owner_scored(self):
        factors = business(ubos=[verified_owner(is_sanctioned=True)])
        assert calculate_business_risk_score(factors) == 50

    def test_unverified_owner(self):
        factors = business(ubos=[BeneficialOwner()])
        assert calculate_business_risk_score(factors) == 15

    def test_transaction_factors(self):
        factors = business(
            is_interstate=True,
            transaction_amount=60000.0,
            has_multiple_recent_transactions=True,
        )
        # 5 interstate + 20 amount + 20 repeat activity
        assert calculate_business_risk_score(factors) == 45

    def test_clamped_at_100(self):
        factors = business(
            entity_type="trust",
            years_in_operation=0.2,
            industry_code="6921",
            abn_status="Cancelled",
            gst_registered=False,
            ubos=[BeneficialOwner(is_pep=True, is_sanctioned=True)],
        )
        assert calculate_business_risk_score(factors) == 100


class TestBusinessRiskLevel:
    def test_shares_individual_cutoffs(self):
        assert get_business_risk_level(39) == "low"
        assert get_business_risk_level(40) == "medium"
        assert get_business_risk_level(70) == "high"


class TestShouldBlockBusiness:
    def test_clean_business_not_blocked(self):
        decision = should_block_business(business())
        assert decision.blocked is False
        assert decision.reason is None

    def test_sanctioned_owner_blocks(self):
        factors = business(ubos=[verified_owner(), verified_owner(is_sanctioned=True)])
        decision = should_block_business(factors)
        assert decision.blocked is True
        assert decision.reason == "Beneficial owner matches sanctions list"

    @pytest.mark.parametrize("status", ["Cancelled", "Deleted"])
    def test_inactive_abn_blocks(self, status):
        decision = should_block_business(business(abn_status=status))
        assert decision.blocked is True
        assert decision.reason == "Business ABN is no longer active"

    def test_sanctions_reason_takes_precedence(self):
        factors = business(abn_status="Cancelled", ubos=[verified_owner(is_sanctioned=True)])
        assert should_block_business(factors).reason == "Beneficial owner matches sanctions list"

    def test_high_score_alone_does_not_block(self):
        factors = business(
            entity_type="trust",
            years_in_operation=0.5,
            industry_code="7320",
            ubos=[BeneficialOwner(is_pep=True)],
        )
        assert calculate_business_risk_score(factors) >= 70
        assert should_block_business(factors).blocked is False
