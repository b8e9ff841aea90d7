"""Customer name vs. payment cardholder name comparison.

A card in someone else's name is a fraud and third-party-funding signal.
The customer name comes from verified KYC data when available, otherwise
from registration; a mismatch against a verified identity is escalated
to high severity.
"""

import logging
import re
from typing import Optional

from bullion_aml.models import NameComparisonResult

logger = logging.getLogger(__name__)


def _parts(name: str) -> list[str]:
    return [p for p in re.split(r"\s+", name) if p]


def compare_payment_name(
    customer_first_name: str,
    customer_last_name: str,
    cardholder_name: Optional[str],
    has_kyc: bool,
) -> NameComparisonResult:
    """Compare names token by token, tolerating middle names, initials and reordering."""
    customer_name = f"{customer_first_name} {customer_last_name}".lower().strip()
    payment_name = (cardholder_name or "").lower().strip()

    def result(is_match: bool, severity: str, confidence: int, details: str) -> NameComparisonResult:
        return NameComparisonResult(
            is_match=is_match,
            mismatch_severity=severity,
            confidence=confidence,
            details=details,
            customer_name=customer_name,
            payment_name=payment_name or "N/A",
            has_kyc=has_kyc,
        )

    if not payment_name:
        return result(False, "medium", 0, "No cardholder name provided on payment method")

    if customer_name == payment_name:
        return result(True, "none", 100, "Exact name match")

    customer_parts = _parts(customer_name)
    card_parts = _parts(payment_name)
    if not customer_parts:
        return result(False, "medium", 0, "No customer name on record")

    c_first, c_last = customer_parts[0], customer_parts[-1]
    p_first, p_last = card_parts[0], card_parts[-1]

    if c_first == p_first and c_last == p_last:
        return result(
            True, "low", 95, "First and last name match (possible middle name difference)"
        )

    if c_first[0] == p_first[0] and c_last == p_last:
        return result(
            True, "low", 85, "Last name and first initial match (abbreviated first name)"
        )

    if c_first == p_last and c_last == p_first:
        return result(True, "low", 90, "Names match but reversed order")

    partial_severity = "high" if has_kyc else "medium"

    if c_first == p_first:
        return result(
            False,
            partial_severity,
            40,
            "First name matches but last name differs (possible family member or married name)",
        )

    if c_last == p_last:
        return result(
            False,
            partial_severity,
            40,
            "Last name matches but first name differs (possible family member)",
        )

    logger.warning(
        "Cardholder name mismatch (%s): '%s' vs '%s'",
        "KYC verified" if has_kyc else "no KYC",
        customer_name,
        payment_name,
    )
    details = (
        "Payment card name does not match government-verified ID "
        "(possible stolen card or unauthorized use)"
        if has_kyc
        else "Payment card name does not match registered name"
    )
    return result(False, partial_severity, 0, details)
