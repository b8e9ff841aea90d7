"""Compliance threshold table.

Maps an AUD amount to the actions AUSTRAC obligations attach to it:
  - over $5,000   -> customer identity (KYC) must be verified
  - over $10,000  -> a Threshold Transaction Report must be lodged
  - over $50,000  -> enhanced due diligence is required

KYC and EDD apply to the customer's lifetime spend; the TTR obligation
applies to the single transaction.
"""

import logging
from typing import Optional, Union

from bullion_aml.models import (
    CheckoutRequest,
    ComplianceConfig,
    ComplianceRequirements,
    StoredTransaction,
    ThresholdFlags,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

KYC_THRESHOLD = 5_000
TTR_THRESHOLD = 10_000
ENHANCED_DD_THRESHOLD = 50_000


def check_thresholds(
    amount: float,
    config: Optional[ComplianceConfig] = None,
) -> ThresholdFlags:
    """Return which compliance actions an amount triggers.

    Each flag is set only when the amount strictly exceeds its threshold.
    """
    if config is None:
        config = ComplianceConfig()
    return ThresholdFlags(
        requires_kyc=amount > config.kyc_threshold,
        requires_ttr=amount > config.ttr_threshold,
        requires_enhanced_dd=amount > config.enhanced_dd_threshold,
    )


def to_aud(
    tx: Union[StoredTransaction, CheckoutRequest], usd_to_aud_rate: float
) -> float:
    """AUD value of a purchase: the recorded AUD amount, else USD converted."""
    if tx.amount_aud is not None:
        return tx.amount_aud
    if tx.currency == "USD":
        return tx.amount * usd_to_aud_rate
    return tx.amount


def get_compliance_requirements(
    customer_id: str,
    current_amount: float,
    store: MemoryStore,
    config: Optional[ComplianceConfig] = None,
    usd_to_aud_rate: float = 1.52,
) -> ComplianceRequirements:
    """Evaluate thresholds against the customer's cumulative spend.

    Only succeeded payments count towards the lifetime total.
    """
    if config is None:
        config = ComplianceConfig()

    history = store.get_by_customer(customer_id, payment_status="succeeded")
    lifetime_total = sum(to_aud(tx, usd_to_aud_rate) for tx in history)
    new_total = lifetime_total + current_amount

    cumulative = check_thresholds(new_total, config)
    single = check_thresholds(current_amount, config)

    logger.debug(
        "Customer %s lifetime total %.2f, new total %.2f",
        customer_id,
        lifetime_total,
        new_total,
    )

    return ComplianceRequirements(
        requires_kyc=cumulative.requires_kyc,
        requires_ttr=single.requires_ttr,
        requires_enhanced_dd=cumulative.requires_enhanced_dd,
        cumulative_total=lifetime_total,
        new_cumulative_total=new_total,
    )
