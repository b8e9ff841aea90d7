"""Structuring detection rule.

Identifies customers splitting purchases to stay under the $5,000 KYC
threshold. Over a trailing 7-day window we count purchases in the
$4,000-$4,999.99 band and flag structuring when either:
  (a) 3 or more purchases fall in the band, or
  (b) the window total plus the current purchase reaches $10,000 and
      2 or more purchases fall in the band.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from bullion_aml.compliance.thresholds import to_aud
from bullion_aml.models import ComplianceConfig, StructuringResult
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)


def detect_structuring(
    customer_id: str,
    amount: float,
    store: MemoryStore,
    now: datetime,
    config: Optional[ComplianceConfig] = None,
    usd_to_aud_rate: float = 1.52,
) -> StructuringResult:
    """Check the customer's recent purchases for threshold avoidance.

    ``amount`` is the current purchase in AUD. It contributes to the
    aggregate total in (b) but is not itself counted as a band transaction.
    """
    if config is None:
        config = ComplianceConfig()

    window_start = now - timedelta(days=config.structuring_window_days)
    recent_txns = store.get_by_customer(customer_id, since=window_start)

    if not recent_txns:
        return StructuringResult(
            is_structuring=False, band_count=0, recent_total=0.0, indicators=[]
        )

    recent_amounts = [to_aud(t, usd_to_aud_rate) for t in recent_txns]
    band_count = sum(
        1
        for a in recent_amounts
        if config.structuring_band_low <= a < config.structuring_band_high
    )
    recent_total = sum(recent_amounts)

    indicators = [
        f"{band_count} transactions between ${config.structuring_band_low:,.0f}-"
        f"${config.structuring_band_high:,.0f} in {config.structuring_window_days} days",
        f"Total amount: ${recent_total:.2f}",
    ]

    if band_count >= config.structuring_min_count:
        logger.warning(
            "Structuring by band count for customer %s: %d band transactions",
            customer_id,
            band_count,
        )
        return StructuringResult(
            is_structuring=True,
            band_count=band_count,
            recent_total=recent_total,
            indicators=indicators,
        )

    if (
        recent_total + amount >= config.structuring_aggregate_total
        and band_count >= config.structuring_aggregate_min_count
    ):
        logger.warning(
            "Structuring by aggregate for customer %s: %.2f including current purchase",
            customer_id,
            recent_total + amount,
        )
        return StructuringResult(
            is_structuring=True,
            band_count=band_count,
            recent_total=recent_total,
            indicators=indicators
            + [f"Aggregate including current purchase: ${recent_total + amount:.2f}"],
        )

    return StructuringResult(
        is_structuring=False,
        band_count=band_count,
        recent_total=recent_total,
        indicators=[],
    )
