"""AUSTRAC reporting deadlines.

TTRs are due within 10 business days of the transaction; SMRs within 3
business days of forming the suspicion. Business days exclude weekends
and Australian national public holidays (state variations are ignored).
"""

from datetime import date, timedelta
from typing import Optional

TTR_BUSINESS_DAYS = 10
SMR_BUSINESS_DAYS = 3

# (month, day)
FIXED_HOLIDAYS = frozenset(
    {
        (1, 1),    # New Year's Day
        (1, 26),   # Australia Day
        (4, 25),   # ANZAC Day
        (12, 25),  # Christmas Day
        (12, 26),  # Boxing Day
    }
)


def easter_sunday(year: int) -> date:
    """Anonymous Gregorian algorithm."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def is_public_holiday(d: date) -> bool:
    if (d.month, d.day) in FIXED_HOLIDAYS:
        return True
    easter = easter_sunday(d.year)
    # Good Friday and Easter Monday
    return d in (easter - timedelta(days=2), easter + timedelta(days=1))


def is_business_day(d: date) -> bool:
    return d.weekday() < 5 and not is_public_holiday(d)


def add_business_days(start: date, business_days: int) -> date:
    """Step forward day by day until ``business_days`` business days have passed."""
    result = start
    added = 0
    while added < business_days:
        result += timedelta(days=1)
        if is_business_day(result):
            added += 1
    return result


def calculate_ttr_deadline(transaction_date: date) -> date:
    return add_business_days(transaction_date, TTR_BUSINESS_DAYS)


def calculate_smr_deadline(suspicion_date: date) -> date:
    return add_business_days(suspicion_date, SMR_BUSINESS_DAYS)


def business_days_remaining(deadline: date, today: Optional[date] = None) -> int:
    """Business days from today up to and including the deadline; 0 once due."""
    if today is None:
        today = date.today()
    if deadline <= today:
        return 0

    remaining = 0
    current = today
    while current < deadline:
        current += timedelta(days=1)
        if is_business_day(current):
            remaining += 1
    return remaining


def is_deadline_approaching(
    deadline: date, threshold_days: int, today: Optional[date] = None
) -> bool:
    return business_days_remaining(deadline, today) <= threshold_days


def is_deadline_passed(deadline: date, today: Optional[date] = None) -> bool:
    if today is None:
        today = date.today()
    return deadline < today
