"""
Schedule generation and read-only calculations over debts and paluwagans.

Everything here is a pure function of stored state plus "today"; nothing
touches the store.
"""
import calendar
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from pitaka.core.errors import ValidationError
from pitaka.models.base import ZERO, to_money
from pitaka.models.debt import Frequency, PaymentSchedule, PaymentType
from pitaka.models.paluwagan import Paluwagan, PaluwaganNumber, WeeklyPayment

SUNDAY = 6  # date.weekday()


class ScheduleStatus(str, Enum):
    PAID_OFF = "paid_off"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    ON_TRACK = "on_track"


def local_today() -> date:
    return date.today()


def add_months(value: date, months: int) -> date:
    """Same day ``months`` later, clamped to the end of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# ===== DEBT SCHEDULES =====

def build_debt_schedule(
    total_amount: Decimal,
    payment_type: str,
    due_date: Optional[date] = None,
    number_of_payments: Optional[int] = None,
    start_date: Optional[date] = None,
    frequency: str = Frequency.WEEKLY
) -> List[PaymentSchedule]:
    """
    Split a debt into installments.

    single:   one installment of the full amount on ``due_date``.
    multiple: ``number_of_payments`` equal installments from ``start_date``,
              weekly or monthly. The split must be exact to the cent so the
              installments always add up to the total.
    """
    total_amount = to_money(total_amount)
    if total_amount <= 0:
        raise ValidationError("Please enter a valid total amount")

    if payment_type == PaymentType.SINGLE:
        if due_date is None:
            raise ValidationError("Please enter a due date")
        return [PaymentSchedule(due_date=due_date, amount=total_amount)]

    if start_date is None or not number_of_payments or number_of_payments <= 0:
        raise ValidationError("Please enter valid multiple payment details")

    per_payment = to_money(total_amount / number_of_payments)
    if per_payment * number_of_payments != total_amount:
        raise ValidationError("Total amount must be evenly divisible by number of payments")

    schedule = []
    for i in range(number_of_payments):
        if frequency == Frequency.MONTHLY:
            current = add_months(start_date, i)
        else:
            current = start_date + timedelta(days=7 * i)
        schedule.append(PaymentSchedule(due_date=current, amount=per_payment))
    return schedule


def determine_frequency(schedule: Sequence[PaymentSchedule]) -> Frequency:
    if len(schedule) <= 1:
        return Frequency.WEEKLY
    days = (schedule[1].due_date - schedule[0].due_date).days
    return Frequency.MONTHLY if days >= 28 else Frequency.WEEKLY


def remaining_amount(schedule: Iterable[PaymentSchedule]) -> Decimal:
    return sum((ps.amount for ps in schedule if not ps.is_paid), ZERO)


def next_due_date(schedule: Iterable[PaymentSchedule]) -> Optional[date]:
    unpaid = sorted(ps.due_date for ps in schedule if not ps.is_paid)
    return unpaid[0] if unpaid else None


def classify_status(
    unpaid_due_dates: Iterable[date],
    today: date,
    due_soon_days: int = 7
) -> ScheduleStatus:
    """PaidOff if nothing is unpaid, Overdue if anything is past due,
    DueSoon if the earliest unpaid date is within ``due_soon_days``."""
    dates = sorted(unpaid_due_dates)
    if not dates:
        return ScheduleStatus.PAID_OFF
    if dates[0] < today:
        return ScheduleStatus.OVERDUE
    if (dates[0] - today).days <= due_soon_days:
        return ScheduleStatus.DUE_SOON
    return ScheduleStatus.ON_TRACK


def debt_status(schedule: Sequence[PaymentSchedule], today: date, due_soon_days: int = 7) -> ScheduleStatus:
    return classify_status((ps.due_date for ps in schedule if not ps.is_paid), today, due_soon_days)


def progress_percentage(paid_count: int, total_count: int) -> int:
    if total_count <= 0:
        return 0
    return min(round(100 * paid_count / total_count), 100)


def overdue_installments(schedule: Sequence[PaymentSchedule], today: date) -> List[int]:
    return [i for i, ps in enumerate(schedule) if not ps.is_paid and ps.due_date < today]


def upcoming_installments(schedule: Sequence[PaymentSchedule], today: date, due_soon_days: int = 7) -> List[int]:
    return [
        i for i, ps in enumerate(schedule)
        if not ps.is_paid and 0 <= (ps.due_date - today).days <= due_soon_days
    ]


# ===== PALUWAGAN SCHEDULES =====

def generate_payout_dates(start_date: date, total_numbers: int) -> List[date]:
    """First payout on the start date, then every following Sunday."""
    if total_numbers <= 0:
        return []
    dates = [start_date]
    current = start_date
    for _ in range(1, total_numbers):
        current += timedelta(days=1)
        while current.weekday() != SUNDAY:
            current += timedelta(days=1)
        dates.append(current)
    return dates


def payout_for(amount_per_number: Decimal, total_numbers: int) -> Decimal:
    """Every number receives the whole pool once."""
    return to_money(to_money(amount_per_number) * total_numbers)


def build_paluwagan_schedules(
    start_date: date,
    total_numbers: int,
    amount_per_number: Decimal,
    owned_numbers: Iterable[int],
    owner_name: str = "Me"
) -> Tuple[List[PaluwaganNumber], List[WeeklyPayment]]:
    owned = set(owned_numbers)
    if total_numbers <= 0:
        raise ValidationError("Total numbers must be at least 1")
    if to_money(amount_per_number) <= 0:
        raise ValidationError("Amount per number must be greater than zero")
    if not owned:
        raise ValidationError("Please select at least one number")
    out_of_range = sorted(n for n in owned if n < 1 or n > total_numbers)
    if out_of_range:
        raise ValidationError(f"Numbers out of range: {out_of_range}")

    payout_dates = generate_payout_dates(start_date, total_numbers)
    numbers = [
        PaluwaganNumber(
            number=i,
            payout_date=payout_dates[i - 1],
            is_owner=i in owned,
            owner_name=owner_name if i in owned else None,
        )
        for i in range(1, total_numbers + 1)
    ]
    weekly_amount = to_money(amount_per_number) * len(owned)
    weekly_payments = [
        WeeklyPayment(week_number=week, due_date=payout_dates[week - 1], amount=weekly_amount)
        for week in range(1, total_numbers + 1)
    ]
    return numbers, weekly_payments


def is_payout_date_valid(payout_date: date, today: date) -> bool:
    return payout_date <= today


def total_paid(paluwagan: Paluwagan) -> Decimal:
    return sum((p.amount for p in paluwagan.weekly_payments if p.is_paid), ZERO)


def total_received(paluwagan: Paluwagan) -> Decimal:
    received = sum(1 for n in paluwagan.owned_numbers if n.is_paid)
    return to_money(paluwagan.payout_per_number * received)


def net_position(paluwagan: Paluwagan) -> Decimal:
    return total_received(paluwagan) - total_paid(paluwagan)


def next_payout(paluwagan: Paluwagan, today: date) -> Optional[PaluwaganNumber]:
    upcoming = sorted(
        (n for n in paluwagan.owned_numbers if not n.is_paid and n.payout_date >= today),
        key=lambda n: n.payout_date,
    )
    return upcoming[0] if upcoming else None


def current_week_payment(paluwagan: Paluwagan, today: date, window_days: int = 7) -> Optional[WeeklyPayment]:
    for payment in paluwagan.weekly_payments:
        if not payment.is_paid and 0 <= (payment.due_date - today).days <= window_days:
            return payment
    return None


def current_week(paluwagan: Paluwagan, today: date) -> int:
    """1-based week whose due date is today or next; the last week once all have passed."""
    for index, payment in enumerate(paluwagan.weekly_payments):
        if payment.due_date >= today:
            return index + 1
    return len(paluwagan.weekly_payments)


def paluwagan_status(paluwagan: Paluwagan, today: date, due_soon_days: int = 7) -> ScheduleStatus:
    return classify_status(
        (p.due_date for p in paluwagan.weekly_payments if not p.is_paid),
        today,
        due_soon_days,
    )
