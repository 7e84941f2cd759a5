"""
Fee and expense arithmetic shared by the dashboard, fee and expense views.

Rows are the dictionaries returned by ``cursor(dictionary=True)``; every
amount goes through ``to_decimal`` so totals never touch binary floats.
"""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple

PENDING = 'pending'
PARTIAL = 'partial'
PAID = 'paid'

FEE_STATUSES = (PENDING, PARTIAL, PAID)
BUDGET_PERIODS = ('monthly', 'quarterly', 'yearly')

# code -> (symbol, minor digits, grouping locale)
CURRENCIES = {
    'INR': ('₹', 2, 'en-IN'),
    'USD': ('$', 2, 'en-US'),
    'EUR': ('€', 2, 'en-US'),
    'GBP': ('£', 2, 'en-US'),
    'JPY': ('¥', 0, 'en-US'),
}

ZERO = Decimal('0')
HUNDRED = Decimal('100')


class FinanceError(Exception):
    """Base class for errors raised by finance operations."""


class ValidationError(FinanceError):
    """Submitted values are missing or out of range."""


class DataError(FinanceError):
    """A stored record violates a precondition (e.g. a zero budget)."""


class MissingPrerequisiteError(FinanceError):
    """The operation needs a record the user has not created yet."""


class FeeSummary(NamedTuple):
    total_fees: Decimal
    paid_fees: Decimal
    pending_fees: Decimal


class LedgerTotals(NamedTuple):
    total: Decimal
    paid: Decimal
    outstanding: Decimal


class Consumption(NamedTuple):
    spent: Decimal
    percentage: Decimal

    @property
    def bar_width(self):
        return clamp_percentage(self.percentage)


def to_decimal(value):
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Not a valid amount: {value!r}")


def resolve_status(amount, paid_amount):
    """Derive a fee's status from what it costs and what has been paid."""
    amount = to_decimal(amount)
    paid_amount = to_decimal(paid_amount)
    if paid_amount >= amount:
        return PAID
    if paid_amount > ZERO:
        return PARTIAL
    return PENDING


def fee_status(fee):
    return resolve_status(fee['amount'], fee.get('paid_amount'))


def balance_due(fee):
    remaining = to_decimal(fee['amount']) - to_decimal(fee.get('paid_amount'))
    return max(remaining, ZERO)


def record_payment(fee, payment, payment_method=None, notes=None, today=None):
    """Return a copy of ``fee`` with ``payment`` applied.

    Overpayment is accepted and simply resolves to ``paid``; the stored
    ``paid_amount`` is not capped at ``amount``.
    """
    payment = to_decimal(payment)
    if payment <= ZERO:
        raise ValidationError("Payment amount must be greater than zero.")

    paid_amount = to_decimal(fee.get('paid_amount')) + payment
    updated = dict(fee)
    updated['paid_amount'] = paid_amount
    updated['status'] = resolve_status(fee['amount'], paid_amount)
    updated['paid_date'] = today or date.today()
    updated['payment_method'] = payment_method
    updated['notes'] = notes
    return updated


def aggregate_fees(fees):
    """Dashboard fee totals.

    ``paid_fees`` only counts fully paid fees and ``pending_fees`` only
    counts untouched ones, so partially paid fees show up in neither.
    """
    total = paid = pending = ZERO
    for fee in fees:
        amount = to_decimal(fee['amount'])
        total += amount
        status = fee_status(fee)
        if status == PAID:
            paid += to_decimal(fee.get('paid_amount'))
        elif status == PENDING:
            pending += amount
    return FeeSummary(total, paid, pending)


def ledger_totals(fees):
    total = sum((to_decimal(f['amount']) for f in fees), ZERO)
    paid = sum((to_decimal(f.get('paid_amount')) for f in fees), ZERO)
    return LedgerTotals(total, paid, total - paid)


def total_expenses(expenses):
    return sum((to_decimal(e['amount']) for e in expenses), ZERO)


def total_budget(budgets):
    return sum((to_decimal(b['amount']) for b in budgets), ZERO)


def budget_usage(spent, budget):
    spent = to_decimal(spent)
    budget = to_decimal(budget)
    if budget <= ZERO:
        return ZERO
    return spent / budget * HUNDRED


def _in_period(expense, budget):
    when = expense.get('date')
    if when is None:
        return False
    start, end = budget.get('start_date'), budget.get('end_date')
    if start and when < start:
        return False
    if end and when > end:
        return False
    return True


def budget_consumption(budget, expenses, within_period=False):
    """How much of ``budget`` the matching-category expenses have used.

    Expenses are summed over their whole lifetime unless ``within_period``
    is set, in which case only those dated inside the budget window count.
    """
    limit = to_decimal(budget['amount'])
    if limit <= ZERO:
        raise DataError(f"Budget {budget.get('id')} has no positive amount.")

    spent = ZERO
    for expense in expenses:
        if expense['category_id'] != budget['category_id']:
            continue
        if within_period and not _in_period(expense, budget):
            continue
        spent += to_decimal(expense['amount'])
    return Consumption(spent, spent / limit * HUNDRED)


def clamp_percentage(value, low=0, high=100):
    value = to_decimal(value)
    return max(min(value, Decimal(high)), Decimal(low))


def _group_digits(digits, locale):
    if locale == 'en-IN' and len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        return ','.join(groups + [tail])
    return f"{int(digits):,}"


def format_currency(amount, currency='INR', locale=None):
    """Render ``amount`` with the currency's symbol and minor-unit precision.

    >>> format_currency(Decimal('1234567.5'))
    '₹12,34,567.50'
    >>> format_currency(1234567.5, 'USD')
    '$1,234,567.50'
    """
    symbol, places, default_locale = CURRENCIES.get(currency, (currency + ' ', 2, 'en-US'))
    locale = locale or default_locale

    quantum = Decimal(1).scaleb(-places)
    value = to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = '-' if value < ZERO else ''
    whole, _, fraction = f"{abs(value):f}".partition('.')

    text = _group_digits(whole, locale)
    if places:
        text = f"{text}.{fraction}"
    return f"{sign}{symbol}{text}"
