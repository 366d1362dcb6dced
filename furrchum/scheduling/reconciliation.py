"""Platform fee / vet earnings split and transaction roll-ups."""
from datetime import date

PLATFORM_FEE = 121
COMPLETED_STATUSES = ('completed', 'success')


def is_completed(transaction):
    return transaction.status in COMPLETED_STATUSES


def vet_earning(amount, platform_fee=PLATFORM_FEE):
    return amount - platform_fee


def _month_start(day):
    return date(day.year, day.month, 1)


def _previous_month_start(day):
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)


def booking_earnings(transactions, platform_fee=PLATFORM_FEE):
    """Per-booking split for completed transactions that are linked to a booking."""
    rows = []
    for transaction in transactions:
        if not transaction.booking_id or not is_completed(transaction):
            continue
        amount = float(transaction.amount)
        rows.append({
            'transaction_id': transaction.id,
            'booking_id': transaction.booking_id,
            'amount': amount,
            'platform_fee': platform_fee,
            'vet_earning': vet_earning(amount, platform_fee),
        })
    return rows


def transaction_stats(transactions, today, platform_fee=PLATFORM_FEE):
    """Aggregate totals over every transaction, linked to a booking or not.

    Month buckets compare each created_at truncated to the first of its month
    with the first of ``today``'s month and the month before it.
    """
    this_month = _month_start(today)
    last_month = _previous_month_start(today)

    total_amount = 0.0
    this_month_amount = 0.0
    last_month_amount = 0.0
    counts = {'pending': 0, 'completed': 0, 'failed': 0, 'refunded': 0}

    for transaction in transactions:
        amount = float(transaction.amount)
        total_amount += amount
        if is_completed(transaction):
            counts['completed'] += 1
        elif transaction.status in counts:
            counts[transaction.status] += 1

        created_at = getattr(transaction, 'created_at', None)
        if created_at is None:
            continue
        bucket = _month_start(created_at)
        if bucket == this_month:
            this_month_amount += amount
        elif bucket == last_month:
            last_month_amount += amount

    platform_fees = counts['completed'] * platform_fee
    return {
        'total_amount': total_amount,
        'total_transactions': len(transactions),
        'completed_transactions': counts['completed'],
        'pending_transactions': counts['pending'],
        'failed_transactions': counts['failed'],
        'refunded_transactions': counts['refunded'],
        'this_month_amount': this_month_amount,
        'last_month_amount': last_month_amount,
        'platform_fees': platform_fees,
        'vet_earnings': total_amount - platform_fees,
    }
