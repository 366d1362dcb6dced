"""Refund percentage owed when a booking is cancelled."""
from collections import namedtuple
from datetime import timedelta

from furrchum.scheduling.state_machine import Actor

RefundPolicy = namedtuple('RefundPolicy', ['full_hours', 'partial_hours', 'partial_percent'])

DEFAULT_POLICY = RefundPolicy(full_hours=12, partial_hours=4, partial_percent=50)


def policy_from_config(config):
    return RefundPolicy(
        full_hours=config.get('REFUND_FULL_HOURS', DEFAULT_POLICY.full_hours),
        partial_hours=config.get('REFUND_PARTIAL_HOURS', DEFAULT_POLICY.partial_hours),
        partial_percent=config.get('REFUND_PARTIAL_PERCENT', DEFAULT_POLICY.partial_percent),
    )


def refund_percentage(starts_at, cancelled_at, actor, no_show=False,
                      technical_failure=False, policy=DEFAULT_POLICY):
    """Percent (0-100) of the payment returned to the pet owner.

    Vet, admin and platform cancellations always refund in full. Owner
    cancellations refund by notice given; each threshold is inclusive on the
    larger-refund side, so exactly 12h before start is a full refund.
    """
    actor = Actor(actor)
    if actor != Actor.PET_OWNER:
        return 100
    if no_show:
        return 100 if technical_failure else 0

    notice = starts_at - cancelled_at
    if notice >= timedelta(hours=policy.full_hours):
        return 100
    if notice >= timedelta(hours=policy.partial_hours):
        return policy.partial_percent
    return 0


def refund_amount(amount, percentage):
    return round(amount * percentage / 100, 2)
