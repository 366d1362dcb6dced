from datetime import datetime, timedelta

import pytest

from furrchum.scheduling.refund_policy import (
    RefundPolicy, policy_from_config, refund_amount, refund_percentage,
)
from furrchum.scheduling.state_machine import Actor

START = datetime(2030, 1, 7, 18, 0)


def owner_cancels(notice):
    return refund_percentage(START, START - notice, Actor.PET_OWNER)


@pytest.mark.parametrize('notice, expected', [
    (timedelta(hours=48), 100),
    (timedelta(hours=12, minutes=1), 100),
    (timedelta(hours=12), 100),
    (timedelta(hours=11, minutes=59), 50),
    (timedelta(hours=4), 50),
    (timedelta(hours=3, minutes=59), 0),
    (timedelta(hours=3), 0),
    (timedelta(0), 0),
])
def test_owner_notice_tiers(notice, expected):
    assert owner_cancels(notice) == expected


@pytest.mark.parametrize('actor', [Actor.VET, Actor.ADMIN, Actor.PLATFORM])
def test_non_owner_cancellation_refunds_in_full(actor):
    assert refund_percentage(START, START - timedelta(minutes=5), actor) == 100


def test_no_show():
    late = START + timedelta(minutes=30)
    assert refund_percentage(START, late, Actor.PET_OWNER, no_show=True) == 0
    assert refund_percentage(START, late, Actor.PET_OWNER, no_show=True, technical_failure=True) == 100


def test_policy_from_config():
    policy = policy_from_config({'REFUND_FULL_HOURS': 24, 'REFUND_PARTIAL_HOURS': 6, 'REFUND_PARTIAL_PERCENT': 25})
    assert policy == RefundPolicy(24, 6, 25)
    assert refund_percentage(START, START - timedelta(hours=12), Actor.PET_OWNER, policy=policy) == 25
    assert policy_from_config({}).full_hours == 12


def test_refund_amount():
    assert refund_amount(500, 50) == 250
    assert refund_amount(621.0, 100) == 621.0
    assert refund_amount(333, 50) == 166.5
    assert refund_amount(500, 0) == 0
