from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from commerce.domain.states import RefundOutcome
from commerce.services.lock_service import LockService
from commerce.services.payment_client import PaymentClient


def _response(status="completed", status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = {"status": status}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


# =====================================================
# PaymentClient
# =====================================================

def test_initiate_refund_posts_with_idempotency_key():
    client = PaymentClient(base_url="http://payments.local/", timeout=2)

    with patch("commerce.services.payment_client.requests.post", return_value=_response("completed")) as post:
        outcome = client.initiate_refund("pay_1", Decimal("99.90"), refund_id=7)

    assert outcome == RefundOutcome.COMPLETED
    post.assert_called_once_with(
        "http://payments.local/refunds",
        json={"payment_reference": "pay_1", "amount": "99.90"},
        headers={"Idempotency-Key": "refund-7"},
        timeout=2,
    )


@pytest.mark.parametrize(
    "status, expected",
    [("pending", RefundOutcome.PENDING), ("REJECTED", RefundOutcome.REJECTED)],
)
def test_initiate_refund_maps_processor_status(status, expected):
    client = PaymentClient(base_url="http://payments.local")

    with patch("commerce.services.payment_client.requests.post", return_value=_response(status)):
        assert client.initiate_refund("pay_1", Decimal("10"), refund_id=1) == expected


def test_initiate_refund_retries_transient_errors():
    client = PaymentClient(base_url="http://payments.local")
    flaky = [requests.ConnectionError("reset"), _response("completed")]

    with patch("commerce.services.payment_client.requests.post", side_effect=flaky) as post:
        outcome = client.initiate_refund("pay_1", Decimal("10"), refund_id=3)

    assert outcome == RefundOutcome.COMPLETED
    assert post.call_count == 2
    # klucz idempotencji ten sam przy kazdej probie
    assert {c.kwargs["headers"]["Idempotency-Key"] for c in post.call_args_list} == {"refund-3"}


def test_initiate_refund_gives_up_after_retries():
    client = PaymentClient(base_url="http://payments.local")

    with patch(
        "commerce.services.payment_client.requests.post",
        return_value=_response(status_code=503),
    ) as post:
        with pytest.raises(requests.HTTPError):
            client.initiate_refund("pay_1", Decimal("10"), refund_id=3)

    assert post.call_count == 3


# =====================================================
# LockService
# =====================================================

@pytest.fixture
def lock():
    svc = LockService(url="redis://localhost:6379/0")
    svc.redis = MagicMock()
    return svc


def test_checkout_key():
    assert LockService.checkout_key("abc") == "checkout:abc:lock"


def test_acquire_uses_set_nx_with_ttl(lock):
    lock.redis.set.return_value = True

    assert lock.acquire_checkout_lock("abc", owner="o-1", ttl=30) is True
    lock.redis.set.assert_called_once_with(name="checkout:abc:lock", value="o-1", nx=True, ex=30)


def test_acquire_busy_lock(lock):
    lock.redis.set.return_value = None

    assert lock.acquire_checkout_lock("abc", owner="o-2", ttl=30) is False


def test_release_only_by_owner(lock):
    lock.redis.eval.return_value = 0

    assert lock.release_checkout_lock("abc", owner="not-me") is False
    args = lock.redis.eval.call_args.args
    assert args[1:] == (1, "checkout:abc:lock", "not-me")
