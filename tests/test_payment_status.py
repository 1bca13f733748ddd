import pytest

from shared.exceptions import ValidationError
from shared.payments.status import (
    PaymentStatus, allowed_sources, can_transition, normalize_payment_status
)


@pytest.mark.parametrize("raw", ["successful", "SUCCESS", " succeeded ", "paid", "approved", "completed", "confirmed"])
def test_success_synonyms_normalize_to_confirmed(raw):
    assert normalize_payment_status(raw) is PaymentStatus.CONFIRMED


def test_cancel_and_failure_synonyms():
    assert normalize_payment_status("canceled") is PaymentStatus.CANCELLED
    assert normalize_payment_status("Cancelled") is PaymentStatus.CANCELLED
    assert normalize_payment_status("rejected") is PaymentStatus.FAILED
    assert normalize_payment_status("declined") is PaymentStatus.FAILED
    assert normalize_payment_status("pending") is PaymentStatus.PENDING


def test_normalizing_a_canonical_value_is_a_no_op():
    assert normalize_payment_status(PaymentStatus.FAILED) is PaymentStatus.FAILED


@pytest.mark.parametrize("raw", ["", "   ", None, "refunded", 1])
def test_unknown_or_blank_status_is_rejected(raw):
    with pytest.raises(ValidationError) as exc_info:
        normalize_payment_status(raw)
    assert exc_info.value.status_code == 400


def test_transition_table():
    assert allowed_sources(PaymentStatus.PENDING) == {PaymentStatus.PENDING}
    assert can_transition(PaymentStatus.PENDING, PaymentStatus.CONFIRMED)
    assert can_transition(PaymentStatus.FAILED, PaymentStatus.CONFIRMED)
    # Reintentos de la pasarela
    assert can_transition(PaymentStatus.CONFIRMED, PaymentStatus.CONFIRMED)

    assert not can_transition(PaymentStatus.CONFIRMED, PaymentStatus.PENDING)
    assert not can_transition(PaymentStatus.CONFIRMED, PaymentStatus.CANCELLED)
    assert not can_transition(PaymentStatus.CONFIRMED, PaymentStatus.FAILED)
    assert not can_transition(PaymentStatus.CANCELLED, PaymentStatus.CONFIRMED)
