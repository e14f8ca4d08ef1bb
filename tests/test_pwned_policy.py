import pytest

from pwnguard.utils.pwned_policy import Decision, Thresholds, evaluate, effective_threshold


def test_zero_occurrences_always_accepted():
    t = Thresholds(reject=1, warn=1)
    assert evaluate(0, False, t) == Decision.ACCEPT
    assert evaluate(0, True, t) == Decision.ACCEPT
    assert evaluate(0, True, t, blocking=False) == Decision.ACCEPT


@pytest.mark.parametrize('count', [1, 9, 99])
def test_new_record_below_reject_threshold_accepted(count):
    assert evaluate(count, False, Thresholds(reject=100, warn=5)) == Decision.ACCEPT


@pytest.mark.parametrize('count', [100, 101, 1_000_000])
def test_new_record_at_or_above_reject_threshold_rejected(count):
    assert evaluate(count, False, Thresholds(reject=100, warn=5)) == Decision.REJECT


def test_existing_record_uses_warn_threshold():
    t = Thresholds(reject=999_999_999, warn=1)
    assert evaluate(1, True, t) == Decision.REJECT
    assert evaluate(1, False, t) == Decision.ACCEPT


def test_existing_record_between_warn_and_reject():
    # A user moving off a breached password may pick one that is only
    # seen more rarely than the warn cutoff.
    t = Thresholds(reject=10, warn=50)
    assert evaluate(20, True, t) == Decision.ACCEPT
    assert evaluate(20, False, t) == Decision.REJECT


def test_warn_threshold_falls_back_to_reject():
    t = Thresholds(reject=7)
    assert t.warn_or_reject == 7
    assert effective_threshold(True, t) == 7
    assert effective_threshold(False, t) == 7
    assert evaluate(6, True, t) == Decision.ACCEPT
    assert evaluate(7, True, t) == Decision.REJECT


def test_sign_in_path_warns_regardless_of_record_state():
    t = Thresholds(reject=100, warn=3)
    assert evaluate(3, False, t, blocking=False) == Decision.WARN
    assert evaluate(3, True, t, blocking=False) == Decision.WARN
    assert evaluate(2, True, t, blocking=False) == Decision.ACCEPT


def test_sign_in_path_never_rejects():
    t = Thresholds(reject=1)
    assert evaluate(1_000_000, False, t, blocking=False) == Decision.WARN


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        evaluate(-1, False, Thresholds())


def test_thresholds_must_be_positive():
    with pytest.raises(ValueError):
        Thresholds(reject=0)
    with pytest.raises(ValueError):
        Thresholds(reject=1, warn=0)
    assert Thresholds().reject == 1
    assert Thresholds().warn is None
