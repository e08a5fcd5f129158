import pytest

from regionpower.engine.systems.protest import (
    PROTEST_TIMER, RIOT_TIMER, ProtestState, advance_protest, is_protesting,
)

def test_stable_settlement_stays_stable():
    outcome = advance_protest(50.0, None, 1.0)
    assert outcome.state is ProtestState.STABLE
    assert outcome.timer is None
    assert not outcome.started


@pytest.mark.parametrize("satisfaction", [29.9, 15.0, 0.1])
def test_unrest_starts_long_protest(satisfaction):
    outcome = advance_protest(satisfaction, None, 1.0)
    assert outcome.state is ProtestState.PROTESTING
    assert outcome.timer == PROTEST_TIMER
    assert outcome.started


def test_zero_satisfaction_takes_priority():
    outcome = advance_protest(0.0, None, 1.0)
    assert outcome.timer == RIOT_TIMER


def test_threshold_is_exclusive():
    assert advance_protest(30.0, None, 1.0).state is ProtestState.STABLE


def test_countdown_continues_while_unhappy():
    outcome = advance_protest(10.0, 50.0, 4.0)
    assert outcome.state is ProtestState.PROTESTING
    assert outcome.timer == pytest.approx(46.0)
    assert not outcome.started


def test_zero_satisfaction_does_not_reset_running_timer():
    outcome = advance_protest(0.0, 200.0, 1.0)
    assert outcome.timer == pytest.approx(199.0)


def test_recovery_ends_protest():
    outcome = advance_protest(30.0, 12.0, 1.0)
    assert outcome.state is ProtestState.STABLE
    assert outcome.timer is None
    assert outcome.ended


def test_expiry_loses_control():
    outcome = advance_protest(10.0, 0.5, 1.0)
    assert outcome.state is ProtestState.LOST_CONTROL
    assert outcome.timer is None


def test_non_positive_timer_is_not_a_protest():
    assert not is_protesting(0.0)
    assert not is_protesting(None)
    assert is_protesting(0.1)
