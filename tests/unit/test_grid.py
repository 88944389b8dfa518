"""
Unit tests for the grid state machine.

Verifies trigger placement, boundary verdicts and one-sided recentering.
"""

import unittest

import pytest
from hypothesis import given
from hypothesis import strategies as st

from dex_grid.grid import GridPhase, GridState, GridStateMachine, Verdict


def active_grid(price=100.0, percent=5.0, fee=0.5, unit=10**17):
    machine = GridStateMachine(percent, fee)
    state = GridState()
    machine.initialize(state, price, unit)
    return machine, state


class TestInitialize(unittest.TestCase):
    def test_triggers_around_start_price(self):
        machine, state = active_grid()

        self.assertEqual(state.center_price, 100.0)
        self.assertEqual(state.step, 5.0)
        self.assertEqual(state.lower_trigger, 94.5)
        self.assertEqual(state.upper_trigger, 105.5)
        self.assertEqual(state.grid_unit_amount, 10**17)
        self.assertEqual(state.phase, GridPhase.ACTIVE)

    def test_new_state_is_uninitialized(self):
        self.assertEqual(GridState().phase, GridPhase.UNINITIALIZED)

    def test_initialize_runs_once(self):
        machine, state = active_grid()
        with self.assertRaises(RuntimeError):
            machine.initialize(state, 120.0, 1)

    def test_rejects_non_positive_price(self):
        machine = GridStateMachine(5.0, 0.5)
        with self.assertRaises(ValueError):
            machine.initialize(GridState(), 0.0, 1)

    def test_rejects_bad_parameters(self):
        with self.assertRaises(ValueError):
            GridStateMachine(0.0)
        with self.assertRaises(ValueError):
            GridStateMachine(5.0, -1.0)

    def test_evaluate_requires_initialization(self):
        machine = GridStateMachine(5.0)
        with self.assertRaises(RuntimeError):
            machine.evaluate(GridState(), 100.0)


class TestEvaluate(unittest.TestCase):
    def test_hold_between_triggers(self):
        machine, state = active_grid()
        self.assertEqual(machine.evaluate(state, 100.0), Verdict.HOLD)

    def test_lower_boundary_buys(self):
        machine, state = active_grid()
        self.assertEqual(machine.evaluate(state, 94.5), Verdict.BUY)

    def test_upper_boundary_sells(self):
        machine, state = active_grid()
        self.assertEqual(machine.evaluate(state, 105.5), Verdict.SELL)

    def test_hold_is_idempotent(self):
        machine, state = active_grid()
        before = GridState(**vars(state))

        self.assertEqual(machine.on_price(state, 101.0), Verdict.HOLD)
        self.assertEqual(machine.on_price(state, 101.0), Verdict.HOLD)
        self.assertEqual(state, before)


class TestRecenter(unittest.TestCase):
    def test_buy_moves_only_lower(self):
        machine, state = active_grid()

        verdict = machine.on_price(state, 90.0)

        self.assertEqual(verdict, Verdict.BUY)
        self.assertEqual(state.center_price, 90.0)
        self.assertEqual(state.lower_trigger, 84.5)
        self.assertEqual(state.upper_trigger, 105.5)

    def test_sell_moves_only_upper(self):
        machine, state = active_grid()

        verdict = machine.on_price(state, 110.0)

        self.assertEqual(verdict, Verdict.SELL)
        self.assertEqual(state.center_price, 110.0)
        self.assertEqual(state.upper_trigger, 115.5)
        self.assertEqual(state.lower_trigger, 94.5)

    def test_step_fixed_after_initialization(self):
        machine, state = active_grid()
        machine.on_price(state, 50.0)
        self.assertEqual(state.step, 5.0)
        self.assertEqual(state.lower_trigger, 44.5)

    def test_evaluate_does_not_mutate(self):
        machine, state = active_grid()
        machine.evaluate(state, 90.0)
        self.assertEqual(state.lower_trigger, 94.5)
        self.assertEqual(state.center_price, 100.0)


@given(
    start=st.floats(min_value=1.0, max_value=1e6),
    percent=st.floats(min_value=0.1, max_value=50.0),
    fee=st.floats(min_value=0.0, max_value=10.0),
    prices=st.lists(st.floats(min_value=1.0, max_value=1e6), max_size=30),
)
def test_center_stays_between_triggers(start, percent, fee, prices):
    """lower < center < upper holds after every sample."""
    machine, state = active_grid(start, percent, fee)
    assert state.lower_trigger < state.center_price < state.upper_trigger

    for price in prices:
        machine.on_price(state, price)
        assert state.lower_trigger < state.center_price < state.upper_trigger


@pytest.mark.parametrize(
    "price,expected",
    [(94.5, Verdict.BUY), (94.6, Verdict.HOLD), (105.4, Verdict.HOLD), (105.5, Verdict.SELL)],
)
def test_boundaries(price, expected):
    machine, state = active_grid()
    assert machine.evaluate(state, price) is expected
