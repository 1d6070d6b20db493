"""Tests for the ranged root finders."""

import math

import pytest

from bondpricer.core.solver import BISECTION, BRENT, Bisection, Brent


@pytest.fixture(params=[Bisection(), Brent()], ids=["bisection", "brent"])
def solver(request):
    return request.param


class TestRangedRootFinders:
    """Common convergence contract."""

    def test_linear_converges(self, solver) -> None:
        root = solver.solve(lambda x: 2.0 * x - 3.0, 0.1, 10.0, 1e-6, 60)

        assert root is not None
        assert abs(2.0 * root - 3.0) <= 1e-6

    def test_decreasing_function(self, solver) -> None:
        """Price-like function falling with the multiplier: 1/y - 1."""
        root = solver.solve(lambda y: 1.0 / y - 1.0, 0.1, 10.0, 1e-4, 60)

        assert root == pytest.approx(1.0, abs=1e-3)

    def test_no_sign_change(self, solver) -> None:
        assert solver.solve(lambda x: x * x + 1.0, -1.0, 1.0, 1e-6, 50) is None

    def test_bracket_end_is_root(self, solver) -> None:
        assert solver.solve(lambda x: x - 1.0, 1.0, 5.0, 1e-9, 10) == 1.0

    def test_non_finite_value(self, solver) -> None:
        assert solver.solve(lambda x: float("nan"), 0.0, 1.0, 1e-6, 50) is None


class TestBisection:
    """Iteration budget of the bisection."""

    def test_budget_exhausted(self) -> None:
        """Two halvings cannot reach 1e-9 on a 10-wide bracket."""
        assert BISECTION.solve(lambda x: x - math.pi, 0.0, 10.0, 1e-9, 2) is None

    def test_nan_inside_bracket(self) -> None:
        def f(x: float) -> float:
            return float("nan") if 4.0 < x < 6.0 else x - 5.0

        assert BISECTION.solve(f, 0.0, 10.0, 1e-6, 50) is None

    def test_names(self) -> None:
        assert BISECTION.name == "bisection"
        assert BRENT.name == "brent"
