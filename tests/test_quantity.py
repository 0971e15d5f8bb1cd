# Copyright (c) 2025, Spaghetti Software Inc
#
# MIT License
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and 
# associated documentation files (the "Software"), to deal in the Software without restriction, 
# including without limitation the rights to use, copy, modify, merge, publish, distribute, 
# sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is 
# furnished to do so, subject to the following conditions:
# The above copyright notice and this permission notice shall be included in all copies or 
# substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING 
# BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND 
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, 
# DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, 
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

"""Tests for Quantity arithmetic, variance propagation and display."""

import math

import pytest

from unitscript.errors import EvalError, UnitError
from unitscript.quantity import Quantity, format_real, number_to_text
from unitscript.units import Unit

METRE = Unit((1, 0, 0, 0, 0, 0, 0))
SECOND = Unit((0, 0, 1, 0, 0, 0, 0))


class TestFormatting:
    @pytest.mark.parametrize(
        "value, text",
        [(5.0, "5"), (-3.0, "-3"), (0.25, "0.25"), (float("nan"), "NaN"), (float("inf"), "inf")],
    )
    def test_format_real(self, value, text):
        assert format_real(value) == text

    def test_certain_value_has_no_deviation(self):
        assert number_to_text(5.0, 0.0) == "5"

    def test_deviation_kept_to_two_digits(self):
        assert number_to_text(5.0, 0.5) == "(5.00 ± 0.50)"

    def test_engineering_exponent(self):
        assert number_to_text(1234.5, 2.3) == "(1.2345 ± 0.0023)×10³"


class TestArithmetic:
    def test_addition_needs_same_unit(self):
        total = Quantity(2, unit=METRE) + Quantity(3, unit=METRE)
        assert total == Quantity(5, unit=METRE)
        with pytest.raises(UnitError):
            Quantity(2, unit=METRE) + Quantity(3, unit=SECOND)

    def test_variances_add_on_subtraction(self):
        diff = Quantity(1, vre=0.01) - Quantity(2, vre=0.04)
        assert diff.re == -1.0
        assert diff.vre == pytest.approx(0.05)

    def test_multiplication_combines_units(self):
        product = Quantity(2, unit=METRE) * Quantity(3, unit=SECOND)
        assert product.re == 6.0
        assert product.unit == METRE * SECOND

    def test_multiplication_scales_variance(self):
        product = Quantity(3, vre=0.01) * Quantity(2)
        assert product.vre == pytest.approx(0.04)

    def test_complex_multiplication(self):
        product = Quantity(1, 2) * Quantity(3, 4)
        assert (product.re, product.im) == (-5.0, 10.0)

    def test_division(self):
        ratio = Quantity(6, unit=METRE) / Quantity(2, unit=SECOND)
        assert ratio.re == 3.0
        assert ratio.unit == METRE / SECOND

    def test_division_by_zero_follows_ieee(self):
        ratio = Quantity(1) / Quantity(0)
        assert ratio.re == math.inf
        assert ratio.im == 0.0
        assert ratio.is_certain()
        assert str(ratio) == "inf"

        assert (Quantity(1) / -Quantity(0)).re == -math.inf
        assert (Quantity(0, 3) / Quantity(0)).im == math.inf
        assert math.isnan((Quantity(0) / Quantity(0)).re)

    def test_division_by_zero_keeps_units(self):
        ratio = Quantity(-2, unit=METRE) / Quantity(0, unit=SECOND)
        assert ratio.re == -math.inf
        assert ratio.unit == METRE / SECOND

    def test_division_by_uncertain_zero(self):
        ratio = Quantity(1, vre=0.01) / Quantity(0)
        assert ratio.vre == math.inf
        assert ratio.vim == 0.0
        assert ratio.is_real()

    def test_division_by_underflowing_divisor(self):
        assert (Quantity(1) / Quantity(1e-200)).re == pytest.approx(1e200)


class TestPower:
    def test_real_power(self):
        assert (Quantity(2) ** Quantity(3)).re == 8.0

    def test_unit_raised_to_integer(self):
        area = Quantity(2, unit=METRE) ** Quantity(2)
        assert area.re == 4.0
        assert area.unit == METRE ** 2

    def test_unit_needs_integer_exponent(self):
        with pytest.raises(UnitError):
            Quantity(4, unit=METRE) ** Quantity(0.5)

    def test_exponent_must_be_dimensionless(self):
        with pytest.raises(UnitError, match="Exponent must be dimensionless"):
            Quantity(2) ** Quantity(1, unit=METRE)

    def test_negative_base_fractional_exponent_is_complex(self):
        root = Quantity(-1) ** Quantity(0.5)
        assert root.re == pytest.approx(0.0, abs=1e-12)
        assert root.im == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "base, exponent, expected",
        [(0.0, -1, math.inf), (0.0, -2, math.inf), (-0.0, -1, -math.inf), (-0.0, -2, math.inf)],
    )
    def test_zero_to_negative_power(self, base, exponent, expected):
        assert (Quantity(base) ** Quantity(exponent)).re == expected


class TestUncertainty:
    def test_plus_minus_sets_deviation(self):
        q = Quantity(3).plus_minus(Quantity(0.5))
        assert q.re == 3.0
        assert q.sigma().re == 0.5
        assert not q.is_certain()

    @pytest.mark.parametrize("deviation", [0.1, -2.5, 7.0])
    def test_sigma_is_absolute_deviation(self, deviation):
        assert Quantity(1).plus_minus(Quantity(deviation)).sigma().re == abs(deviation)

    def test_value_drops_variance(self):
        assert Quantity(3, vre=4).value().is_certain()

    def test_sigma2_squares_unit(self):
        assert Quantity(3, vre=4, unit=METRE).sigma2().unit == METRE ** 2


class TestVariancePropagation:
    """First-order propagation: sum of squared partial derivatives times input variances."""

    @pytest.mark.parametrize(
        "compute, vre, vim",
        [
            # d(a/c) = da/c - a dc/c², so σ² = 0.05² + 0.025²
            (lambda: Quantity(1, vre=0.01) / Quantity(2, vre=0.01), 0.05 ** 2 + 0.025 ** 2, 0.0),
            # d(1/z) = -dz/z² = dz/4 for z = 2i
            (lambda: Quantity(1) / Quantity(0, 2, vim=0.01), 0.0, 0.0625 * 0.01),
            # d(zw) = w dz with w = 3 + 4i
            (lambda: Quantity(1, 2, vre=0.01) * Quantity(3, 4), 9 * 0.01, 16 * 0.01),
            (lambda: Quantity(0.5, vre=0.01).sin(), math.cos(0.5) ** 2 * 0.01, 0.0),
            (lambda: Quantity(0.5, vre=0.01).cos(), math.sin(0.5) ** 2 * 0.01, 0.0),
            (lambda: Quantity(1, vre=0.04).exp(), math.exp(2) * 0.04, 0.0),
            # exp'(i) = cos 1 + i sin 1, mixed into both parts by Cauchy-Riemann
            (lambda: Quantity(0, 1, vim=0.01).exp(), math.sin(1) ** 2 * 0.01, math.cos(1) ** 2 * 0.01),
            (lambda: Quantity(3, 4, vre=0.01, vim=0.04).abs(), (9 * 0.01 + 16 * 0.04) / 25, 0.0),
            (lambda: Quantity(3, 4, vre=0.01, vim=0.04).arg(), (16 * 0.01 + 9 * 0.04) / 625, 0.0),
            # d(x³) = 3x² dx = 12 dx at x = 2
            (lambda: Quantity(2, vre=0.01) ** Quantity(3), 144 * 0.01, 0.0),
            # d(2^y) = 2^y ln 2 dy = 8 ln 2 dy at y = 3
            (lambda: Quantity(2) ** Quantity(3, vre=0.01), (8 * math.log(2)) ** 2 * 0.01, 0.0),
            (lambda: Quantity(5, vre=0.01).with_unit(METRE, 1000.0, 0.0), 0.01 * 1000.0 ** 2, 0.0),
        ],
        ids=["div", "div-complex", "mul-complex", "sin", "cos", "exp", "exp-complex",
             "abs", "arg", "pow-base", "pow-exponent", "unit-block"],
    )
    def test_matches_first_order_rule(self, compute, vre, vim):
        result = compute()
        assert result.vre == pytest.approx(vre)
        assert result.vim == pytest.approx(vim)

    def test_variances_never_cancel(self):
        q = Quantity(1, vre=0.01)
        assert (q - q).vre == pytest.approx(0.02)
        assert (-q).vre == 0.01


class TestUnitMismatch:
    @pytest.mark.parametrize(
        "operation",
        [
            lambda a, b: a + b,
            lambda a, b: a - b,
            lambda a, b: a.compare(b, "=="),
            lambda a, b: a.compare(b, "!="),
            lambda a, b: a.compare(b, ">"),
            lambda a, b: a.compare(b, ">="),
            lambda a, b: a.compare(b, "<"),
            lambda a, b: a.compare(b, "<="),
            lambda a, b: a.plus_minus(b),
            lambda a, b: a.max(b),
            lambda a, b: a.min(b),
        ],
        ids=["+", "-", "==", "!=", ">", ">=", "<", "<=", "pm", "max", "min"],
    )
    def test_rejected(self, operation):
        with pytest.raises(UnitError):
            operation(Quantity(5, unit=METRE), Quantity(3, unit=SECOND))

    @pytest.mark.parametrize(
        "operation, unit",
        [
            (lambda a, b: a * b, METRE * SECOND),
            (lambda a, b: a / b, METRE / SECOND),
        ],
        ids=["*", "/"],
    )
    def test_mul_div_always_compose(self, operation, unit):
        assert operation(Quantity(5, unit=METRE), Quantity(3, unit=SECOND)).unit == unit
        assert operation(Quantity(5, unit=METRE), Quantity(0, unit=SECOND)).unit == unit


class TestFunctions:
    def test_sin_requires_unitless(self):
        assert Quantity(0).sin().re == 0.0
        with pytest.raises(EvalError):
            Quantity(1, unit=METRE).sin()

    def test_exp_of_i_pi(self):
        q = Quantity(0, math.pi).exp()
        assert q.re == pytest.approx(-1.0)
        assert q.im == pytest.approx(0.0, abs=1e-12)

    def test_abs_and_arg(self):
        assert Quantity(3, 4).abs().re == 5.0
        assert Quantity(0, 1).arg().re == pytest.approx(math.pi / 2)

    def test_comparison_requires_real(self):
        assert Quantity(5, unit=METRE).compare(Quantity(3, unit=METRE), ">").re == 1.0
        assert Quantity(1, 1).compare(Quantity(1, 1), "==").re == 1.0
        with pytest.raises(EvalError):
            Quantity(0, 3).compare(Quantity(1), ">")

    def test_max_min(self):
        a, b = Quantity(2, unit=METRE), Quantity(3, unit=METRE)
        assert a.max(b) == b
        assert a.min(b) == a


class TestDisplay:
    def test_unit_suffix(self):
        assert str(Quantity(5, unit=Unit((0, 1, 0, 0, 0, 0, 0)))) == "5kg"

    def test_complex(self):
        assert str(Quantity(1, 2)) == "1 + 2i"
        assert str(Quantity(1, -2)) == "1 - 2i"
        assert str(Quantity(1, 2, unit=METRE)) == "(1 + 2i)m"

    def test_to_text_scales_to_requested_unit(self):
        assert Quantity(1500, unit=METRE).to_text("km") == "1.5km"

    def test_to_text_rejects_other_dimension(self):
        with pytest.raises(UnitError):
            Quantity(1500, unit=METRE).to_text("s")

    def test_celsius_literal(self):
        assert Quantity.from_value_decorator(20, "°C").re == pytest.approx(293.15)
        assert Quantity.from_value_decorator(3, "i") == Quantity(0, 3)
