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
#
# Complex quantities with independent Gaussian variance on the real and
# imaginary parts, tagged with a Unit. Every operation propagates variance
# with the first-order rule: each output partial derivative squared times
# the matching input variance, summed over the inputs.
#

import cmath
import math

from .errors import EvalError, UnitError
from .units import Unit, parse_single_unit, parse_unit_block, superscript


def squared(x):
    return x * x


def _is_integer(x):
    return math.isfinite(x) and float(x).is_integer()


def ieee_divide(x, y):
    """
    x / y with IEEE semantics for a zero divisor: ±inf, or NaN for 0/0.
    """
    if y != 0.0:
        return x / y
    if x == 0.0 or math.isnan(x):
        return math.nan
    return math.copysign(math.inf, x) * math.copysign(1.0, y)

##############################################
# 1. NUMBER FORMATTING
##############################################

def format_real(x):
    """
    Shortest text for a float: 5.0 -> '5', 0.25 -> '0.25'.
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x == int(x) and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def number_to_text(value, sigma):
    """
    Render a value with its standard deviation on a shared order of
    magnitude (a multiple of three), the deviation kept to two significant
    digits:

      1234.5 ± 2.3  -> '(1.2345 ± 0.0023)×10³'
      5 ± 0.5       -> '(5.00 ± 0.50)'
      5 ± 0         -> '5'
    """
    if sigma == 0.0:
        return format_real(value)
    if not (math.isfinite(value) and math.isfinite(sigma)):
        return f"{format_real(value)} ± {format_real(sigma)}"

    reference = max(abs(value), sigma)
    n = 3 * (math.floor(math.log10(reference)) // 3)
    digits = max(0, n - math.floor(math.log10(sigma)) + 1)
    scale = 10.0 ** n
    text = f"({value / scale:.{digits}f} ± {sigma / scale:.{digits}f})"
    if n != 0:
        text += f"×10{superscript(n)}"
    return text

##############################################
# 2. QUANTITY
##############################################

class Quantity:
    __slots__ = ("re", "im", "vre", "vim", "unit")

    def __init__(self, re=0.0, im=0.0, vre=0.0, vim=0.0, unit=None):
        self.re = float(re)
        self.im = float(im)
        self.vre = float(vre)
        self.vim = float(vim)
        self.unit = unit if unit is not None else Unit.unitless()

    @classmethod
    def from_value_decorator(cls, value, decorator):
        """
        Build the quantity for a numeric literal: 5 -> '', 3i -> 'i',
        5kg -> 'kg', 20°C -> '°C'.
        """
        if decorator == "":
            return cls(value)
        if decorator in ("i", "j"):
            return cls(0.0, value)
        unit, factor, shift = parse_single_unit(decorator)
        return cls((value - shift) * factor, unit=unit)

    @classmethod
    def boolean(cls, flag):
        return cls(1.0 if flag else 0.0)

    def copy(self, **changes):
        fields = {name: getattr(self, name) for name in self.__slots__}
        fields.update(changes)
        return Quantity(**fields)

    def is_real(self):
        return self.im == 0.0 and self.vim == 0.0

    def is_certain(self):
        return self.vre == 0.0 and self.vim == 0.0

    def is_zero(self):
        return self.re == 0.0 and self.im == 0.0

    def is_exactly(self, number):
        return (
            self.re == number and self.im == 0.0 and self.is_certain()
            and self.unit.is_unitless()
        )

    def __eq__(self, other):
        if not isinstance(other, Quantity):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    __hash__ = None

    def __repr__(self):
        return (
            f"Quantity(re={self.re!r}, im={self.im!r}, vre={self.vre!r}, "
            f"vim={self.vim!r}, unit={self.unit!r})"
        )

    def _require_same_unit(self, other, op):
        if self.unit != other.unit:
            raise UnitError(
                f"The '{op}' operator needs operands with the same unit, "
                f"found '{self.unit!r}' and '{other.unit!r}'."
            )

    def _require_real(self, other, op):
        if not (self.is_real() and other.is_real()):
            raise EvalError(f"The '{op}' operator can only compare real quantities.")

    def _require_unitless(self, name):
        if not self.unit.is_unitless():
            raise EvalError(
                f"The '{name}' function takes a unitless quantity but '{self.unit!r}' was found."
            )

    def _holomorphic(self, value, derivative, unit):
        """
        Result of an analytic function f at this quantity: value = f(z) and
        derivative = f'(z). By Cauchy-Riemann, d(re)/da = d(im)/db = Re f'
        and d(im)/da = -d(re)/db = Im f'.
        """
        dr = derivative.real
        di = derivative.imag
        return Quantity(
            value.real,
            value.imag,
            squared(dr) * self.vre + squared(di) * self.vim,
            squared(di) * self.vre + squared(dr) * self.vim,
            unit,
        )

    # arithmetic

    def __pos__(self):
        return self.copy()

    def __neg__(self):
        return self.copy(re=-self.re, im=-self.im)

    def __add__(self, other):
        self._require_same_unit(other, "+")
        return Quantity(
            self.re + other.re,
            self.im + other.im,
            self.vre + other.vre,
            self.vim + other.vim,
            self.unit,
        )

    def __sub__(self, other):
        self._require_same_unit(other, "-")
        return Quantity(
            self.re - other.re,
            self.im - other.im,
            self.vre + other.vre,
            self.vim + other.vim,
            self.unit,
        )

    def __mul__(self, other):
        a, b, va, vb = self.re, self.im, self.vre, self.vim
        c, d, vc, vd = other.re, other.im, other.vre, other.vim
        # (a + bi)(c + di) = (ac - bd) + (ad + bc)i
        return Quantity(
            a * c - b * d,
            a * d + b * c,
            c * c * va + d * d * vb + a * a * vc + b * b * vd,
            d * d * va + c * c * vb + b * b * vc + a * a * vd,
            self.unit * other.unit,
        )

    def __truediv__(self, other):
        a, b, va, vb = self.re, self.im, self.vre, self.vim
        c, d, vc, vd = other.re, other.im, other.vre, other.vim
        denom = c * c + d * d
        if denom == 0.0:
            if c == 0.0 and d == 0.0:
                return self._divided_by_zero(other)
            # both parts underflow when squared
            scale = Quantity(2.0 ** 600)
            return (self * scale) / (other * scale)
        denom2 = denom * denom
        denom4 = denom2 * denom2
        # (a + bi)/(c + di) = { (ac + bd) + (bc - ad)i } / (c^2 + d^2)
        re = a * c + b * d
        im = b * c - a * d
        return Quantity(
            re / denom,
            im / denom,
            c * c * va / denom2
            + d * d * vb / denom2
            + squared(a * denom - 2.0 * c * re) * vc / denom4
            + squared(b * denom - 2.0 * d * re) * vd / denom4,
            d * d * va / denom2
            + c * c * vb / denom2
            + squared(b * denom - 2.0 * c * im) * vc / denom4
            + squared(a * denom + 2.0 * d * im) * vd / denom4,
            self.unit / other.unit,
        )

    def _divided_by_zero(self, other):
        """
        Each part divided by a signed zero: 1/0 is inf, -1/0 is -inf and
        0/0 is NaN. A zero imaginary part stays zero so real stays real.
        The variance is infinite once any operand is uncertain.
        """
        zero = other.re
        if self.is_zero():
            re, im = math.nan, 0.0
        else:
            re = ieee_divide(self.re, zero) if self.re != 0.0 else 0.0
            im = ieee_divide(self.im, zero) if self.im != 0.0 else 0.0
        uncertain = not (self.is_certain() and other.is_certain())
        return Quantity(
            re,
            im,
            math.inf if uncertain else 0.0,
            math.inf if uncertain and im != 0.0 else 0.0,
            self.unit / other.unit,
        )

    def __pow__(self, other):
        if not other.unit.is_unitless():
            raise UnitError("Exponent must be dimensionless.")
        if not other.is_real():
            raise EvalError("The '^' operator takes a real exponent.")
        c = other.re
        unit = self.unit
        if not unit.is_unitless():
            if not _is_integer(c):
                raise UnitError(
                    f"A quantity with unit '{unit!r}' can only be raised to an integer power, "
                    f"found {format_real(c)}."
                )
            unit = unit ** int(c)

        z = complex(self.re, self.im)
        w = complex(c, 0.0)
        try:
            if z == 0 and c < 0.0:
                # only -0 raised to an odd negative integer gives -inf
                odd = _is_integer(c) and int(c) % 2 == 1
                value = complex(math.copysign(math.inf, self.re) if odd else math.inf, 0.0)
            elif self.im == 0.0 and (self.re > 0.0 or _is_integer(c)):
                value = complex(math.pow(self.re, c), 0.0)
            else:
                value = z ** w
        except OverflowError:
            raise EvalError("Numeric overflow in '^'.") from None

        if z == 0:
            # propagation is skipped where the derivatives are singular
            dz = w if c == 1.0 else 0j
            dw = 0j
        else:
            dz = w * z ** (w - 1)
            dw = value * cmath.log(z)

        base = self._holomorphic(value, dz, unit)
        exponent = other._holomorphic(value, dw, unit)
        base.vre += exponent.vre
        base.vim += exponent.vim
        return base

    # comparison and uncertainty

    def compare(self, other, op):
        self._require_same_unit(other, op)
        if op == "==":
            return Quantity.boolean(self.re == other.re and self.im == other.im)
        if op == "!=":
            return Quantity.boolean(self.re != other.re or self.im != other.im)
        self._require_real(other, op)
        if op == ">":
            return Quantity.boolean(self.re > other.re)
        if op == ">=":
            return Quantity.boolean(self.re >= other.re)
        if op == "<":
            return Quantity.boolean(self.re < other.re)
        if op == "<=":
            return Quantity.boolean(self.re <= other.re)
        raise EvalError(f"Unknown comparison operator '{op}'")

    def plus_minus(self, other):
        """
        x pm y: keep the value of x, use y as its standard deviation.
        """
        self._require_same_unit(other, "pm")
        return self.copy(vre=squared(other.re), vim=squared(other.im))

    def with_unit(self, unit, factor, shift):
        if not self.unit.is_unitless():
            raise UnitError(
                f"A unit block can only be applied to a unitless quantity, "
                f"found '{self.unit!r}'."
            )
        return Quantity(
            (self.re - shift) * factor,
            self.im * factor,
            self.vre * squared(factor),
            self.vim * squared(factor),
            unit,
        )

    # functions

    def sin(self):
        self._require_unitless("sin")
        # sin(a + bi) = cosh(b)sin(a) + i sinh(b)cos(a)
        z = complex(self.re, self.im)
        return self._holomorphic(cmath.sin(z), cmath.cos(z), Unit.unitless())

    def cos(self):
        self._require_unitless("cos")
        # cos(a + bi) = cosh(b)cos(a) - i sinh(b)sin(a)
        z = complex(self.re, self.im)
        return self._holomorphic(cmath.cos(z), -cmath.sin(z), Unit.unitless())

    def exp(self):
        self._require_unitless("exp")
        # exp(a + bi) = e^a (cos(b) + i sin(b))
        try:
            value = cmath.exp(complex(self.re, self.im))
        except OverflowError:
            raise EvalError("Numeric overflow in 'exp'.") from None
        return self._holomorphic(value, value, Unit.unitless())

    def times_i(self):
        return Quantity(-self.im, self.re, self.vim, self.vre, self.unit)

    def real(self):
        return Quantity(self.re, 0.0, self.vre, 0.0, self.unit)

    def imag(self):
        return Quantity(self.im, 0.0, self.vim, 0.0, self.unit)

    def sigma(self):
        return Quantity(math.sqrt(self.vre), math.sqrt(self.vim), unit=self.unit)

    def sigma2(self):
        return Quantity(self.vre, self.vim, unit=self.unit * self.unit)

    def value(self):
        return self.copy(vre=0.0, vim=0.0)

    def abs(self):
        a, b = self.re, self.im
        r = math.hypot(a, b)
        if r == 0.0:
            return Quantity(0.0, unit=self.unit)
        return Quantity(r, 0.0, (squared(a) * self.vre + squared(b) * self.vim) / squared(r), 0.0, self.unit)

    def arg(self):
        a, b = self.re, self.im
        r2 = a * a + b * b
        variance = 0.0
        if r2 != 0.0:
            variance = (squared(b) * self.vre + squared(a) * self.vim) / squared(r2)
        return Quantity(math.atan2(b, a), 0.0, variance, 0.0)

    def max(self, other):
        self._require_same_unit(other, "max")
        self._require_real(other, "max")
        return self.copy() if self.re >= other.re else other.copy()

    def min(self, other):
        self._require_same_unit(other, "min")
        self._require_real(other, "min")
        return self.copy() if self.re <= other.re else other.copy()

    # display

    def __str__(self):
        return self._text(str(self.unit))

    def _text(self, unit_text):
        if self.is_real():
            return number_to_text(self.re, math.sqrt(self.vre)) + unit_text
        if self.is_certain():
            sign = "-" if self.im < 0 else "+"
            text = f"{format_real(self.re)} {sign} {format_real(abs(self.im))}i"
        else:
            text = (
                f"{number_to_text(self.re, math.sqrt(self.vre))} + "
                f"i{number_to_text(self.im, math.sqrt(self.vim))}"
            )
        if unit_text:
            return f"({text}){unit_text}"
        return text

    def to_text(self, unit_text):
        """
        Render in a requested display unit, e.g. to_text('km') -> '1.5km'.
        """
        unit, factor, shift = parse_unit_block(unit_text)
        if unit != self.unit:
            raise UnitError(
                f"Cannot display a quantity with unit '{self.unit!r}' in '{unit_text}'."
            )
        scaled = Quantity(
            self.re / factor + shift,
            self.im / factor,
            self.vre / squared(factor),
            self.vim / squared(factor),
        )
        return scaled._text(unit_text)
