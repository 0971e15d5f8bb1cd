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
# SI units as exponent vectors over the seven base dimensions, the unit
# string parser used by number decorators and |...| unit blocks, and the
# greedy search that renders a raw vector with derived unit symbols.
#
# Example:
#   >>> parse_unit_block("km/s")
#   (Unit(m s-1), 1000.0, 0.0)
#   >>> str(Unit((1, 1, -2, 0, 0, 0, 0)))
#   'N'
#

import math

import regex

from .errors import UnitError

##############################################
# 1. DIMENSIONS
##############################################

# Vector order: [L, M, T, I, Θ, N, J]
#  L=length (m), M=mass (kg), T=time (s),
#  I=current (A), Θ=temperature (K), N=amount (mol), J=luminous intensity (cd)

INDEX_TO_BASE = ["m", "kg", "s", "A", "K", "mol", "cd"]

ZERO_DIM = (0, 0, 0, 0, 0, 0, 0)


def zero_dim():
    return ZERO_DIM

def dim_add(d1, d2):
    return tuple(a + b for (a, b) in zip(d1, d2))

def dim_sub(d1, d2):
    return tuple(a - b for (a, b) in zip(d1, d2))

def dim_mul(d, n):
    return tuple(x * n for x in d)

def dim_eq(d1, d2):
    return all(a == b for a, b in zip(d1, d2))

def is_dimless(d):
    return all(x == 0 for x in d)

def taxi_norm(d):
    return sum(abs(x) for x in d)


class Unit:
    """
    Exponent vector over the SI base dimensions.

    Two units are equal only when every exponent matches; the unitless unit
    is the all-zero vector. Multiplication and division never fail.
    """

    __slots__ = ("dims",)

    def __init__(self, dims=ZERO_DIM):
        dims = tuple(int(x) for x in dims)
        if len(dims) != len(INDEX_TO_BASE):
            raise UnitError(f"A unit needs {len(INDEX_TO_BASE)} exponents, got {len(dims)}.")
        self.dims = dims

    @classmethod
    def unitless(cls):
        return cls(ZERO_DIM)

    def is_unitless(self):
        return is_dimless(self.dims)

    def __eq__(self, other):
        if not isinstance(other, Unit):
            return NotImplemented
        return dim_eq(self.dims, other.dims)

    def __hash__(self):
        return hash(self.dims)

    def __mul__(self, other):
        return Unit(dim_add(self.dims, other.dims))

    def __truediv__(self, other):
        return Unit(dim_sub(self.dims, other.dims))

    def __pow__(self, exponent):
        return Unit(dim_mul(self.dims, exponent))

    def __str__(self):
        return unit_to_text(self)

    def __repr__(self):
        parts = [
            f"{sym}{exp if exp != 1 else ''}"
            for sym, exp in zip(INDEX_TO_BASE, self.dims) if exp != 0
        ]
        return f"Unit({' '.join(parts) or '-'})"

##############################################
# 2. BASE/DERIVED UNIT TABLES
##############################################

# symbol -> (dimension, factor to SI, additive shift)
# A shifted unit u converts to SI as (value - shift) * factor.

BASE_DIMENSIONS = {
    "m":   ((1, 0, 0, 0, 0, 0, 0), 1.0),
    "g":   ((0, 1, 0, 0, 0, 0, 0), 1e-3),
    "s":   ((0, 0, 1, 0, 0, 0, 0), 1.0),
    "A":   ((0, 0, 0, 1, 0, 0, 0), 1.0),
    "K":   ((0, 0, 0, 0, 1, 0, 0), 1.0),
    "mol": ((0, 0, 0, 0, 0, 1, 0), 1.0),
    "cd":  ((0, 0, 0, 0, 0, 0, 1), 1.0),
}

DERIVED_DIMENSIONS = {
    "Hz":    ((0, 0, -1, 0, 0, 0, 0), 1.0),
    "N":     ((1, 1, -2, 0, 0, 0, 0), 1.0),
    "Pa":    ((-1, 1, -2, 0, 0, 0, 0), 1.0),
    "J":     ((2, 1, -2, 0, 0, 0, 0), 1.0),
    "W":     ((2, 1, -3, 0, 0, 0, 0), 1.0),
    "C":     ((0, 0, 1, 1, 0, 0, 0), 1.0),
    "V":     ((2, 1, -3, -1, 0, 0, 0), 1.0),
    "F":     ((-2, -1, 4, 2, 0, 0, 0), 1.0),
    "Ω":     ((2, 1, -3, -2, 0, 0, 0), 1.0),
    "ohm":   ((2, 1, -3, -2, 0, 0, 0), 1.0),
    "S":     ((-2, -1, 3, 2, 0, 0, 0), 1.0),
    "Wb":    ((2, 1, -2, -1, 0, 0, 0), 1.0),
    "Tesla": ((0, 1, -2, -1, 0, 0, 0), 1.0),
    "H":     ((2, 1, -2, -2, 0, 0, 0), 1.0),
    "lm":    ((0, 0, 0, 0, 0, 0, 1), 1.0),
    "lx":    ((-2, 0, 0, 0, 0, 0, 1), 1.0),
    "L":     ((3, 0, 0, 0, 0, 0, 0), 1e-3),
    "eV":    ((2, 1, -2, 0, 0, 0, 0), 1.602176634e-19),
    "Bq":    ((0, 0, -1, 0, 0, 0, 0), 1.0),
    "Gy":    ((2, 0, -2, 0, 0, 0, 0), 1.0),
    "Sv":    ((2, 0, -2, 0, 0, 0, 0), 1.0),
    "kat":   ((0, 0, -1, 0, 0, 1, 0), 1.0),
}

# Dimensionless scales. These are matched whole before any prefix split,
# so "pi" is never pico-i and "deg" is never deci-eg.
SCALES = {
    "rad": 1.0,
    "sr":  1.0,
    "%":   1e-2,
    "pi":  math.pi,
    "π":   math.pi,
    "°":   math.pi / 180.0,
    "deg": math.pi / 180.0,
}

CELSIUS = "°C"
CELSIUS_SHIFT = -273.15

ALL_UNIT_DIMENSIONS = {}
ALL_UNIT_DIMENSIONS.update(BASE_DIMENSIONS)
ALL_UNIT_DIMENSIONS.update(DERIVED_DIMENSIONS)

# Two-letter prefixes first so "da" wins over "d" and "mu"/"mi" over "m".
PREFIXES = {
    "da": 1e1,
    "mu": 1e-6,
    "mi": 1e-6,
    "Q": 1e30, "R": 1e27, "Y": 1e24, "Z": 1e21, "E": 1e18, "P": 1e15,
    "T": 1e12, "G": 1e9, "M": 1e6, "k": 1e3, "h": 1e2, "d": 1e-1,
    "c": 1e-2, "m": 1e-3, "µ": 1e-6, "μ": 1e-6, "n": 1e-9, "p": 1e-12,
    "f": 1e-15, "a": 1e-18, "z": 1e-21, "y": 1e-24, "r": 1e-27, "q": 1e-30,
}

# Characters that may appear in the symbol part of a unit term.
UNIT_SYMBOL_EXTRA = "°%µμΩπ"


def graphemes(text):
    return regex.findall(r"\X", text)


def is_unit_symbol_char(c):
    return (c.isascii() and c.isalpha()) or c in UNIT_SYMBOL_EXTRA

##############################################
# 3. PARSING
##############################################

def _lookup_symbol(symbol, text):
    """
    Resolve a unit symbol without exponent to (dimension, factor, shift).
    Whole symbols win over prefixed readings: "m", "mol", "cd", "Pa", "°C".
    """
    if symbol == CELSIUS:
        return BASE_DIMENSIONS["K"][0], 1.0, CELSIUS_SHIFT
    if symbol in SCALES:
        return ZERO_DIM, SCALES[symbol], 0.0
    if symbol in ALL_UNIT_DIMENSIONS:
        dim, factor = ALL_UNIT_DIMENSIONS[symbol]
        return dim, factor, 0.0

    for prefix, scale in PREFIXES.items():
        if not symbol.startswith(prefix):
            continue
        rest = symbol[len(prefix):]
        if rest in ALL_UNIT_DIMENSIONS:
            dim, factor = ALL_UNIT_DIMENSIONS[rest]
            return dim, scale * factor, 0.0
        if rest == CELSIUS:
            raise UnitError(f"The shifted unit '{CELSIUS}' cannot take a prefix in '{text}'.")

    raise UnitError(f"Unknown unit expression '{text}' due to unknown unit '{symbol}'.")


def parse_single_unit(text):
    """
    Parse one unit term, e.g. "km", "s-2", "µA", "°C".

    Returns (unit, factor, shift) where a value v expressed in the term is
    (v - shift) * factor in SI base units.
    """
    chars = graphemes(text.strip())
    sepid = 0
    while sepid < len(chars) and is_unit_symbol_char(chars[sepid]):
        sepid += 1

    symbol = "".join(chars[:sepid])
    exponent_str = "".join(chars[sepid:])
    if not symbol:
        raise UnitError(f"Unknown unit expression '{text}': no unit symbol found.")

    dim, factor, shift = _lookup_symbol(symbol, text)

    exponent = 1
    if exponent_str:
        try:
            exponent = int(exponent_str)
        except ValueError:
            raise UnitError(
                f"Unknown unit expression '{text}' due to unknown exponent '{exponent_str}'."
            ) from None
        if shift != 0.0 and exponent != 1:
            raise UnitError(f"The shifted unit '{symbol}' cannot be raised to a power in '{text}'.")

    return Unit(dim_mul(dim, exponent)), factor ** exponent, shift


def parse_unit_block(text):
    """
    Parse the inside of a unit block: "kg.m/s2", "m/s", "°C", "1/s".
    One optional '/' separates the product part from the division part,
    terms on either side are joined by '.'.
    """
    parts = text.split("/")
    if len(parts) > 2:
        raise UnitError(f"A unit block takes at most one '/', found in '{text}'.")

    terms = [(t.strip(), 1) for t in parts[0].split(".")]
    if len(parts) == 2:
        terms += [(t.strip(), -1) for t in parts[1].split(".")]
    terms = [(t, sign) for (t, sign) in terms if t and t != "1"]
    if not terms:
        raise UnitError(f"Empty unit block '|{text}|'.")

    unit = Unit.unitless()
    factor = 1.0
    shift = 0.0
    for term, sign in terms:
        u, f, s = parse_single_unit(term)
        if s != 0.0:
            if len(terms) != 1 or sign < 0:
                raise UnitError(
                    f"The shifted unit '{term}' cannot be combined with other units in '|{text}|'."
                )
            shift = s
        if sign > 0:
            unit = unit * u
            factor *= f
        else:
            unit = unit / u
            factor /= f
    return unit, factor, shift

##############################################
# 4. PRINTING: COMPOSED UNITS
##############################################

# Greedy search order. Changing it changes rendered output. Every symbol
# parses back through parse_single_unit, so tesla is "Tesla" ("T" is tera).
DISPLAY_CATALOGUE = [
    ("kg",  (0, 1, 0, 0, 0, 0, 0)),
    ("m",   (1, 0, 0, 0, 0, 0, 0)),
    ("s",   (0, 0, 1, 0, 0, 0, 0)),
    ("A",   (0, 0, 0, 1, 0, 0, 0)),
    ("K",   (0, 0, 0, 0, 1, 0, 0)),
    ("mol", (0, 0, 0, 0, 0, 1, 0)),
    ("cd",  (0, 0, 0, 0, 0, 0, 1)),
    ("N",   (1, 1, -2, 0, 0, 0, 0)),
    ("Pa",  (-1, 1, -2, 0, 0, 0, 0)),
    ("J",   (2, 1, -2, 0, 0, 0, 0)),
    ("W",   (2, 1, -3, 0, 0, 0, 0)),
    ("C",   (0, 0, 1, 1, 0, 0, 0)),
    ("V",   (2, 1, -3, -1, 0, 0, 0)),
    ("F",   (-2, -1, 4, 2, 0, 0, 0)),
    ("Ω",   (2, 1, -3, -2, 0, 0, 0)),
    ("S",   (-2, -1, 3, 2, 0, 0, 0)),
    ("Wb",  (2, 1, -2, -1, 0, 0, 0)),
    ("Tesla", (0, 1, -2, -1, 0, 0, 0)),
    ("H",   (2, 1, -2, -2, 0, 0, 0)),
    ("lx",  (-2, 0, 0, 0, 0, 0, 1)),
]

SUPERSCRIPTS = str.maketrans("0123456789-", "⁰¹²³⁴⁵⁶⁷⁸⁹⁻")


def superscript(n):
    return str(n).translate(SUPERSCRIPTS)


def to_composed_unit(unit):
    """
    Greedily decompose a unit into catalogue symbols.

    At each step every catalogue entry is tried multiplied and divided into
    the remainder; the one that lowers the remainder's taxi norm the most is
    taken, ties going to the earliest entry. Returns [(symbol, exponent)]
    in the order symbols were first chosen.
    """
    remainder = unit.dims
    exponents = {}
    norm = taxi_norm(remainder)
    while norm > 0:
        best = None
        best_norm = norm
        for symbol, dim in DISPLAY_CATALOGUE:
            for sign in (1, -1):
                candidate = dim_sub(remainder, dim_mul(dim, sign))
                candidate_norm = taxi_norm(candidate)
                if candidate_norm < best_norm:
                    best = (symbol, dim, sign)
                    best_norm = candidate_norm
        if best is None:
            raise UnitError(f"Unable to decompose {unit!r}.")
        symbol, dim, sign = best
        exponents[symbol] = exponents.get(symbol, 0) + sign
        remainder = dim_sub(remainder, dim_mul(dim, sign))
        norm = best_norm
    return [(symbol, exp) for symbol, exp in exponents.items() if exp != 0]


def unit_to_text(unit):
    """
    Example: N -> 'N', m/s -> '|m.s⁻¹|', unitless -> ''
    """
    terms = to_composed_unit(unit)
    text = ".".join(
        symbol if exp == 1 else f"{symbol}{superscript(exp)}" for symbol, exp in terms
    )
    if len(terms) > 1:
        return f"|{text}|"
    return text
