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
# Runtime values. Numbers are Quantity objects and strings are plain str;
# Void and Matrix are defined here.
#

from dataclasses import dataclass, field
from typing import List

from .quantity import Quantity


class Void:
    """The value of statements such as assignments and print calls."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "Void"

    __str__ = __repr__


VOID = Void()


@dataclass
class Matrix:
    """
    width x height grid of values stored row-major. A column vector has
    width 1.
    """
    width: int
    height: int
    values: List[object] = field(default_factory=list)

    def __post_init__(self):
        if len(self.values) != self.width * self.height:
            raise ValueError(
                f"A {self.width}x{self.height} matrix needs {self.width * self.height} values, "
                f"got {len(self.values)}."
            )

    @classmethod
    def column(cls, values):
        values = list(values)
        return cls(1, len(values), values)

    def cell(self, row, col):
        """0-based access."""
        return self.values[row * self.width + col]

    def __str__(self):
        rows = []
        for r in range(self.height):
            rows.append(", ".join(format_value(self.cell(r, c)) for c in range(self.width)))
        return "[" + "; ".join(rows) + "]"


def type_name(value):
    if isinstance(value, Quantity):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, Matrix):
        return "Matrix"
    if value is VOID:
        return "Void"
    return type(value).__name__


def format_value(value):
    return str(value)
