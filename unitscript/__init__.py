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

"""
unitscript: a small scientific expression language with SI units,
uncertainty propagation, complex numbers and matrices.
"""

from .config import Settings
from .errors import (
    AssertionFailed,
    EvalError,
    IterationLimitExceeded,
    LexError,
    ParseError,
    UndefinedVariable,
    UnitError,
    UnitScriptError,
)
from .evaluator import Evaluator, evaluate
from .interpreter import run
from .lexer import Token, TokenKind, lex, tokenize
from .parser import Node, Tree, parse
from .quantity import Quantity
from .units import Unit
from .values import VOID, Matrix

__version__ = "1.0.0"
