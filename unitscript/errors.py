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
Error taxonomy for every stage of the interpreter.

All errors derive from ValueError so callers of the old calculator API,
which reported every failure as a ValueError, keep working.
"""


class UnitScriptError(ValueError):
    pass


class LexError(UnitScriptError):
    """Unrecognized character or unterminated |...| / "..." block."""

    def __init__(self, position, char, message=None):
        self.position = position
        self.char = char
        if message is None:
            message = f"Unexpected character '{char}' at index {position}"
        super().__init__(message)


class ParseError(UnitScriptError):
    pass


class EvalError(UnitScriptError):
    pass


class UnitError(UnitScriptError):
    pass


class UndefinedVariable(EvalError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Undefined variable '{name}'")


class AssertionFailed(EvalError):
    pass


class IterationLimitExceeded(EvalError):
    def __init__(self, loop, limit):
        self.loop = loop
        self.limit = limit
        super().__init__(f"The '{loop}' loop exceeded the limit of {limit} iterations.")
