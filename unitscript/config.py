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

import os
from dataclasses import dataclass
from typing import Optional

ENV_MAX_ITERATIONS = "UNITSCRIPT_MAX_ITERATIONS"


@dataclass
class Settings:
    """
    Interpreter and CLI options.

    max_iterations caps each while/for loop; None leaves loops unbounded,
    so a program whose condition never turns zero runs forever.
    """
    max_iterations: Optional[int] = None
    show_tokens: bool = False
    show_tree: bool = False
    show_time: bool = False
    verbosity: int = 0

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        settings = cls()
        raw = environ.get(ENV_MAX_ITERATIONS, "").strip()
        if raw:
            try:
                settings.max_iterations = int(raw)
            except ValueError:
                raise ValueError(f"{ENV_MAX_ITERATIONS} must be an integer, got '{raw}'.") from None
        return settings

    @classmethod
    def from_args(cls, args, environ=None):
        settings = cls.from_env(environ)
        if args.max_iterations is not None:
            settings.max_iterations = args.max_iterations
        settings.show_tokens = args.tokens
        settings.show_tree = args.tree
        settings.show_time = args.time
        settings.verbosity = args.verbose
        if settings.max_iterations is not None and settings.max_iterations < 0:
            raise ValueError("The iteration limit cannot be negative.")
        return settings
