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
# Tree-walking evaluator. Every numeric operation goes through Quantity;
# the evaluator only checks value kinds and arities, walks children in
# their stored order and owns the variable environment.
#

import logging
import operator

from rich.console import Console

from .errors import AssertionFailed, EvalError, IterationLimitExceeded, UndefinedVariable
from .parser import Node
from .quantity import Quantity, format_real
from .units import graphemes
from .values import VOID, Matrix, format_value, type_name

log = logging.getLogger(__name__)

##############################################
# 1. OPERATOR & FUNCTION TABLES
##############################################

def truthy(q):
    return not q.is_zero()


UNARY_OPERATORS = {
    "+": operator.pos,
    "-": operator.neg,
    "!": lambda q: Quantity.boolean(q.is_zero()),
    "?": lambda q: Quantity.boolean(q.is_certain()),
    "$": Quantity.value,
    "&": Quantity.sigma,
}

BINARY_OPERATORS = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": operator.pow,
    "pm": Quantity.plus_minus,
    "==": lambda a, b: a.compare(b, "=="),
    "!=": lambda a, b: a.compare(b, "!="),
    ">": lambda a, b: a.compare(b, ">"),
    ">=": lambda a, b: a.compare(b, ">="),
    "<": lambda a, b: a.compare(b, "<"),
    "<=": lambda a, b: a.compare(b, "<="),
    "and": lambda a, b: Quantity.boolean(truthy(a) and truthy(b)),
    "nand": lambda a, b: Quantity.boolean(not (truthy(a) and truthy(b))),
    "or": lambda a, b: Quantity.boolean(truthy(a) or truthy(b)),
    "xor": lambda a, b: Quantity.boolean(truthy(a) != truthy(b)),
}

# name -> (number of parameters, implementation)
NUMBER_FUNCTIONS = {
    "sin": (1, Quantity.sin),
    "cos": (1, Quantity.cos),
    "exp": (1, Quantity.exp),
    "i": (1, Quantity.times_i),
    "Re": (1, Quantity.real),
    "real": (1, Quantity.real),
    "Im": (1, Quantity.imag),
    "imag": (1, Quantity.imag),
    "sigma": (1, Quantity.sigma),
    "sigma2": (1, Quantity.sigma2),
    "value": (1, Quantity.value),
    "abs": (1, Quantity.abs),
    "arg": (1, Quantity.arg),
    "max": (2, Quantity.max),
    "min": (2, Quantity.min),
}


def _parameters(n):
    return "1 parameter" if n == 1 else f"{n} parameters"

##############################################
# 2. EVALUATOR
##############################################

class Evaluator:
    """
    Evaluates trees against one mutable environment (name -> value).
    `console` receives the output of write/print; `max_iterations` caps
    every while/for loop when set.
    """

    def __init__(self, env=None, console=None, max_iterations=None):
        self.env = env if env is not None else {}
        self.console = console if console is not None else Console()
        self.max_iterations = max_iterations

    def eval(self, tree):
        node = tree.node
        if node is Node.NUMBER:
            return Quantity.from_value_decorator(tree.value, tree.decorator)
        elif node is Node.OPERATOR:
            return self.eval_operator(tree)
        elif node is Node.FUNCTION_CALL:
            return self.eval_function(tree)
        elif node is Node.VARIABLE:
            return self.lookup(tree.name)
        elif node is Node.BLOCK:
            result = VOID
            for child in tree.children:
                result = self.eval(child)
            return result
        elif node is Node.UNIT_BLOCK:
            q = self.number(tree.children[0], f"|{tree.name}|")
            return q.with_unit(tree.unit, tree.factor, tree.shift)
        elif node is Node.STRING_BLOCK:
            return self.interpolate(tree.name)
        elif node is Node.MATRIX_BLOCK:
            return Matrix(tree.width, tree.height, [self.eval(c) for c in tree.children])
        elif node is Node.MATRIX_INDEXING:
            return self.eval_indexing(tree)
        elif node is Node.KEYWORD:
            raise EvalError(f"The keyword '{tree.name}' has no value.")
        elif node is Node.NONE:
            return VOID
        raise EvalError(f"Unable to give value to {tree!r}")

    def lookup(self, name):
        if name not in self.env:
            raise UndefinedVariable(name)
        return self.env[name]

    def number(self, tree, what, side=None):
        value = self.eval(tree)
        if not isinstance(value, Quantity):
            where = f" on the {side}" if side else ""
            raise EvalError(
                f"The '{what}' operator operates on values of type 'Number' but an element "
                f"of type '{type_name(value)}' was found{where}."
            )
        return value

    def _check_iterations(self, count, loop):
        if self.max_iterations is not None and count >= self.max_iterations:
            raise IterationLimitExceeded(loop, self.max_iterations)

    # operators

    def eval_operator(self, tree):
        name = tree.name
        children = tree.children
        length = len(children)

        if name == "=":
            target, expression = children
            if target.node is not Node.VARIABLE:
                raise EvalError(f"The '=' operator assigns to a variable, found {target.label()}.")
            self.env[target.name] = self.eval(expression)
            return VOID
        if name == "if":
            if truthy(self.number(children[0], "if", "condition")):
                return self.eval(children[1])
            if length == 3:
                return self.eval(children[2])
            return VOID
        if name == "while":
            return self.eval_while(tree)
        if name == "for":
            return self.eval_for(tree)

        if length == 1 and name in UNARY_OPERATORS:
            return UNARY_OPERATORS[name](self.number(children[0], name))
        if length == 2 and name in BINARY_OPERATORS:
            left = self.number(children[0], name, "left-hand side")
            right = self.number(children[1], name, "right-hand side")
            return BINARY_OPERATORS[name](left, right)
        raise EvalError(f"Unknown operator '{name}' with {_parameters(length)}.")

    def eval_while(self, tree):
        condition, body = tree.children
        results = []
        while truthy(self.number(condition, "while", "condition")):
            self._check_iterations(len(results), "while")
            results.append(self.eval(body))
        return Matrix.column(results)

    def eval_for(self, tree):
        index, iterable, body = tree.children
        if iterable.node is Node.VARIABLE and isinstance(self.env.get(iterable.name), Matrix):
            matrix = self.env[iterable.name]
        else:
            matrix = self.eval(iterable)
        if not isinstance(matrix, Matrix):
            raise EvalError(
                f"The 'for' loop iterates over a 'Matrix' but an element of type "
                f"'{type_name(matrix)}' was found."
            )

        results = [VOID] * (matrix.width * matrix.height)
        count = 0
        for col in range(matrix.width):
            for row in range(matrix.height):
                self._check_iterations(count, "for")
                count += 1
                self.env[index.name] = matrix.cell(row, col)
                results[row * matrix.width + col] = self.eval(body)
        return Matrix(matrix.width, matrix.height, results)

    # functions

    def eval_function(self, tree):
        name = tree.name
        children = tree.children
        length = len(children)

        if name in NUMBER_FUNCTIONS:
            arity, implementation = NUMBER_FUNCTIONS[name]
            if length != arity:
                raise EvalError(
                    f"The '{name}' function takes {_parameters(arity)}, "
                    f"but {_parameters(length)} were found."
                )
            args = []
            for position, child in enumerate(children, start=1):
                value = self.eval(child)
                if not isinstance(value, Quantity):
                    raise EvalError(
                        f"The '{name}' function takes values of type 'Number' but an element of "
                        f"type '{type_name(value)}' was found as parameter {position}."
                    )
                args.append(value)
            return implementation(*args)

        if name == "write":
            if length == 0:
                raise EvalError("The 'write' function takes one or more parameters but no parameters were found.")
            self.console.out("".join(format_value(self.eval(c)) for c in children),
                             end="", highlight=False)
            return VOID
        if name in ("print", "writeln"):
            self.console.out(" ".join(format_value(self.eval(c)) for c in children),
                             highlight=False)
            return VOID
        if name in ("assert", "error"):
            if length not in (1, 2):
                raise EvalError(
                    f"The '{name}' function takes 1 or 2 parameters, but {_parameters(length)} were found."
                )
            value = self.eval(children[0])
            if name == "assert" and isinstance(value, Quantity) and value.is_exactly(1.0):
                return VOID
            if length == 2:
                message = self.eval(children[1])
                if not isinstance(message, str):
                    message = format_value(message)
            elif name == "assert":
                message = f"Assertion failed: {format_value(value)}"
            else:
                message = f"Error: {format_value(value)}"
            raise AssertionFailed(message)

        raise EvalError(f"Unknown function called '{name}'")

    # matrices

    def eval_indexing(self, tree):
        if tree.name is None:
            target = self.eval(tree.children[0])
            indices = tree.children[1:]
            label = "matrix literal"
        else:
            target = self.lookup(tree.name)
            indices = tree.children
            label = tree.name
        if not isinstance(target, Matrix):
            raise EvalError(f"Cannot index '{label}' of type '{type_name(target)}', a 'Matrix' is needed.")

        if len(indices) == 1:
            if target.width != 1:
                raise EvalError(
                    f"A single index only applies to column vectors, but '{label}' is "
                    f"{target.width}x{target.height}."
                )
            return target.cell(self._index(indices[0], target.height, label), 0)
        if len(indices) == 2:
            row = self._index(indices[0], target.height, label)
            col = self._index(indices[1], target.width, label)
            return target.cell(row, col)
        raise EvalError(f"A matrix is indexed with 1 or 2 indices, but {len(indices)} were found for '{label}'.")

    def _index(self, tree, size, label):
        """1-based index, negative counting from the end; returns 0-based."""
        q = self.eval(tree)
        if not (isinstance(q, Quantity) and q.is_real() and q.unit.is_unitless()
                and q.re.is_integer() and q.re != 0):
            raise EvalError(f"Matrix indices must be real non-zero integers, found '{format_value(q)}'.")
        k = int(q.re)
        if k < 0:
            k = size + k + 1
        if not 1 <= k <= size:
            raise EvalError(f"Index {format_real(q.re)} is out of range for '{label}' of size {size}.")
        return k - 1

    # strings

    def interpolate(self, template):
        """
        Copy the template, replacing {name} and {name|unit|} with the
        formatted value of `name`. \\{, \\} and \\\\ are literal.
        """
        chars = graphemes(template)
        out = []
        i = 0
        n = len(chars)
        while i < n:
            c = chars[i]
            if c == "\\" and i + 1 < n and chars[i + 1] in "{}\\":
                out.append(chars[i + 1])
                i += 2
                continue
            if c == "}":
                raise EvalError(f"Unmatched '}}' at index {i} in string \"{template}\".")
            if c == "{":
                j = i + 1
                while j < n and chars[j] != "}":
                    if chars[j] == "{":
                        raise EvalError(f"Nested '{{' at index {j} in string \"{template}\".")
                    j += 1
                if j == n:
                    raise EvalError(f"Unmatched '{{' at index {i} in string \"{template}\".")
                out.append(self._substitute("".join(chars[i + 1:j]), template))
                i = j + 1
                continue
            out.append(c)
            i += 1
        return "".join(out)

    def _substitute(self, content, template):
        name, bar, suffix = content.partition("|")
        name = name.strip()
        if not name.isidentifier():
            raise EvalError(f"Malformed interpolation '{{{content}}}' in string \"{template}\".")
        value = self.lookup(name)
        if not bar:
            return format_value(value)

        if not suffix.endswith("|") or "|" in suffix[:-1] or not suffix[:-1].strip():
            raise EvalError(f"Malformed unit suffix in '{{{content}}}', expected {{name|unit|}}.")
        if not isinstance(value, Quantity):
            raise EvalError(
                f"Only values of type 'Number' can be shown in a unit, but '{name}' is "
                f"of type '{type_name(value)}'."
            )
        return value.to_text(suffix[:-1].strip())


def evaluate(tree, env=None, console=None, max_iterations=None):
    log.debug("evaluating %s", tree.label())
    return Evaluator(env, console, max_iterations).eval(tree)
