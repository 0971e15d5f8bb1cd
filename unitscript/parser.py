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
# AST builder. Each bracketed region becomes one "level": a flat list of
# Tree nodes that is reduced in place by a fixed sequence of passes, one
# per precedence tier, until a single valued node is left.
#

import logging
from enum import Enum

from .errors import ParseError
from .lexer import TokenKind

log = logging.getLogger(__name__)

##############################################
# 1. AST NODES
##############################################

class Node(Enum):
    NONE = "None"
    NUMBER = "Number"
    OPERATOR = "Operator"
    KEYWORD = "Keyword"
    VARIABLE = "Variable"
    FUNCTION_CALL = "FunctionCall"
    BLOCK = "Block"
    UNIT_BLOCK = "UnitBlock"
    STRING_BLOCK = "StringBlock"
    MATRIX_BLOCK = "MatrixBlock"
    MATRIX_INDEXING = "MatrixIndexing"


class Tree:
    """
    One AST node and the children it owns.

    has_value is False while the node is an operator or placeholder still
    waiting for its operands, True once it denotes a complete operand.
    `name` holds the operator symbol, keyword, variable or function name,
    or the template of a string block.
    """

    def __init__(self, node, name=None, children=None, has_value=False, value=None,
                 decorator="", unit=None, factor=1.0, shift=0.0, width=0, height=0):
        self.node = node
        self.name = name
        self.children = children if children is not None else []
        self.has_value = has_value
        self.value = value
        self.decorator = decorator
        self.unit = unit
        self.factor = factor
        self.shift = shift
        self.width = width
        self.height = height

    def label(self):
        if self.node is Node.NUMBER:
            if self.decorator:
                return f"Number({self.value!r}, {self.decorator!r})"
            return f"Number({self.value!r})"
        if self.node is Node.UNIT_BLOCK:
            return f"UnitBlock(|{self.name}|)"
        if self.node is Node.STRING_BLOCK:
            return f"StringBlock({self.name!r})"
        if self.node is Node.MATRIX_BLOCK:
            return f"MatrixBlock({self.width}x{self.height})"
        if self.node in (Node.NONE, Node.BLOCK):
            return self.node.value
        return f"{self.node.value}({self.name})"

    def __repr__(self):
        if self.children:
            return f"{self.label()}[{', '.join(repr(c) for c in self.children)}]"
        return self.label()

    def is_operator(self, symbols=None):
        """Unreduced operator placeholder, optionally one of `symbols`."""
        return (
            self.node is Node.OPERATOR and not self.has_value
            and (symbols is None or self.name in symbols)
        )

    def is_placeholder(self):
        return not self.has_value and self.node in (Node.OPERATOR, Node.KEYWORD, Node.NONE)

    def is_keyword(self, name):
        return self.node is Node.KEYWORD and not self.has_value and self.name == name

    def is_block(self):
        return self.node is Node.BLOCK and self.has_value

    def is_if(self):
        return self.node is Node.OPERATOR and self.has_value and self.name == "if"


def none_tree():
    return Tree(Node.NONE)

##############################################
# 2. BRACKET HELPERS
##############################################

OPENERS = {
    TokenKind.LEFT_PAR: TokenKind.RIGHT_PAR,
    TokenKind.LEFT_BRACE: TokenKind.RIGHT_BRACE,
    TokenKind.LEFT_BRACKET: TokenKind.RIGHT_BRACKET,
}
CLOSERS = set(OPENERS.values())


def _find_closing(tokens, start):
    """
    Index of the token closing the bracket opened at `start`. Brackets of
    every family must nest properly in between.
    """
    expected = []
    for j in range(start, len(tokens)):
        kind = tokens[j].kind
        if kind in OPENERS:
            expected.append(OPENERS[kind])
        elif kind in CLOSERS:
            if not expected or expected[-1] is not kind:
                raise ParseError(
                    f"Mismatched brackets: found '{kind.value}' at index {tokens[j].position}."
                )
            expected.pop()
            if not expected:
                return j
    opener = tokens[start].kind
    raise ParseError(
        f"Each opening '{opener.value}' needs a corresponding closing '{OPENERS[opener].value}'."
    )


def _split(tokens, separator):
    """
    Split on `separator` tokens that are not nested inside any bracket.
    """
    parts = []
    depth = 0
    start = 0
    for j, tok in enumerate(tokens):
        if tok.kind in OPENERS:
            depth += 1
        elif tok.kind in CLOSERS:
            depth -= 1
        elif tok.kind is separator and depth == 0:
            parts.append(tokens[start:j])
            start = j + 1
    parts.append(tokens[start:])
    return parts

##############################################
# 3. ATOMIZATION
##############################################

def _number(tok):
    try:
        value = float(tok.text)
    except ValueError:
        raise ParseError(f"Malformed number '{tok.text}' at index {tok.position}.") from None
    return Tree(Node.NUMBER, has_value=True, value=value, decorator=tok.decorator)


def _arguments(tokens):
    if not tokens:
        return []
    return [ast(part) for part in _split(tokens, TokenKind.COMMA)]


def _matrix(tokens):
    if not tokens:
        return Tree(Node.MATRIX_BLOCK, has_value=True)
    children = []
    width = None
    rows = _split(tokens, TokenKind.SEMICOLON)
    for row in rows:
        entries = _split(row, TokenKind.COMMA)
        if width is None:
            width = len(entries)
        elif len(entries) != width:
            raise ParseError(
                f"Every row of a matrix needs the same width: expected {width}, found {len(entries)}."
            )
        children.extend(ast(entry) for entry in entries)
    return Tree(Node.MATRIX_BLOCK, children=children, has_value=True,
                width=width, height=len(rows))


def _atomize(tokens):
    level = []
    i = 0
    n = len(tokens)
    while i < n:
        tok = tokens[i]
        kind = tok.kind

        if kind is TokenKind.NUMBER:
            level.append(_number(tok))
            i += 1

        elif kind is TokenKind.OPERATOR:
            level.append(Tree(Node.OPERATOR, tok.text))
            i += 1

        elif kind is TokenKind.KEYWORD:
            level.append(Tree(Node.KEYWORD, tok.text))
            i += 1

        elif kind is TokenKind.LEFT_PAR:
            end = _find_closing(tokens, i)
            level.append(ast(tokens[i + 1:end]))
            i = end + 1

        elif kind is TokenKind.LEFT_BRACE:
            end = _find_closing(tokens, i)
            inside = tokens[i + 1:end]
            children = [ast(part) for part in _split(inside, TokenKind.SEMICOLON)] if inside else []
            level.append(Tree(Node.BLOCK, children=children, has_value=True))
            i = end + 1

        elif kind is TokenKind.LEFT_BRACKET:
            end = _find_closing(tokens, i)
            inside = tokens[i + 1:end]
            follows_literal = (
                i > 0 and tokens[i - 1].kind is TokenKind.RIGHT_BRACKET
                and level and level[-1].node is Node.MATRIX_BLOCK
            )
            if follows_literal:
                target = level.pop()
                level.append(Tree(Node.MATRIX_INDEXING, None,
                                  children=[target] + _arguments(inside), has_value=True))
            else:
                level.append(_matrix(inside))
            i = end + 1

        elif kind is TokenKind.IDENTIFIER:
            nxt = tokens[i + 1].kind if i + 1 < n else None
            if nxt is TokenKind.LEFT_PAR:
                end = _find_closing(tokens, i + 1)
                level.append(Tree(Node.FUNCTION_CALL, tok.text,
                                  children=_arguments(tokens[i + 2:end]), has_value=True))
                i = end + 1
            elif nxt is TokenKind.LEFT_BRACKET:
                end = _find_closing(tokens, i + 1)
                level.append(Tree(Node.MATRIX_INDEXING, tok.text,
                                  children=_arguments(tokens[i + 2:end]), has_value=True))
                i = end + 1
            else:
                level.append(Tree(Node.VARIABLE, tok.text, has_value=True))
                i += 1

        elif kind is TokenKind.UNIT_BLOCK:
            level.append(Tree(Node.UNIT_BLOCK, tok.text, unit=tok.unit,
                              factor=tok.factor, shift=tok.shift))
            i += 1

        elif kind is TokenKind.STRING_BLOCK:
            level.append(Tree(Node.STRING_BLOCK, tok.text, has_value=True))
            i += 1

        elif kind in CLOSERS:
            raise ParseError(
                f"Closing '{kind.value}' at index {tok.position} with no matching opening bracket."
            )

        else:
            raise ParseError(f"Unexpected '{kind.value}' at index {tok.position}.")

    return level

##############################################
# 4. REDUCTION PASSES
##############################################

PREFIX_SIGNS = ("+", "-", "$", "&")


def _attach(operator, *operands):
    operator.children.extend(operands)
    operator.has_value = True


def apply_prefixed_unary_operations(level):
    """
    !, and +, -, $, & when nothing valued stands to their left. Walks
    backwards so that stacked prefixes like !!x reduce innermost first.
    """
    i = len(level) - 2
    while i >= 0:
        tree = level[i]
        left = level[i - 1] if i > 0 else None
        if tree.is_operator(("!",)) or (
            tree.is_operator(PREFIX_SIGNS) and (left is None or left.is_placeholder())
        ):
            right = level.pop(i + 1)
            if not right.has_value:
                raise ParseError(
                    f"A unary prefixed operator needs to be followed by a valued expression. "
                    f"Found operator '{tree.name}' followed by {right.label()}."
                )
            _attach(tree, right)
        i -= 1


def apply_postfixed_unary_operation(level, wanted):
    i = 1
    while i < len(level):
        if wanted(level[i]):
            left = level.pop(i - 1)
            operator = level[i - 1]
            if not left.has_value:
                raise ParseError(
                    f"A unary postfixed operator needs a valued expression to its left. "
                    f"Found {left.label()} before {operator.label()}."
                )
            _attach(operator, left)
        else:
            i += 1


def apply_binary_operation(level, symbols):
    i = 0
    while i < len(level):
        operator = level[i]
        if not operator.is_operator(symbols):
            i += 1
            continue
        if i == 0 or i == len(level) - 1:
            raise ParseError(
                f"The binary operator '{operator.name}' needs valued expressions to its sides."
            )
        left, right = level[i - 1], level[i + 1]
        if not (left.has_value and right.has_value):
            raise ParseError(
                f"A binary operator needs valued expressions to its sides. Found "
                f"left: {left.label()}, operator: '{operator.name}', right: {right.label()}."
            )
        del level[i + 1]
        del level[i - 1]
        _attach(operator, left, right)
        # the operator now sits at i - 1; the next candidate is at i


def apply_conditional(level, symbol):
    """`if`/`while` followed by a valued condition and a block."""
    i = 0
    while i < len(level) - 2:
        if level[i].is_operator((symbol,)) and level[i + 1].has_value and level[i + 2].is_block():
            condition = level.pop(i + 1)
            body = level.pop(i + 1)
            _attach(level[i], condition, body)
        i += 1


def apply_else(level):
    # right to left so that `if a {} else if b {} else {}` nests on the right
    i = len(level) - 2
    while i >= 1:
        if level[i].is_operator(("else",)):
            left, right = level[i - 1], level[i + 1]
            if not (left.is_if() and len(left.children) == 2 and (right.is_if() or right.is_block())):
                raise ParseError(
                    f"'else' must follow an if-block and precede a block or another 'if'. "
                    f"Found {left.label()} else {right.label()}."
                )
            left.children.append(right)
            del level[i:i + 2]
        i -= 1


def apply_for(level):
    i = 0
    while i <= len(level) - 5:
        window = level[i:i + 5]
        if (
            window[0].is_operator(("for",))
            and window[1].node is Node.VARIABLE
            and window[2].is_keyword("in")
            and window[3].has_value
            and window[4].is_block()
        ):
            _attach(window[0], window[1], window[3], window[4])
            del level[i + 1:i + 5]
        i += 1


def apply_assignment(level):
    i = 0
    while i < len(level):
        operator = level[i]
        if not operator.is_operator(("=",)):
            i += 1
            continue
        if i == 0 or i == len(level) - 1:
            raise ParseError("The assignment operator '=' needs a variable to its left and a value to its right.")
        left, right = level[i - 1], level[i + 1]
        if left.node is not Node.VARIABLE or left.children:
            raise ParseError(f"The left side of '=' must be a variable, found {left.label()}.")
        if not right.has_value:
            raise ParseError(f"The right side of '=' must be a valued expression, found {right.label()}.")
        del level[i + 1]
        del level[i - 1]
        _attach(operator, left, right)

##############################################
# 5. PARSER
##############################################

def ast(tokens):
    """
    Build the expression tree for a token slice. An empty slice yields a
    valueless None tree.
    """
    if not tokens:
        return none_tree()

    level = _atomize(tokens)

    # not(!), +(unary), -(unary), value-of($), uncertainty-of(&)
    apply_prefixed_unary_operations(level)

    # certainty check(?)
    apply_postfixed_unary_operation(level, lambda tree: tree.is_operator(("?",)))

    # unit blocks attach to the value on their left
    apply_postfixed_unary_operation(
        level, lambda tree: tree.node is Node.UNIT_BLOCK and not tree.has_value
    )

    # elevation
    apply_binary_operation(level, ("^",))

    # prod, div
    apply_binary_operation(level, ("*", "/"))

    # uncertainty
    apply_binary_operation(level, ("pm",))

    # sum, sub
    apply_binary_operation(level, ("+", "-"))

    # eq(==), neq(!=), gt(>), gte(>=), lt(<), lte(<=)
    apply_binary_operation(level, ("==", "!=", ">", ">=", "<", "<="))

    # and, nand
    apply_binary_operation(level, ("and", "nand"))

    # or, xor
    apply_binary_operation(level, ("or", "xor"))

    apply_conditional(level, "if")
    apply_else(level)
    apply_conditional(level, "while")
    apply_for(level)

    apply_assignment(level)

    if len(level) != 1:
        raise ParseError(f"The parsing couldn't finish. The reduced level resulted in: {level!r}")
    tree = level[0]
    if not tree.has_value:
        raise ParseError(f"The expression reduced to {tree.label()}, which has no value.")
    return tree


def parse(tokens):
    tree = ast(tokens)
    log.debug("parsed %d tokens into %s", len(tokens), tree.label())
    return tree
