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

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import LexError
from .units import Unit, graphemes, is_unit_symbol_char, parse_unit_block

log = logging.getLogger(__name__)


class TokenKind(Enum):
    LEFT_PAR = "("
    RIGHT_PAR = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    OPERATOR = "operator"
    KEYWORD = "keyword"
    COMMA = ","
    SEMICOLON = ";"
    UNIT_BLOCK = "unit"
    STRING_BLOCK = "string"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str = ""
    decorator: str = ""
    unit: Optional[Unit] = None
    factor: float = 1.0
    shift: float = 0.0
    position: int = 0

    def __str__(self):
        if self.kind is TokenKind.NUMBER:
            return f"NUM{{{self.text}, \"{self.decorator}\"}}"
        if self.kind is TokenKind.IDENTIFIER:
            return f"ID{{{self.text}}}"
        if self.kind is TokenKind.OPERATOR:
            return f"OP{{{self.text}}}"
        if self.kind is TokenKind.KEYWORD:
            return f"KW{{{self.text}}}"
        if self.kind is TokenKind.UNIT_BLOCK:
            return f"UNIT|{self.text}|"
        if self.kind is TokenKind.STRING_BLOCK:
            return f"STR\"{self.text}\""
        return self.kind.value


PUNCTUATION = {
    "(": TokenKind.LEFT_PAR,
    ")": TokenKind.RIGHT_PAR,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
}

# first char -> operator when followed by '='
TWO_CHAR_OPERATORS = {"=": "==", "!": "!=", ">": ">=", "<": "<="}
SINGLE_CHAR_OPERATORS = "+-*/^?&$"

WORD_OPERATORS = {"or", "and", "nand", "xor", "if", "else", "pm", "while", "for"}
KEYWORDS = {"in"}

DIGITS = "0123456789"
NUMBER_CHARS = DIGITS + "."
DIGIT_SEPARATOR = "'"
WHITESPACE = " \t\r\n"
COMMENT = "\\\\"

STRING_ESCAPES = {"n": "\n", "t": "\t", '"': '"'}

# Unicode letters allowed in identifiers besides [A-Za-z_].
GREEK = "".join(chr(c) for c in range(0x391, 0x3AA) if c != 0x3A2) + \
    "".join(chr(c) for c in range(0x3B1, 0x3CA))
IDENTIFIER_EXTRA = GREEK + "µ"


def is_identifier_start(c):
    return (c.isascii() and (c.isalpha() or c == "_")) or c in IDENTIFIER_EXTRA


def is_identifier_char(c):
    return is_identifier_start(c) or (c.isascii() and c.isdigit())


def _scan_delimited(chars, start, delimiter):
    """
    Return the index of the closing delimiter for the block opened at start,
    skipping backslash escapes. Raises LexError if none is found.
    """
    j = start + 1
    while j < len(chars):
        if chars[j] == "\\" and delimiter == '"':
            j += 2
            continue
        if chars[j] == delimiter:
            return j
        j += 1
    kind = "string" if delimiter == '"' else "unit"
    raise LexError(start, chars[start], f"Unterminated {kind} block starting at index {start}")


def _unescape_string(raw):
    # \\, \{ and \} are left for interpolation to resolve
    out = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == "\\" and i + 1 < len(raw):
            nxt = raw[i + 1]
            if nxt in STRING_ESCAPES:
                out.append(STRING_ESCAPES[nxt])
            else:
                out.append(c + nxt)
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def tokenize(text) -> List[Token]:
    """
    Splits the source into tokens, scanning grapheme clusters so that
    symbols such as µ, Ω and ° are single characters:
      - punctuation: ( ) { } [ ] , ;
      - unit blocks |m/s| and string blocks "..."
      - operators, word operators and the keyword 'in'
      - numbers with an optional decorator: 5, 1'000, 3i, 5kg, 20°C
      - identifiers
    Whitespace and \\\\ line comments are skipped.
    """
    chars = graphemes(text)
    tokens = []
    i = 0
    n = len(chars)

    while i < n:
        c = chars[i]

        if c in PUNCTUATION:
            tokens.append(Token(PUNCTUATION[c], c, position=i))
            i += 1
            continue

        if c == "|":
            end = _scan_delimited(chars, i, "|")
            inside = "".join(chars[i + 1:end])
            unit, factor, shift = parse_unit_block(inside)
            tokens.append(Token(TokenKind.UNIT_BLOCK, inside, unit=unit, factor=factor,
                                shift=shift, position=i))
            i = end + 1
            continue

        if c == '"':
            end = _scan_delimited(chars, i, '"')
            template = _unescape_string("".join(chars[i + 1:end]))
            tokens.append(Token(TokenKind.STRING_BLOCK, template, position=i))
            i = end + 1
            continue

        if c in TWO_CHAR_OPERATORS:
            if i + 1 < n and chars[i + 1] == "=":
                tokens.append(Token(TokenKind.OPERATOR, TWO_CHAR_OPERATORS[c], position=i))
                i += 2
            else:
                tokens.append(Token(TokenKind.OPERATOR, c, position=i))
                i += 1
            continue

        if c in SINGLE_CHAR_OPERATORS:
            tokens.append(Token(TokenKind.OPERATOR, c, position=i))
            i += 1
            continue

        if "".join(chars[i:i + 2]) == COMMENT:
            while i < n and chars[i] != "\n":
                i += 1
            continue

        if c in NUMBER_CHARS:
            start = i
            number = []
            decorator = []
            while i < n:
                ch = chars[i]
                if not decorator and ch in NUMBER_CHARS:
                    number.append(ch)
                elif not decorator and ch == DIGIT_SEPARATOR:
                    pass
                elif is_unit_symbol_char(ch) or (decorator and ch in DIGITS):
                    decorator.append(ch)
                else:
                    break
                i += 1
            tokens.append(Token(TokenKind.NUMBER, "".join(number), "".join(decorator),
                                position=start))
            continue

        if is_identifier_start(c):
            start = i
            i += 1
            while i < n and is_identifier_char(chars[i]):
                i += 1
            word = "".join(chars[start:i])
            if word in WORD_OPERATORS:
                tokens.append(Token(TokenKind.OPERATOR, word, position=start))
            elif word in KEYWORDS:
                tokens.append(Token(TokenKind.KEYWORD, word, position=start))
            else:
                tokens.append(Token(TokenKind.IDENTIFIER, word, position=start))
            continue

        if c in WHITESPACE:
            i += 1
            continue

        raise LexError(i, c)

    log.debug("lexed %d tokens from %d characters", len(tokens), n)
    return tokens


lex = tokenize
