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

"""Tests for the tokenizer."""

import pytest

from unitscript.errors import LexError
from unitscript.lexer import TokenKind, tokenize


def kinds(text):
    return [tok.kind for tok in tokenize(text)]


def texts(text):
    return [tok.text for tok in tokenize(text)]


class TestTokenize:
    def test_numbers_with_decorators(self):
        tokens = tokenize("5kg + 3i")
        assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.OPERATOR, TokenKind.NUMBER]
        assert (tokens[0].text, tokens[0].decorator) == ("5", "kg")
        assert (tokens[2].text, tokens[2].decorator) == ("3", "i")

    @pytest.mark.parametrize("text, decorator", [("20°C", "°C"), ("5µm", "µm"), ("2π", "π"), ("3cm2", "cm2")])
    def test_unicode_and_exponent_decorators(self, text, decorator):
        (tok,) = tokenize(text)
        assert tok.decorator == decorator

    def test_digit_separator(self):
        assert texts("1'000") == ["1000"]

    def test_two_char_operators(self):
        assert texts("a == b != c >= d <= e") == ["a", "==", "b", "!=", "c", ">=", "d", "<=", "e"]
        assert texts("!a = b") == ["!", "a", "=", "b"]

    def test_word_operators_and_keyword(self):
        assert kinds("for x in m") == [
            TokenKind.OPERATOR, TokenKind.IDENTIFIER, TokenKind.KEYWORD, TokenKind.IDENTIFIER,
        ]
        assert kinds("a pm b") == [TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.IDENTIFIER]

    def test_punctuation(self):
        assert kinds("([{,;}])") == [
            TokenKind.LEFT_PAR, TokenKind.LEFT_BRACKET, TokenKind.LEFT_BRACE, TokenKind.COMMA,
            TokenKind.SEMICOLON, TokenKind.RIGHT_BRACE, TokenKind.RIGHT_BRACKET, TokenKind.RIGHT_PAR,
        ]

    def test_greek_identifiers(self):
        assert kinds("α + β_2") == [TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.IDENTIFIER]
        assert texts("β_2") == ["β_2"]

    def test_unit_block_is_parsed(self):
        (tok,) = tokenize("|m/s|")
        assert tok.kind is TokenKind.UNIT_BLOCK
        assert tok.text == "m/s"
        assert tok.unit.dims == (1, 0, -1, 0, 0, 0, 0)

    def test_string_escapes(self):
        (tok,) = tokenize('"a\\nb\\"c"')
        assert tok.kind is TokenKind.STRING_BLOCK
        assert tok.text == 'a\nb"c'

    def test_interpolation_escapes_are_kept(self):
        (tok,) = tokenize('"\\{x\\}"')
        assert tok.text == "\\{x\\}"

    def test_comment_runs_to_end_of_line(self):
        assert texts("1 \\\\ a comment\n+ 2") == ["1", "+", "2"]

    def test_positions(self):
        assert [t.position for t in tokenize("ab + 12")] == [0, 3, 5]

    def test_token_str(self):
        assert [str(t) for t in tokenize("5kg x +")] == ['NUM{5, "kg"}', "ID{x}", "OP{+}"]


class TestLexErrors:
    def test_unknown_character(self):
        with pytest.raises(LexError) as info:
            tokenize("5 # 3")
        assert info.value.position == 2
        assert info.value.char == "#"

    def test_unterminated_unit_block(self):
        with pytest.raises(LexError, match="Unterminated unit block"):
            tokenize("5|m/s")

    def test_unterminated_string(self):
        with pytest.raises(LexError, match="Unterminated string block"):
            tokenize('"abc')
