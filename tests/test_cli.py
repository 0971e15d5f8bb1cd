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

"""Tests for the command line front end."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from unitscript import cli
from unitscript.config import ENV_MAX_ITERATIONS


@pytest.fixture
def screen(monkeypatch):
    monkeypatch.delenv(ENV_MAX_ITERATIONS, raising=False)
    console = Console(file=io.StringIO(), width=200)
    monkeypatch.setattr(cli, "console", console)
    return console


def text(console):
    return console.file.getvalue()


class TestExpressions:
    def test_result_is_reported(self, screen):
        assert cli.main(["2kg * 3|m/s2|"]) == 0
        assert "2kg * 3|m/s2| => 6N" in text(screen)

    def test_expressions_share_variables(self, screen):
        assert cli.main(["x = 4", "x * 2"]) == 0
        assert "x * 2 => 8" in text(screen)

    def test_print_goes_to_console(self, screen):
        assert cli.main(['print("hi")']) == 0
        assert text(screen) == "hi\n"

    def test_error_sets_exit_status(self, screen):
        assert cli.main(["1 +", "2"]) == 1
        output = text(screen)
        assert "Error in expression '1 +'" in output
        assert "2 => 2" in output

    def test_tokens_and_tree(self, screen):
        cli.main(["--tokens", "--tree", "1 + 2"])
        output = text(screen)
        assert 'NUM{1, ""} OP{+} NUM{2, ""}' in output
        assert "Operator(+)" in output
        assert "Number(2.0)" in output

    def test_timings(self, screen):
        cli.main(["--time", "1"])
        assert "parse" in text(screen)

    def test_iteration_limit(self, screen):
        assert cli.main(["--max-iterations", "5", "while 1 {1}"]) == 1
        assert "exceeded the limit of 5" in text(screen)

    def test_negative_limit_is_usage_error(self, screen):
        with pytest.raises(SystemExit) as info:
            cli.main(["--max-iterations", "-1", "1"])
        assert info.value.code == 2


class TestFiles:
    def test_file_is_one_program(self, screen, tmp_path):
        program = tmp_path / "prog.us"
        program.write_text("{\n  x = 2;\n  x * 3\n}\n", encoding="utf-8")
        assert cli.main(["-f", str(program)]) == 0
        assert "Result: 6" in text(screen)

    def test_bundled_example(self, screen):
        example = Path(__file__).resolve().parent.parent / "examples" / "pendulum.us"
        assert cli.main(["-f", str(example)]) == 0
        output = text(screen)
        assert "room temperature is 20°C" in output
        assert "Result:" in output

    def test_file_error(self, screen, tmp_path):
        program = tmp_path / "bad.us"
        program.write_text("{1 +}", encoding="utf-8")
        assert cli.main(["-f", str(program)]) == 1
        assert "Error in file" in text(screen)


class TestRepl:
    def feed(self, monkeypatch, console, lines):
        pending = iter(lines)

        def fake_input(prompt=""):
            try:
                return next(pending)
            except StopIteration:
                raise EOFError from None

        monkeypatch.setattr(console, "input", fake_input)

    def test_session(self, screen, monkeypatch):
        self.feed(monkeypatch, screen, ["x = 2", "", "x * 3", "y", "quit"])
        assert cli.main([]) == 0
        output = text(screen)
        assert "Result: 6" in output
        assert "Undefined variable 'y'" in output
        assert "Goodbye!" in output

    def test_end_of_input(self, screen, monkeypatch):
        self.feed(monkeypatch, screen, ["1 + 1"])
        assert cli.main([]) == 0
        assert "Result: 2" in text(screen)
