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
# Command line front end.
#
# Example usage:
# $ unitscript "2kg * 3|m/s2|"
# 2kg * 3|m/s2| => 6N
# $ unitscript -f examples/pendulum.us
# $ unitscript
# This is unitscript v1.0: units, uncertainties and complex numbers
# >>> g = 9.81|m/s2| pm 0.02|m/s2|
# >>> print(2kg * g)
# (19.620 ± 0.040)N
#

import argparse
import logging
import sys
import time

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.tree import Tree as RichTree

from .config import Settings
from .errors import UnitScriptError
from .evaluator import Evaluator
from .lexer import tokenize
from .parser import parse
from .values import VOID

console = Console()
err_console = Console(stderr=True)

log = logging.getLogger(__name__)


def setup_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def tree_to_rich(tree, branch=None):
    label = escape(tree.label())
    node = RichTree(label) if branch is None else branch.add(label)
    for child in tree.children:
        tree_to_rich(child, node)
    return node


def evaluate_source(source, env, settings):
    """
    Lex, parse and evaluate `source` in `env`, printing the intermediate
    stages the settings ask for.
    """
    started = time.perf_counter()
    tokens = tokenize(source)
    lexed = time.perf_counter()
    if settings.show_tokens:
        console.print("[cyan]Tokens:[/] " + escape(" ".join(str(t) for t in tokens)))

    tree = parse(tokens)
    parsed = time.perf_counter()
    if settings.show_tree:
        console.print(tree_to_rich(tree))

    evaluator = Evaluator(env, console, settings.max_iterations)
    value = evaluator.eval(tree)
    finished = time.perf_counter()
    if settings.show_time:
        console.print(
            f"[dim]lex {1e3 * (lexed - started):.3f} ms, parse {1e3 * (parsed - lexed):.3f} ms, "
            f"eval {1e3 * (finished - parsed):.3f} ms[/]"
        )
    log.info("evaluated %d characters in %.3f ms", len(source), 1e3 * (finished - started))
    return value


def report(source, value):
    if value is not VOID:
        console.print(f"[bold]{escape(source)}[/] => [yellow]{escape(str(value))}[/]")


def repl(settings):
    console.print("[bold cyan]This is unitscript v1.0: units, uncertainties and complex numbers[/]")
    console.print("You can define variables, e.g. mass = 2kg pm 0.1kg")
    console.print("Then use them, e.g. print(mass * 9.81|m/s2|)")
    console.print("Type 'q', 'quit', or 'exit' to quit.\n")

    env = {}
    while True:
        try:
            expr = console.input("[bold green]>>> [/]")
        except EOFError:
            console.print()
            break
        if expr.strip().lower() in ("q", "quit", "exit"):
            console.print("Goodbye!")
            break

        expr = expr.strip()
        if not expr:
            continue

        try:
            value = evaluate_source(expr, env, settings)
            if value is not VOID:
                console.print(f"[yellow]Result:[/] {escape(str(value))}")
        except UnitScriptError as e:
            console.print(f"[red]{escape(str(e))}[/]")


def process_file(filename, env, settings):
    """
    Evaluate a whole file as one program. Returns False on error.
    """
    with open(filename, "r", encoding="utf-8") as f:
        source = f.read()
    try:
        value = evaluate_source(source, env, settings)
    except UnitScriptError as e:
        console.print(f"[red]Error in file '{escape(filename)}':[/]")
        console.print(f"[red]{escape(str(e))}[/]")
        return False
    if value is not VOID:
        console.print(f"[yellow]Result:[/] {escape(str(value))}")
    return True


def build_parser():
    ap = argparse.ArgumentParser(
        description="Scientific expression language with units, uncertainties and matrices"
    )
    ap.add_argument("-f", "--file", help="File containing a program")
    ap.add_argument("expressions", nargs="*", help="Expressions to evaluate, sharing variables")
    ap.add_argument("--tokens", action="store_true", help="Print the tokens of each program")
    ap.add_argument("--tree", action="store_true", help="Print the syntax tree of each program")
    ap.add_argument("--time", action="store_true", help="Print lex/parse/eval timings")
    ap.add_argument("--max-iterations", type=int, default=None,
                    help="Abort any while/for loop running longer than this")
    ap.add_argument("-v", "--verbose", action="count", default=0,
                    help="Log more (-v info, -vv debug)")
    return ap


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        settings = Settings.from_args(args)
    except ValueError as e:
        ap.error(str(e))
    setup_logging(settings.verbosity)

    env = {}
    ok = True
    if args.file:
        ok = process_file(args.file, env, settings)

    for expr in args.expressions:
        try:
            report(expr, evaluate_source(expr, env, settings))
        except UnitScriptError as e:
            console.print(f"[red]Error in expression '{escape(expr)}':[/]")
            console.print(f"[red]{escape(str(e))}[/]")
            ok = False

    if not args.file and not args.expressions:
        repl(settings)

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
