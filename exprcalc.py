#!/usr/bin/env python3
"""ExprCalc, a simple calculator on top of `exprparse`.

Without arguments it reads one expression per line and prints its value (or
why it has none) until end of input or `quit`.  Expressions given on the
command line are evaluated once each instead:

    $ exprcalc "3^2^3" "2/0"
    6561
    Divide by zero
"""
import argparse
import logging
import os
import sys

from exprparse import (
    ExpressionError,
    Status,
    calculate,
    format_postfix,
    get_status_string,
    get_version,
    parse_expression,
    to_postfix,
    tokenize,
)

DEBUG = bool(os.getenv("DEBUG", False))
PROMPT = "Enter simple math expression: "
QUIT = {"quit", "exit"}

logger = logging.getLogger("exprcalc")


def format_result(value, digits=6):
    return f"{value:.{digits}g}"


def evaluate_line(expression, digits=6, postfix=False):
    """Return the text to print for `expression` and whether it evaluated."""
    value, status = parse_expression(expression)
    if status is not Status.SUCCESS:
        return get_status_string(status), False
    text = format_result(value, digits)
    if postfix:
        # Already known to tokenize and convert.
        text = f"{format_postfix(to_postfix(tokenize(expression)))} = {text}"
    return text, True


def repl(read=None, digits=6, postfix=False):
    read = read or input
    print("ExprCalc - Simple Calculator")
    print(f"    Version {get_version()}")
    while True:
        try:
            line = read(PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.strip().lower() in QUIT:
            break
        text, _ = evaluate_line(line, digits, postfix)
        print(text)


def explain(expression):
    """Log why `expression` failed, with the position or operand involved."""
    try:
        calculate(expression)
    except ExpressionError as e:
        logger.info("%r: %s", expression, e)


def main(argv=None):
    ap = argparse.ArgumentParser(prog="exprcalc", description="Evaluate simple math expressions.")
    ap.add_argument("expression", nargs="*", help="evaluate these and exit instead of prompting")
    ap.add_argument("--postfix", action="store_true", help="also print the postfix form")
    ap.add_argument("--digits", type=int, default=6, help="significant digits of results (default: 6)")
    ap.add_argument("-v", "--verbose", action="store_true", help="log every evaluation step")
    ap.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    args = ap.parse_args(argv)
    if args.digits < 1:
        ap.error("--digits must be at least 1")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose or DEBUG else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.expression:
        repl(digits=args.digits, postfix=args.postfix)
        return 0

    failed = 0
    for expression in args.expression:
        text, ok = evaluate_line(expression, args.digits, args.postfix)
        print(text)
        if not ok:
            failed += 1
            explain(expression)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
