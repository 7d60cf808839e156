#!/usr/bin/env python3
"""
NOQ Feature Demonstration

This script walks through the main features of the NOQ library.
"""

from pathlib import Path
from noq import (
    Session, T, Rule,
    match, instantiate, apply_all,
    NoqError,
)
from noq.cli import ScriptRunner


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_matching():
    """Demonstrate pattern matching and instantiation."""
    section("Matching and Instantiation")

    examples = [
        ("swap(pair(a, b))", "swap(pair(f(x), g(y)))"),
        ("f(a, a)", "f(x, x)"),
        ("f(a, a)", "f(x, y)"),
        ("f(a)", "g(x)"),
    ]

    for pattern, value in examples:
        bindings = match(T(pattern), T(value))
        print(f"  {pattern} ~ {value} => {bindings}")

    bindings = match(T("call(op, x)"), T("call(plus, y)"))
    print(f"  op(x, x) with {bindings} => {instantiate(bindings, T('op(x, x)'))}")


def demo_apply_all():
    """Demonstrate the single-layer rewrite."""
    section("Rewriting")

    swap = Rule(T("swap(pair(a, b))"), T("pair(b, a)"))
    term = T("foo(swap(pair(f(a), g(b))), swap(pair(q(c), z(d))))")
    print(f"  rule:   {swap}")
    print(f"  before: {term}")
    print(f"  after:  {apply_all(swap, term)}")

    peel = Rule(T("s(n)"), T("n"))
    term = T("s(s(s(zero)))")
    print(f"\n  rule: {peel}")
    while True:
        rewritten = apply_all(peel, term)
        print(f"  {term} => {rewritten}")
        if rewritten == term:
            break
        term = rewritten


def demo_session():
    """Demonstrate a shaping session driven from Python."""
    section("Shaping Session")

    session = Session()
    session.define_rule("comm", T("plus(a, b)"), T("plus(b, a)"))
    session.define_rule("assoc", T("plus(plus(a, b), c)"), T("plus(a, plus(b, c))"))

    print(f"  Shaping {session.shape(T('plus(plus(x, y), z)'))}")
    for name in ["assoc", "comm", "assoc"]:
        print(f"  apply {name}: {session.apply(name)}")
    term, steps = session.done()
    print(f"  Finished with {term} after {len(steps)} steps")

    for line in ["apply comm", "shape x", "shape y", "apply missing"]:
        try:
            session.process_line(line)
        except NoqError as e:
            print(f"  {line!r}: ERROR: {e.message}")


def demo_script():
    """Demonstrate running a command script."""
    section("Scripts")

    script = Path(__file__).parent / "swap.noq"
    ScriptRunner().run_script(script)


def main():
    """Run all demos."""
    print("NOQ - interactive equational rewriting")
    print("Feature Demonstration")

    demo_matching()
    demo_apply_all()
    demo_session()
    demo_script()

    print(f"\n{'='*60}")
    print(" Demo complete!")
    print('='*60)


if __name__ == "__main__":
    main()
