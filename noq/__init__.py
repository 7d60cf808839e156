"""
NOQ - interactive equational reasoning by hand-driven rewriting

Define named rewrite rules over symbolic terms, then shape a term by
applying them one step at a time.

Quick Start:
    from noq import Session, T

    session = Session()
    session.define_rule("swap", T("swap(pair(a, b))"), T("pair(b, a)"))
    session.shape(T("foo(swap(pair(x, y)), swap(pair(z, w)))"))
    session.apply("swap")    # => foo(pair(y, x), pair(w, z))
    session.done()

Command Syntax:
    rule NAME HEAD = BODY     Define a rule
    shape TERM                Start shaping a term
    apply NAME                Rewrite every outermost match once
    done                      Finish shaping

Term Syntax:
    x                         Atom; a variable when it appears in a rule head
    f(x, g(y))                Compound term

Every atom in a rule head matches any term, and repeated atoms must match
equal terms. Atoms in a rule body that were not bound stay literal.
"""

__version__ = "0.1.0"

# Core rewriter components
from .rewriter import (
    Atom,
    Compound,
    Term,
    Rule,
    Bindings,
    NoMatch,
    match,
    instantiate,
    apply_all,
    term_depth,
    MAX_DEPTH,
)

# Lexer
from .lexer import (
    Lexer,
    LexerExhausted,
    Loc,
    Token,
    TokenKind,
    TokenKindSet,
)

# Errors
from .errors import (
    NoqError,
    UnexpectedToken,
    RuleAlreadyExists,
    RuleDoesNotExist,
    AlreadyShaping,
    NoShapingInPlace,
    FunctorNotSymbol,
    TermTooDeep,
)

# Parser and session
from .engine import (
    T,
    parse_term,
    parse_command,
    expect_token,
    DefineRule,
    Shape,
    Apply,
    Done,
    CommandResult,
    ShapingStep,
    Session,
    format_chain,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Terms
    "Atom",
    "Compound",
    "Term",
    "Rule",
    # Matching and rewriting
    "Bindings",
    "NoMatch",
    "match",
    "instantiate",
    "apply_all",
    "term_depth",
    "MAX_DEPTH",
    # Lexer
    "Lexer",
    "LexerExhausted",
    "Loc",
    "Token",
    "TokenKind",
    "TokenKindSet",
    # Errors
    "NoqError",
    "UnexpectedToken",
    "RuleAlreadyExists",
    "RuleDoesNotExist",
    "AlreadyShaping",
    "NoShapingInPlace",
    "FunctorNotSymbol",
    "TermTooDeep",
    # Term builder
    "T",
    # Parsing
    "parse_term",
    "parse_command",
    "expect_token",
    # Session
    "DefineRule",
    "Shape",
    "Apply",
    "Done",
    "CommandResult",
    "ShapingStep",
    "Session",
    "format_chain",
]
