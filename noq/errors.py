"""
Errors reported by NOQ commands.

Every error aborts only the current command. The REPL and the script runner
catch NoqError and report it; nothing else in the package catches these.
"""

from typing import Optional

from .lexer import Loc, Token, TokenKind, TokenKindSet


class NoqError(Exception):
    """Base class for all reportable command errors."""

    loc: Optional[Loc] = None

    @property
    def message(self) -> str:
        return str(self)


class UnexpectedToken(NoqError):
    """The parser found a token of the wrong kind."""

    def __init__(self, expected: TokenKindSet, actual: Token):
        self.expected = expected
        self.actual = actual
        self.loc = actual.loc
        super().__init__(f"expected {expected} but got {actual.kind} '{actual.text}'")


class RuleAlreadyExists(NoqError):
    """A rule with this name has already been defined."""

    def __init__(self, name: str, loc: Loc, existing_loc: Loc):
        self.name = name
        self.loc = loc
        self.existing_loc = existing_loc
        super().__init__(f"redefinition of existing rule {name}")


class RuleDoesNotExist(NoqError):
    """apply referenced a rule name that was never defined."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"rule {name} does not exist")


class AlreadyShaping(NoqError):
    """shape was issued while another term is being shaped."""

    def __init__(self):
        super().__init__(
            f"already shaping an expression. "
            f"Finish the current shaping with {TokenKind.DONE} first."
        )


class NoShapingInPlace(NoqError):
    """apply or done was issued while no term is being shaped."""

    def __init__(self):
        super().__init__("no shaping in place.")


class FunctorNotSymbol(NoqError):
    """A functor name in a rule body is bound to a compound term."""

    def __init__(self, name: str, value):
        self.name = name
        self.value = value
        super().__init__(f"cannot use {value} as the functor name bound to {name}")


class TermTooDeep(NoqError):
    """A term is nested deeper than the session accepts."""

    def __init__(self, limit: int, loc: Optional[Loc] = None):
        self.limit = limit
        self.loc = loc
        super().__init__(f"term is nested deeper than {limit} levels")
