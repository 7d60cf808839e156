"""
Lexer for the NOQ command language.

Turns one line of input into a stream of classified tokens:

    rule swap swap(pair(a, b)) = pair(b, a)

    Rule 'rule', Sym 'swap', Sym 'swap', OpenParen '(', Sym 'pair', ...

Every stream ends with exactly one End token. The stream is peekable so the
recursive-descent parser can look one token ahead.
"""

from enum import Enum
from typing import Iterable, Optional


class Loc:
    """Source location of a token: file, 1-based row, 0-based column."""

    __slots__ = ('file_path', 'row', 'col')

    def __init__(self, file_path: str, row: int, col: int):
        self.file_path = file_path
        self.row = row
        self.col = col

    def __eq__(self, other):
        if isinstance(other, Loc):
            return (self.file_path, self.row, self.col) == (other.file_path, other.row, other.col)
        return False

    def __hash__(self):
        return hash((self.file_path, self.row, self.col))

    def __repr__(self) -> str:
        return f"Loc({self.file_path!r}, {self.row}, {self.col})"

    def __str__(self) -> str:
        return f"{self.file_path}:{self.row}:{self.col}"


class TokenKind(Enum):
    SYM = "symbol"
    OPEN_PAREN = "open paren"
    CLOSE_PAREN = "close paren"
    COMMA = "comma"
    EQUALS = "equals"
    RULE = "rule"
    SHAPE = "shape"
    APPLY = "apply"
    DONE = "done"
    INVALID = "invalid token"
    END = "end of input"

    def __str__(self) -> str:
        return self.value


KEYWORDS = {
    "rule": TokenKind.RULE,
    "shape": TokenKind.SHAPE,
    "apply": TokenKind.APPLY,
    "done": TokenKind.DONE,
}

PUNCTUATION = {
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    ",": TokenKind.COMMA,
    "=": TokenKind.EQUALS,
}


class TokenKindSet:
    """
    Immutable set of token kinds, used to describe what the parser expected.

        TokenKindSet.of(TokenKind.SYM)                     # symbol
        TokenKindSet.of(TokenKind.RULE, TokenKind.DONE)    # rule or done
    """

    __slots__ = ('_kinds',)

    def __init__(self, kinds: Iterable[TokenKind] = ()):
        self._kinds = frozenset(kinds)

    @classmethod
    def of(cls, *kinds: TokenKind) -> 'TokenKindSet':
        return cls(kinds)

    def __contains__(self, kind: TokenKind) -> bool:
        return kind in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)

    def __iter__(self):
        # Declaration order keeps messages stable
        return (kind for kind in TokenKind if kind in self._kinds)

    def __eq__(self, other):
        if isinstance(other, TokenKindSet):
            return self._kinds == other._kinds
        return False

    def __hash__(self):
        return hash(self._kinds)

    def __repr__(self) -> str:
        return f"TokenKindSet({[kind.name for kind in self]})"

    def __str__(self) -> str:
        names = [str(kind) for kind in self]
        if not names:
            return "nothing"
        if len(names) == 1:
            return names[0]
        return ", ".join(names[:-1]) + " or " + names[-1]


class Token:
    """A lexeme with its kind, literal text and location."""

    __slots__ = ('kind', 'text', 'loc')

    def __init__(self, kind: TokenKind, text: str, loc: Loc):
        self.kind = kind
        self.text = text
        self.loc = loc

    def __eq__(self, other):
        if isinstance(other, Token):
            return (self.kind, self.text, self.loc) == (other.kind, other.text, other.loc)
        return False

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.loc!r})"


class LexerExhausted(RuntimeError):
    """A token was requested after the End token was already consumed."""


class Lexer:
    """
    Peekable token stream over a single line of text.

    Example:
        lexer = Lexer("apply swap")
        lexer.next()                     # Token(APPLY, 'apply', ...)
        lexer.next_if(TokenKind.SYM)     # Token(SYM, 'swap', ...)
        lexer.next()                     # Token(END, '', ...)
        lexer.next()                     # raises LexerExhausted
    """

    def __init__(self, text: str, file_path: str = "<stdin>", row: int = 1):
        self.text = text
        self.file_path = file_path
        self.row = row
        self.pos = 0
        self.exhausted = False
        self._peeked: Optional[Token] = None

    def _loc(self, col: int) -> Loc:
        return Loc(self.file_path, self.row, col)

    def _scan(self) -> Token:
        """Scan the next token from the raw text."""
        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            self.pos += 1

        if self.pos >= len(text):
            if self.exhausted:
                raise LexerExhausted("Completely exhausted lexer")
            self.exhausted = True
            return Token(TokenKind.END, "", self._loc(self.pos))

        start = self.pos
        c = text[start]

        if c in PUNCTUATION:
            self.pos += 1
            return Token(PUNCTUATION[c], c, self._loc(start))

        if c.isalnum() or c == '_':
            while self.pos < len(text) and (text[self.pos].isalnum() or text[self.pos] == '_'):
                self.pos += 1
            name = text[start:self.pos]
            return Token(KEYWORDS.get(name, TokenKind.SYM), name, self._loc(start))

        self.pos += 1
        return Token(TokenKind.INVALID, c, self._loc(start))

    def peek(self) -> Token:
        """Return the next token without consuming it."""
        if self._peeked is None:
            self._peeked = self._scan()
        return self._peeked

    def next(self) -> Token:
        """Consume and return the next token."""
        token = self.peek()
        self._peeked = None
        return token

    def next_if(self, kind: TokenKind) -> Optional[Token]:
        """Consume the next token only if it has the given kind."""
        if self.peek().kind == kind:
            return self.next()
        return None

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        """Iterate up to and including the End token."""
        if self.exhausted and self._peeked is None:
            raise StopIteration
        return self.next()
