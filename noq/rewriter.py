"""
Core rewriter module for equational term rewriting.

NOQ - interactive equational reasoning by hand-driven rewriting

This module provides the term data model, pattern matching, instantiation
and the single-layer rewrite used by the `apply` command.
"""

from typing import Dict, Optional, Union

from .errors import FunctorNotSymbol
from .lexer import Loc


# ============================================================
# Term Model
# ============================================================

class Atom:
    """
    A nullary named term.

    Inside a rule head an atom doubles as a pattern variable: it matches
    anything, and repeated occurrences must match equal terms.

    Examples:
        Atom("x")                 # x
        Atom("x") == Atom("x")    # True
    """

    __slots__ = ('name',)

    def __init__(self, name: str):
        object.__setattr__(self, 'name', name)

    def __setattr__(self, key, value):
        raise AttributeError("Atom is immutable")

    def __eq__(self, other):
        if isinstance(other, Atom):
            return self.name == other.name
        return False

    def __hash__(self):
        return hash(('atom', self.name))

    def __repr__(self) -> str:
        return f"Atom({self.name!r})"

    def __str__(self) -> str:
        return self.name


class Compound:
    """
    A named functor applied to an ordered tuple of argument terms.

    Examples:
        Compound("pair", [Atom("a"), Atom("b")])   # pair(a, b)
        Compound("nil", [])                        # nil()
    """

    __slots__ = ('name', 'args')

    def __init__(self, name: str, args=()):
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'args', tuple(args))

    def __setattr__(self, key, value):
        raise AttributeError("Compound is immutable")

    @property
    def arity(self) -> int:
        return len(self.args)

    def __eq__(self, other):
        if isinstance(other, Compound):
            return self.name == other.name and self.args == other.args
        return False

    def __hash__(self):
        return hash(('compound', self.name, self.args))

    def __repr__(self) -> str:
        return f"Compound({self.name!r}, {list(self.args)!r})"

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(arg) for arg in self.args)})"


# Type aliases
Term = Union[Atom, Compound]
BindingsDict = Dict[str, Term]

# Deepest nesting of compounds a session accepts
MAX_DEPTH = 200


def term_depth(term: Term) -> int:
    """
    Nesting depth of compounds in a term; an atom has depth 0.

        term_depth(T("x"))           # => 0
        term_depth(T("f(g(x), y)"))  # => 2
    """
    depth = 0
    stack = [(term, 0)]
    while stack:
        current, level = stack.pop()
        if isinstance(current, Compound):
            level += 1
            depth = max(depth, level)
            stack.extend((arg, level) for arg in current.args)
    return depth


# ============================================================
# Bindings Class - Dict-like interface for match results
# ============================================================

class Bindings:
    """
    Dict-like wrapper for pattern matching bindings.

        if bindings := match(head, term):
            print(bindings["a"], bindings["b"])

    Bindings objects are truthy when a match succeeded, even when nothing
    was bound. Use NoMatch (which is falsy) to represent failed matches.
    """

    __slots__ = ('_dict',)

    def __init__(self, mapping: Optional[BindingsDict] = None):
        self._dict = dict(mapping or {})

    def __bool__(self) -> bool:
        return True

    def __getitem__(self, key: str) -> Term:
        return self._dict[key]

    def get(self, key: str, default=None):
        return self._dict.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._dict

    def items(self):
        return self._dict.items()

    def __iter__(self):
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}: {value}" for name, value in self._dict.items())
        return f"Bindings({{{inner}}})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return self._dict == other._dict
        return False

    def to_dict(self) -> BindingsDict:
        """Convert to a plain dictionary."""
        return self._dict.copy()


class _NoMatch:
    """
    Singleton representing a failed pattern match.

    NoMatch is falsy, allowing natural use in conditionals:

        if bindings := match(pattern, term):
            # matched
        else:
            # NoMatch
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatch"

    def __getitem__(self, key: str):
        raise KeyError(f"NoMatch has no binding for '{key}'")

    def get(self, key: str, default=None):
        return default

    def __contains__(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter([])


# Singleton instance
NoMatch = _NoMatch()


# ============================================================
# Pattern Matching
# ============================================================

def match_into(pattern: Term, value: Term, bindings: BindingsDict) -> bool:
    """
    Match a pattern against a value, extending bindings in place.

    Args:
        pattern: The rule head (or a part of it)
        value: The term to match against
        bindings: Accumulated bindings, threaded through every argument

    Returns:
        True on success. On failure the accumulator may hold partial
        bindings and must be discarded by the caller.
    """
    if isinstance(pattern, Atom):
        bound = bindings.get(pattern.name)
        if bound is not None:
            return bound == value
        bindings[pattern.name] = value
        return True

    if isinstance(value, Compound):
        if pattern.name != value.name or len(pattern.args) != len(value.args):
            return False
        for pat_arg, val_arg in zip(pattern.args, value.args):
            if not match_into(pat_arg, val_arg, bindings):
                return False
        return True

    # Compound pattern against an atom
    return False


def match(pattern: Term, value: Term) -> Union[Bindings, _NoMatch]:
    """
    Match a pattern against a ground value.

    Every atom in the pattern is a variable. The first occurrence binds it,
    later occurrences must match a structurally equal term:

        match(T("f(a, a)"), T("f(x, x)"))  # => Bindings({a: x})
        match(T("f(a, a)"), T("f(x, y)"))  # => NoMatch

    Returns:
        Bindings if matched, NoMatch if not
    """
    bindings: BindingsDict = {}
    if match_into(pattern, value, bindings):
        return Bindings(bindings)
    return NoMatch


# ============================================================
# Instantiation
# ============================================================

def instantiate(bindings: Union[Bindings, BindingsDict], template: Term) -> Term:
    """
    Instantiate a template with bindings.

    Bound atoms are replaced by their terms and unbound atoms are kept as
    literals. A compound's functor name is itself substituted when it is
    bound to an atom:

        instantiate({"f": Atom("g")}, T("f(x)"))  # => g(x)

    Raises:
        FunctorNotSymbol: if a functor name is bound to a compound term
    """
    if isinstance(template, Atom):
        return bindings.get(template.name, template)

    name = template.name
    bound = bindings.get(name)
    if isinstance(bound, Atom):
        name = bound.name
    elif bound is not None:
        raise FunctorNotSymbol(template.name, bound)

    return Compound(name, [instantiate(bindings, arg) for arg in template.args])


# ============================================================
# Rules and Rewriting
# ============================================================

class Rule:
    """An equation head = body, with the location it was defined at."""

    __slots__ = ('head', 'body', 'loc')

    def __init__(self, head: Term, body: Term, loc: Optional[Loc] = None):
        self.head = head
        self.body = body
        self.loc = loc

    def apply_all(self, term: Term) -> Term:
        return apply_all(self, term)

    def __eq__(self, other):
        if isinstance(other, Rule):
            return self.head == other.head and self.body == other.body
        return False

    def __repr__(self) -> str:
        return f"Rule({self.head!r}, {self.body!r})"

    def __str__(self) -> str:
        return f"{self.head} = {self.body}"


def apply_all(rule: Rule, term: Term) -> Term:
    """
    Rewrite every outermost subterm matching the rule head, once.

    A subterm whose root matches is replaced by the instantiated body and
    neither the replacement nor the original subterm is searched further.
    Otherwise every argument is rewritten independently, so disjoint
    sibling matches are all replaced in a single call:

        swap(pair(a, b)) = pair(b, a)
        foo(swap(pair(x, y)), swap(pair(z, w)))
            => foo(pair(y, x), pair(w, z))

    There is no repetition to a fixpoint.
    """
    bindings = match(rule.head, term)
    if bindings:
        return instantiate(bindings, rule.body)

    if isinstance(term, Atom):
        return term

    return Compound(term.name, [apply_all(rule, arg) for arg in term.args])
