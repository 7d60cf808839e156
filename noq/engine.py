"""
Term parser and shaping session for NOQ

NOQ - interactive equational reasoning by hand-driven rewriting

This module parses terms and command lines from a token stream and runs
the session state machine that sequences the four commands:

    rule <name> <head> = <body>    Define a rule
    shape <term>                   Start shaping a term
    apply <name>                   Rewrite the shaped term with a rule
    done                           Finish shaping

Term syntax:
    x                  - atom
    f()                - compound with no arguments
    f(x, g(y), z)      - compound, arbitrarily nested

Example:
    session = Session()
    session.process_line("rule swap swap(pair(a, b)) = pair(b, a)")
    session.process_line("shape swap(pair(x, y))")
    session.process_line("apply swap").term    # => pair(y, x)
"""

from typing import Dict, List, Optional, Tuple, Union

from .errors import (
    AlreadyShaping, NoShapingInPlace, RuleAlreadyExists, RuleDoesNotExist,
    TermTooDeep, UnexpectedToken,
)
from .lexer import Lexer, Loc, Token, TokenKind, TokenKindSet
from .rewriter import MAX_DEPTH, Atom, Compound, Rule, Term, apply_all, term_depth


# ============================================================
# Term Parser
# ============================================================

def expect_token(tokens: Lexer, kinds: TokenKindSet) -> Token:
    """Consume one token, raising UnexpectedToken unless its kind is in kinds."""
    token = tokens.next()
    if token.kind not in kinds:
        raise UnexpectedToken(kinds, token)
    return token


def parse_term(tokens: Lexer, depth: int = 0) -> Term:
    """
    Parse one term from a token stream.

    Grammar:
        term := Sym | Sym '(' (term (',' term)*)? ')'

    The stream is left positioned right after the term; the caller decides
    whether anything that follows is an error. depth counts the compounds
    enclosing this term; an opening paren that would nest deeper than
    MAX_DEPTH raises TermTooDeep at its location.

    Examples:
        parse_term(Lexer("x"))              -> Atom("x")
        parse_term(Lexer("f()"))            -> Compound("f", [])
        parse_term(Lexer("f(x, g(y))"))     -> Compound("f", [Atom("x"), ...])
    """
    name = expect_token(tokens, TokenKindSet.of(TokenKind.SYM))

    open_paren = tokens.next_if(TokenKind.OPEN_PAREN)
    if open_paren is None:
        return Atom(name.text)
    if depth >= MAX_DEPTH:
        raise TermTooDeep(MAX_DEPTH, open_paren.loc)

    args: List[Term] = []
    if tokens.next_if(TokenKind.CLOSE_PAREN):
        return Compound(name.text, args)

    args.append(parse_term(tokens, depth + 1))
    while tokens.next_if(TokenKind.COMMA):
        args.append(parse_term(tokens, depth + 1))

    expect_token(tokens, TokenKindSet.of(TokenKind.CLOSE_PAREN))
    return Compound(name.text, args)


# ============================================================
# Term Builder
# ============================================================

class _TermBuilder:
    """
    Term builder for NOQ.

    Examples:
        from noq import T

        # Parse a term literal
        term = T("foo(swap(pair(a, b)), c)")

        # Build programmatically; strings become atoms
        term = T.fun("foo", T.fun("swap", T.fun("pair", "a", "b")), "c")

        a, b = T.atoms("a", "b")
    """

    def __call__(self, text: str) -> Term:
        """Parse a complete term literal; trailing tokens are an error."""
        tokens = Lexer(text, file_path="<term>")
        term = parse_term(tokens)
        expect_token(tokens, TokenKindSet.of(TokenKind.END))
        return term

    def atom(self, name: str) -> Atom:
        return Atom(name)

    def atoms(self, *names: str) -> Tuple[Atom, ...]:
        return tuple(Atom(name) for name in names)

    def fun(self, name: str, *args: Union[str, Term]) -> Compound:
        """Build a compound term; string arguments are turned into atoms."""
        return Compound(name, [Atom(arg) if isinstance(arg, str) else arg for arg in args])

    def __repr__(self) -> str:
        return "T (term builder)"


# Singleton instance
T = _TermBuilder()


# ============================================================
# Commands
# ============================================================

class DefineRule:
    """
    rule <name> <head> = <body>

    loc is where the definition starts (the rule keyword); name_loc is
    where its name is, which is what a redefinition error points at.
    """

    def __init__(self, name: str, head: Term, body: Term,
                 loc: Optional[Loc] = None, name_loc: Optional[Loc] = None):
        self.name = name
        self.head = head
        self.body = body
        self.loc = loc
        self.name_loc = name_loc

    def __repr__(self) -> str:
        return f"DefineRule({self.name!r}, {self.head!r}, {self.body!r})"


class Shape:
    """shape <term>"""

    def __init__(self, term: Term):
        self.term = term

    def __repr__(self) -> str:
        return f"Shape({self.term!r})"


class Apply:
    """apply <name>"""

    def __init__(self, rule_name: str):
        self.rule_name = rule_name

    def __repr__(self) -> str:
        return f"Apply({self.rule_name!r})"


class Done:
    """done"""

    def __repr__(self) -> str:
        return "Done()"


Command = Union[DefineRule, Shape, Apply, Done]

COMMAND_KEYWORDS = TokenKindSet.of(TokenKind.RULE, TokenKind.SHAPE, TokenKind.APPLY, TokenKind.DONE)


def parse_command(tokens: Lexer) -> Command:
    """
    Parse one complete command line, including the End token.

    Nothing may follow the command: a stray token raises UnexpectedToken
    before any session state is touched.
    """
    keyword = expect_token(tokens, COMMAND_KEYWORDS)

    if keyword.kind == TokenKind.RULE:
        name = expect_token(tokens, TokenKindSet.of(TokenKind.SYM))
        head = parse_term(tokens)
        expect_token(tokens, TokenKindSet.of(TokenKind.EQUALS))
        body = parse_term(tokens)
        command = DefineRule(name.text, head, body, keyword.loc, name.loc)
    elif keyword.kind == TokenKind.SHAPE:
        command = Shape(parse_term(tokens))
    elif keyword.kind == TokenKind.APPLY:
        name = expect_token(tokens, TokenKindSet.of(TokenKind.SYM))
        command = Apply(name.text)
    else:
        command = Done()

    expect_token(tokens, TokenKindSet.of(TokenKind.END))
    return command


# ============================================================
# Shaping History
# ============================================================

class ShapingStep:
    """A single rule application while shaping."""

    def __init__(self, rule_name: str, before: Term, after: Term):
        self.rule_name = rule_name
        self.before = before
        self.after = after

    def __repr__(self) -> str:
        return f"{self.rule_name}: {self.before} → {self.after}"


def format_chain(final: Term, steps: List[ShapingStep]) -> str:
    """
    Show a shaping as a chain of transformations.

        swap(pair(x, y))
          --(swap)-->
        pair(y, x)
    """
    if not steps:
        return str(final)
    parts = [str(steps[0].before)]
    for step in steps:
        parts.append(f"  --({step.rule_name})-->")
        parts.append(str(step.after))
    return "\n".join(parts)


class CommandResult:
    """
    What a successful command reports.

    Attributes:
        command: The executed command
        rule: The new rule (DefineRule)
        term: The shaped term (Shape), the rewritten term (Apply)
            or the final term (Done)
        steps: The shaping history, for Done
    """

    def __init__(self, command: Command, term: Optional[Term] = None,
                 rule: Optional[Rule] = None, steps: Optional[List[ShapingStep]] = None):
        self.command = command
        self.term = term
        self.rule = rule
        self.steps = steps or []

    def __repr__(self) -> str:
        return f"CommandResult({self.command!r}, term={self.term!r})"


# ============================================================
# Session
# ============================================================

class Session:
    """
    The rule table and the term being shaped.

    A session is Idle while current_term is None and Shaping otherwise.
    Every command either succeeds or raises a NoqError, and a failing
    command leaves the rule table, the current term and the history
    exactly as they were.

    Example:
        session = Session()
        session.define_rule("swap", T("swap(pair(a, b))"), T("pair(b, a)"))
        session.shape(T("foo(swap(pair(x, y)))"))
        session.apply("swap")     # => foo(pair(y, x))
        session.done()            # => (foo(pair(y, x)), [ShapingStep(...)])
    """

    def __init__(self):
        self.rules: Dict[str, Rule] = {}
        self.current_term: Optional[Term] = None
        self.history: List[ShapingStep] = []

    @property
    def shaping(self) -> bool:
        return self.current_term is not None

    def _check_depth(self, term: Term):
        if term_depth(term) > MAX_DEPTH:
            raise TermTooDeep(MAX_DEPTH)

    def define_rule(self, name: str, head: Term, body: Term,
                    loc: Optional[Loc] = None, name_loc: Optional[Loc] = None) -> Rule:
        """
        Add a rule. Valid in any state; names cannot be redefined.

        A redefinition error is reported at name_loc when given, else at loc,
        and notes the loc of the first definition.
        """
        existing = self.rules.get(name)
        if existing is not None:
            raise RuleAlreadyExists(name, name_loc or loc, existing.loc)
        self._check_depth(head)
        self._check_depth(body)
        rule = Rule(head, body, loc)
        self.rules[name] = rule
        return rule

    def shape(self, term: Term) -> Term:
        """Start shaping a term. Only valid while idle."""
        if self.shaping:
            raise AlreadyShaping()
        self._check_depth(term)
        self.current_term = term
        self.history = []
        return term

    def apply(self, rule_name: str) -> Term:
        """Rewrite the shaped term with one layer of the named rule."""
        if not self.shaping:
            raise NoShapingInPlace()
        rule = self.rules.get(rule_name)
        if rule is None:
            raise RuleDoesNotExist(rule_name)

        before = self.current_term
        after = apply_all(rule, before)
        self._check_depth(after)
        self.current_term = after
        self.history.append(ShapingStep(rule_name, before, after))
        return after

    def done(self) -> Tuple[Term, List[ShapingStep]]:
        """Finish shaping, returning the final term and its history."""
        if not self.shaping:
            raise NoShapingInPlace()
        term, steps = self.current_term, self.history
        self.current_term = None
        self.history = []
        return term, steps

    def execute(self, command: Command) -> CommandResult:
        """Run a parsed command against the session."""
        if isinstance(command, DefineRule):
            rule = self.define_rule(command.name, command.head, command.body,
                                    command.loc, command.name_loc)
            return CommandResult(command, rule=rule)
        elif isinstance(command, Shape):
            return CommandResult(command, term=self.shape(command.term))
        elif isinstance(command, Apply):
            return CommandResult(command, term=self.apply(command.rule_name))
        elif isinstance(command, Done):
            term, steps = self.done()
            return CommandResult(command, term=term, steps=steps)
        raise TypeError(f"Not a command: {command!r}")

    def process_command(self, tokens: Lexer) -> CommandResult:
        """Parse a full command line from tokens and execute it."""
        return self.execute(parse_command(tokens))

    def process_line(self, line: str, file_path: str = "<stdin>", row: int = 1) -> CommandResult:
        """Lex, parse and execute one line of input."""
        return self.process_command(Lexer(line, file_path=file_path, row=row))

    def list_rules(self) -> List[str]:
        """List all rules as 'name: head = body'."""
        return [f"{name}: {rule}" for name, rule in self.rules.items()]

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, name: str) -> bool:
        return name in self.rules

    def __repr__(self) -> str:
        state = f"shaping {self.current_term}" if self.shaping else "idle"
        return f"Session({len(self)} rules, {state})"
