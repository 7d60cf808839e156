"""Tests for core rewriter functions."""

import pytest
from noq import T
from noq.errors import FunctorNotSymbol
from noq.rewriter import (
    Atom, Compound, Rule, Bindings, NoMatch,
    match, instantiate, apply_all,
)


class TestTerms:
    """Tests for the term data model."""

    def test_atom_equality(self):
        """Atoms with the same name are equal."""
        assert Atom("x") == Atom("x")
        assert Atom("x") != Atom("y")

    def test_compound_equality(self):
        """Compounds compare name, arity and arguments."""
        assert Compound("f", [Atom("x")]) == Compound("f", [Atom("x")])
        assert Compound("f", [Atom("x")]) != Compound("g", [Atom("x")])
        assert Compound("f", [Atom("x")]) != Compound("f", [Atom("x"), Atom("y")])
        assert Compound("f", [Atom("x")]) != Compound("f", [Atom("y")])

    def test_nullary_compound_is_not_atom(self):
        """f() and f are different terms."""
        assert Compound("f", []) != Atom("f")
        assert Atom("f") != Compound("f", [])

    def test_terms_are_hashable(self):
        """Equal terms hash alike."""
        assert len({T("f(x, y)"), T("f(x, y)"), T("f(y, x)")}) == 2

    def test_terms_are_immutable(self):
        """Attributes cannot be reassigned."""
        with pytest.raises(AttributeError):
            Atom("x").name = "y"
        with pytest.raises(AttributeError):
            Compound("f", []).name = "g"

    def test_args_are_a_tuple(self):
        """Arguments are copied into a tuple."""
        args = [Atom("x")]
        term = Compound("f", args)
        args.append(Atom("y"))
        assert term.args == (Atom("x"),)
        assert term.arity == 1

    def test_str(self):
        """Terms render as name or name(args)."""
        assert str(Atom("x")) == "x"
        assert str(Compound("f", [])) == "f()"
        assert str(T("f(x, g(y, z))")) == "f(x, g(y, z))"


class TestMatch:
    """Tests for pattern matching."""

    def test_atom_matches_anything(self):
        """An atom pattern binds whatever it meets."""
        assert match(Atom("a"), T("f(x)")) == Bindings({"a": T("f(x)")})
        assert match(Atom("a"), Atom("x")) == Bindings({"a": Atom("x")})

    def test_compound_structure(self):
        """Compound patterns bind their atoms positionally."""
        bindings = match(T("swap(pair(a, b))"), T("swap(pair(f(a), g(b)))"))
        assert bindings["a"] == T("f(a)")
        assert bindings["b"] == T("g(b)")
        assert len(bindings) == 2

    def test_name_mismatch(self):
        """Different functor names fail."""
        assert match(T("f(a)"), T("g(x)")) is NoMatch

    def test_arity_mismatch(self):
        """Different arities fail."""
        assert match(T("f(a)"), T("f(x, y)")) is NoMatch
        assert match(T("f()"), T("f(x)")) is NoMatch

    def test_compound_against_atom(self):
        """A compound pattern never matches an atom."""
        assert match(T("f(a)"), Atom("f")) is NoMatch
        assert match(T("f()"), Atom("f")) is NoMatch

    def test_nullary_compound(self):
        """f() matches f() with no bindings, and the result is still truthy."""
        bindings = match(T("f()"), T("f()"))
        assert bindings
        assert len(bindings) == 0

    def test_repeated_variable_consistent(self):
        """Repeated atoms must bind equal terms."""
        assert match(T("f(a, a)"), T("f(x, x)")) == Bindings({"a": Atom("x")})
        assert match(T("f(a, a)"), T("f(g(x), g(x))")) == Bindings({"a": T("g(x)")})

    def test_repeated_variable_inconsistent(self):
        """Repeated atoms with different terms fail."""
        assert match(T("f(a, a)"), T("f(x, y)")) is NoMatch
        assert match(T("f(a, g(a))"), T("f(x, g(y))")) is NoMatch

    def test_bindings_threaded_through_nested_args(self):
        """Bindings made in earlier arguments constrain later ones."""
        assert match(T("f(g(a), h(b, a))"), T("f(g(x), h(y, x))"))
        assert not match(T("f(g(a), h(b, a))"), T("f(g(x), h(y, z))"))

    def test_functor_names_are_not_variables(self):
        """Functor names are compared literally when matching."""
        assert match(T("f(x)"), T("g(x)")) is NoMatch

    @pytest.mark.parametrize("pattern,value", [
        ("a", "x"),
        ("f(a, b)", "f(x, g(y))"),
        ("swap(pair(a, b))", "swap(pair(f(a), g(b)))"),
        ("f(a, a, b)", "f(h(x), h(x), y)"),
        ("f()", "f()"),
    ])
    def test_match_soundness(self, pattern, value):
        """Instantiating the pattern with its bindings gives back the value."""
        bindings = match(T(pattern), T(value))
        assert bindings
        assert instantiate(bindings, T(pattern)) == T(value)


class TestInstantiate:
    """Tests for substitution."""

    def test_bound_atom(self):
        """Bound atoms are replaced."""
        assert instantiate({"a": T("f(x)")}, Atom("a")) == T("f(x)")

    def test_unbound_atom_stays_literal(self):
        """Unbound atoms are kept."""
        assert instantiate({"a": Atom("x")}, Atom("c")) == Atom("c")

    def test_compound_arguments(self):
        """Arguments are instantiated recursively."""
        bindings = {"a": T("f(a)"), "b": T("g(b)")}
        assert instantiate(bindings, T("pair(b, a)")) == T("pair(g(b), f(a))")

    def test_accepts_bindings_object(self):
        """Bindings and plain dicts both work."""
        bindings = match(T("f(a)"), T("f(x)"))
        assert instantiate(bindings, T("g(a, a)")) == T("g(x, x)")

    def test_functor_renamed_by_atom(self):
        """A functor bound to an atom is renamed."""
        assert instantiate({"op": Atom("plus")}, T("op(x, y)")) == T("plus(x, y)")

    def test_functor_unbound(self):
        """Unbound functors keep their name."""
        assert instantiate({}, T("op(x)")) == T("op(x)")

    def test_functor_bound_to_compound(self):
        """A functor bound to a compound is an error."""
        with pytest.raises(FunctorNotSymbol) as excinfo:
            instantiate({"op": T("g(y)")}, T("op(x)"))
        assert excinfo.value.name == "op"
        assert excinfo.value.value == T("g(y)")

    def test_does_not_mutate_inputs(self):
        """Instantiation leaves bindings and template untouched."""
        bindings = {"a": Atom("x")}
        template = T("f(a, b)")
        instantiate(bindings, template)
        assert bindings == {"a": Atom("x")}
        assert template == T("f(a, b)")


class TestApplyAll:
    """Tests for the single-layer rewrite."""

    def setup_method(self):
        self.swap = Rule(T("swap(pair(a, b))"), T("pair(b, a)"))

    def test_sibling_matches_rewritten_together(self):
        """Both sibling matches are rewritten in a single call."""
        term = T("foo(swap(pair(f(a), g(b))), swap(pair(q(c), z(d))))")
        expected = T("foo(pair(g(b), f(a)), pair(z(d), q(c)))")
        assert apply_all(self.swap, term) == expected

    def test_method_form(self):
        """Rule.apply_all delegates to apply_all."""
        term = T("swap(pair(x, y))")
        assert self.swap.apply_all(term) == T("pair(y, x)")

    def test_no_match_is_identity(self):
        """Without a matching subterm the term is unchanged."""
        term = T("foo(pair(x, y), bar(z))")
        assert apply_all(self.swap, term) == term
        assert apply_all(self.swap, Atom("x")) == Atom("x")

    def test_no_redescent_into_result(self):
        """The produced body is not rewritten again."""
        rule = Rule(T("f(a)"), T("f(f(a))"))
        assert apply_all(rule, T("f(x)")) == T("f(f(x))")

    def test_outer_match_suppresses_inner(self):
        """A match at the root hides matches inside the matched subterm."""
        rule = Rule(T("f(a)"), T("g(a)"))
        assert apply_all(rule, T("f(f(x))")) == T("g(f(x))")

    def test_not_a_fixpoint(self):
        """Each call performs one layer only."""
        rule = Rule(T("s(a)"), Atom("a"))
        once = apply_all(rule, T("s(s(s(z)))"))
        assert once == T("s(s(z))")
        assert apply_all(rule, once) == T("s(z)")

    def test_atom_head_rewrites_root(self):
        """An atom head matches the whole term."""
        rule = Rule(Atom("a"), T("wrap(a)"))
        assert apply_all(rule, T("f(x, y)")) == T("wrap(f(x, y))")

    def test_nested_match_below_non_matching_root(self):
        """Matching continues below a root that does not match."""
        rule = Rule(T("neg(neg(a))"), Atom("a"))
        term = T("and(neg(neg(p)), or(q, neg(neg(r))))")
        assert apply_all(rule, term) == T("and(p, or(q, r))")

    def test_functor_error_propagates(self):
        """A compound in functor position aborts the rewrite."""
        rule = Rule(T("call(f, x)"), T("f(x)"))
        assert apply_all(rule, T("call(g, y)")) == T("g(y)")
        with pytest.raises(FunctorNotSymbol):
            apply_all(rule, T("call(h(z), y)"))

    def test_does_not_mutate_input(self):
        """The input term is left intact."""
        term = T("foo(swap(pair(x, y)))")
        apply_all(self.swap, term)
        assert term == T("foo(swap(pair(x, y)))")


class TestRule:
    """Tests for the Rule class."""

    def test_str(self):
        """Rules render as head = body."""
        rule = Rule(T("swap(pair(a, b))"), T("pair(b, a)"))
        assert str(rule) == "swap(pair(a, b)) = pair(b, a)"

    def test_equality_ignores_location(self):
        """Rules compare by head and body."""
        assert Rule(Atom("a"), Atom("b")) == Rule(Atom("a"), Atom("b"), loc=None)
        assert Rule(Atom("a"), Atom("b")) != Rule(Atom("b"), Atom("a"))
