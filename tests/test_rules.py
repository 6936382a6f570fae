import io

import pytest

from textpegs.functions import match, match_len
from textpegs.parser import PegError
from textpegs.parser import rules as r
from textpegs.parser.compiler import compile


round_trip_patterns = [
    "'ab'* 'c'",
    "{[0-9]+} '-' {[0-9]+}",
    "{'a'} (i$1 / y$1 / $1)",
    "@'x' {@}'y' ^ \\n \\letter _ .",
    "!('a' 'b')* &'c'? 'd'+",
    "i'Hello' y'foo_bar' [^\\]\\-a-z] $",
    "'it\\'s\\t\\x01'",
    "{[a-z]}+ '-' $1",
    "{'a'}+",
    "({'a'} 'b')+ $1",
    "{'a'}?+ {'b'}*+",
]


@pytest.mark.parametrize("text", round_trip_patterns)
def test_render_round_trip(text):
    p = compile(text)
    assert compile(r.render(p)) == p


@pytest.mark.parametrize("text, subject", [
    ("{[a-z]}+ '-' $1", "ab-b"),
    ("{'a'}+", "aa"),
    ("({'a'} 'b')+ $1", "ababa"),
])
def test_render_round_trip_keeps_captures(text, subject):
    p = compile(text)
    q = compile(r.render(p))
    assert match_len(subject, q) == match_len(subject, p) == len(subject)
    assert match(subject, q).groups() == match(subject, p).groups()


def test_render_plus():
    assert r.render(compile("{'a'}+")) == "({'a'}+)"
    assert r.render(compile("('a' {'b'})+")) == "(('a' {'b'})+)"
    assert r.render(compile("'a'+")) == "('a' 'a'*)"


def test_captures_in_rules_are_not_inlined():
    g = compile("S <- B\nA <- {'x'}\nB <- A $1")
    text = r.render(g)
    assert "B <- (A $1)" in text
    assert match_len("xx", g) == 2
    assert match_len("xx", compile(text)) == 2
    assert compile(text) == g


def test_render_grammar_round_trip():
    g = compile("A <- 'a' B\nB <- 'b' / A", inline_threshold=0)
    text = r.render(g)
    assert text == "A <- ('a' B)\nB <- ('b' / A)\n"
    assert compile(text, inline_threshold=0) == g


def test_render():
    assert r.render(compile("'a' / 'b' / 'c'")) == "[a-c]"
    assert r.render(compile("'ab' / 'c'")) == "('ab' / 'c')"
    assert r.render(compile("(!'a')*")) == "(!'a')*"
    assert r.render(compile("''")) == "''"
    assert str(compile("{'x'}")) == "{'x'}"


def test_charset_string():
    assert r.charset_string("abcdef") == "[a-f]"
    assert r.charset_string("ab") == "[ab]"
    assert r.charset_string("^-]") == "[\\-\\]\\^]"
    assert r.charset_string("a", negated=True) == "[^a]"


def test_quote_string():
    assert r.quote_string("it's") == "'it\\'s'"
    assert r.quote_string("a\nb\\") == "'a\\nb\\\\'"
    assert r.quote_string("\x01") == "'\\x01'"


def test_sequence_flattens():
    p = r.sequence("a", r.sequence("b", "c"), r.empty_)
    assert p.kind == r.SEQUENCE
    assert [n.char for n in p.rules] == ["a", "b", "c"]
    assert r.sequence() is r.empty_
    assert r.sequence("ab") == r.term("ab")


def test_choice():
    assert r.choice("a", "b") == r.charset("ab")
    assert r.choice("a", r.charset("bc")) == r.charset("abc")
    assert r.choice("a", r.charset("b", negated=True)).kind == r.CHOICE
    p = r.choice(r.choice("ab", "cd"), "ef")
    assert len(p.rules) == 3
    with pytest.raises(ValueError):
        r.choice()


def test_star_and_opt():
    assert r.star("a") == r.star(r.char("a"))
    assert r.star("a").kind == r.GREEDY_REP_CHAR
    assert r.star(r.any_char()) is r.staranything
    assert r.star(r.star("ab")) == r.star("ab")
    assert r.opt(r.opt("ab")) == r.opt("ab")
    assert r.plus("ab") == r.sequence("ab", r.star("ab"))


def test_ensure():
    assert r.ensure("abc") == r.term("abc")
    with pytest.raises(TypeError):
        r.ensure(5)
    with pytest.raises(ValueError):
        r.char("ab")


def test_operators():
    p = r.capture("a") + "b"
    assert p.kind == r.SEQUENCE
    p = "a" + r.char("b")
    assert p == r.term("a") + "b"
    assert (r.term("ab") | "cd").kind == r.CHOICE


def test_rule_list():
    expr = r.NonTerminal("Expr")
    num = r.NonTerminal("Num")
    g = r.rule_list(
        r.rule_def(expr, r.nonterminal(num) + r.star("+" + r.nonterminal(num))),
        r.rule_def(num, r.plus(r.charset("0123456789"))),
    )
    assert g == compile("Expr <- Num ('+' Num)*\nNum <- [0-9]+",
                        inline_threshold=0)
    assert set(g.nonterminals()) == set(["Expr", "Num"])

    with pytest.raises(PegError):
        expr.define(r.empty_)


def test_children():
    p = compile("'a' {'b'}")
    assert len(p.children()) == 2
    assert p.children()[1].children() == (r.char("b"), )
    assert r.any_.children() == ()


def test_dump():
    p = compile("{'a'}*")
    out = io.StringIO()
    p.dump(out)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("<Star")
    assert lines[1].startswith("  <Capture 0")
    assert lines[2].startswith("    <Char 'a'")
    assert r.dump_tree(p) == out.getvalue()
