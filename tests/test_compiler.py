import logging

import pytest

from textpegs.config import read_config
from textpegs.functions import match_len
from textpegs.parser import PegError, row_and_col, condition_string
from textpegs.parser import rules as r
from textpegs.parser.compiler import compile, compile_file, space_cost


def assert_error(text, message, line=None, col=None):
    with pytest.raises(PegError) as excinfo:
        compile(text)
    e = excinfo.value
    assert message in e.message
    if line is not None:
        assert (e.line, e.col) == (line, col)
    return e


def test_row_and_col():
    s = "ab\ncd\n\nef"
    assert row_and_col(s, 0) == (1, 1)
    assert row_and_col(s, 1) == (1, 2)
    assert row_and_col(s, 3) == (2, 1)
    assert row_and_col(s, 4) == (2, 2)
    assert row_and_col(s, 7) == (4, 1)


def test_condition_string():
    assert condition_string(u"\ufeffa\r\nb\rc") == "a\nb\nc"


def test_literals():
    assert compile("'abc'") == r.term("abc")
    assert compile('"abc"') == r.term("abc")
    assert compile("'a'") == r.char("a")
    assert compile("''") is r.empty_
    assert compile("i'abc'").kind == r.TERMINAL_I
    assert compile("y'abc'").kind == r.TERMINAL_Y


def test_escapes():
    assert compile("'\\x41\\t'") == r.term("A\t")
    assert compile("'\\u00e9'") == r.char(u"é")
    assert compile("'\\65\\66'") == r.term("AB")
    assert compile("'it\\'s'") == r.term("it's")
    assert compile("v'\\n'") == r.term("\\n")
    assert compile("\\t") == r.char("\t")


def test_choice_of_chars_is_a_charset():
    p = compile("'a' / 'b' / [c-e]")
    assert p.kind == r.CHARSET
    assert p.chars == frozenset("abcde")

    p = compile("'a' / 'ab'")
    assert p.kind == r.CHOICE


def test_repetition_kinds():
    assert compile("'a'*").kind == r.GREEDY_REP_CHAR
    assert compile("[a-z]*").kind == r.GREEDY_REP_SET
    assert compile(".*") is r.staranything
    assert compile("'ab'*").kind == r.GREEDY_REP
    assert compile("'a'+") == r.sequence(r.char("a"), r.star(r.char("a")))
    assert compile("'ab'?").kind == r.OPTION


def test_prefix_binds_looser_than_suffix():
    p = compile("!'a'*")
    assert p.kind == r.NOT
    assert p.rule.kind == r.GREEDY_REP_CHAR

    p = compile("(!'a')*")
    assert p.kind == r.GREEDY_REP
    assert p.rule.kind == r.NOT


def test_character_classes():
    p = compile("[^,]")
    assert p.negated
    assert p.chars == frozenset(",")

    p = compile("[\\d_]")
    assert p.chars == frozenset("0123456789_")

    p = compile("[a-]")
    assert p.chars == frozenset("a-")

    p = compile("[\\]\\\\]")
    assert p.chars == frozenset("]\\")


def test_builtins():
    assert compile("\\d") == r.builtin_sets["d"]
    assert compile("\\W") == r.builtin_sets["W"]
    assert compile("\\n") is r.newline_
    assert compile("\\letter") is r.letter_
    assert compile("\\white") is r.white_
    assert compile("\\ident") == r.ident()
    assert compile(".") is r.any_
    assert compile("_") is r.anyrune
    assert compile("^") is r.startanchor
    assert compile("$") == r.end_anchor()


def test_capture_numbering_is_preorder():
    p = compile("{'a'} {{'b'} 'c'}")
    assert p.capture_count == 3
    first, second = p.rules
    assert first.index == 0
    assert second.index == 1
    assert second.rule.rules[0].index == 2


def test_backrefs():
    p = compile("{'a'} $1 i$1 y$1")
    kinds = [n.kind for n in p.rules[1:]]
    assert kinds == [r.BACKREF, r.BACKREF_I, r.BACKREF_Y]
    assert all(n.index == 0 for n in p.rules[1:])


def test_comments_and_whitespace():
    p = compile("'a'  # first\n\t'b' # second")
    assert p == r.sequence(r.char("a"), r.char("b"))


def test_skip():
    p = compile("\\skip \\s* 'a' 'b'")
    assert match_len("  a   b", p) == 7
    assert match_len("ab", p) == 2


def test_grammar():
    g = compile("""
    Expr <- Term ('+' Term)*
    Term <- [0-9]+
    """)
    assert g.kind == r.LIST
    assert [d.nt.name for d in g.rules] == ["Expr", "Term"]
    assert match_len("1+22+3", g) == 6
    assert match_len("1+", g) == 1
    assert match_len("+1", g) == -1


def test_recursive_grammar():
    g = compile("Parens <- '(' Parens* ')'")
    assert match_len("(()())", g) == 6
    assert match_len("(()", g) == -1


def test_inlining():
    text = """
    S <- D E
    D <- [0-9]
    E <- D '.'
    """
    g = compile(text)
    e = g.nonterminals()["E"]
    assert e.rule.rules[0].kind == r.CHARSET
    assert match_len("12.", g) == 3

    g = compile(text, inline_threshold=0)
    e = g.nonterminals()["E"]
    assert e.rule.rules[0].kind == r.NONTERMINAL
    assert match_len("12.", g) == 3


def test_space_cost():
    assert space_cost(r.empty_) == 0
    assert space_cost(r.char("a")) == 1
    assert space_cost(r.sequence("ab", "c", "d")) == 3
    assert space_cost(r.sequence(*"abcdefgh"), limit=5) == 5
    assert space_cost(r.capture("a")) == 6
    assert space_cost(r.sequence("a", r.captured_search("b"))) >= 5


def test_unused_rule_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="textpegs"):
        compile("Used <- 'a'\nUnused <- 'b'")
    assert "unused rule: Unused" in caplog.text


def test_compile_cache():
    assert compile("'cached' 'pattern'") is compile("'cached' 'pattern'")


def test_compile_cache_respects_capture_capacity():
    text = "{'a'} {'b'}"
    assert compile(text).capture_count == 2

    cfg = read_config()
    cfg["MAX_SUBPATTERNS"] = 1
    with pytest.raises(PegError) as excinfo:
        compile(text, config=cfg)
    assert "too many captures" in str(excinfo.value)


def test_error_locations():
    e = assert_error("'a'\n  'b' )", "unbalanced", 2, 7)
    assert str(e) == "pattern(2,7) unbalanced ')'"

    assert_error("'abc", "unterminated string literal", 1, 1)
    assert_error("[abc", "unterminated character class", 1, 1)
    assert_error("'x' [z-a]", "invalid range", 1, 6)
    assert_error("('a'", "expected")
    assert_error("?", "expression expected")


def test_errors():
    assert_error("foo", "undeclared identifier: foo")
    assert_error("'a' $1", "invalid back reference index: 1")
    assert_error("{'a'} $2", "invalid back reference index: 2")
    assert_error("\\q", "invalid escape sequence")
    assert_error("\\bogus", "unknown built-in: bogus")
    assert_error("{'a'}" * 21, "too many captures")
    assert_error("i$", "invalid back reference")
    assert_error("y$x", "invalid back reference")
    assert_error("'a' i$", "invalid back reference", 1, 6)


def test_grammar_errors():
    assert_error("A <- B\n", "undeclared identifier: B", 1, 6)
    assert_error("A <- 'a'\nA <- 'b'", "attempt to redefine: A", 2, 1)
    assert_error("A <- 'a' )", "rule definition expected")


def test_compile_file(tmp_path):
    path = tmp_path / "number.peg"
    path.write_bytes(u"\ufeffNum <- [0-9]+\r\n".encode("utf-8"))
    g = compile_file(str(path))
    assert match_len("123", g) == 3

    bad = tmp_path / "bad.peg"
    bad.write_bytes(b"Num <- [0-9\n")
    with pytest.raises(PegError) as excinfo:
        compile_file(str(bad))
    assert str(excinfo.value).startswith(str(bad) + "(1,8)")
