# Copyright 2017 Matt Chaput. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MATT CHAPUT ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL MATT CHAPUT OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of Matt Chaput.

"""
This module defines the node kinds a compiled pattern is made of, the
functions for building patterns directly in Python, and functions for turning
a pattern back into grammar text.

Every node has a ``kind`` tag. The matching engine dispatches on the tag, so the
classes here only hold data: which children a node owns and whatever payload
(text, character, character set, capture slot) its kind needs.
"""

from string import ascii_letters, digits

from textpegs.parser import PegError


# Node kinds

EMPTY = "empty"
ANY = "any"
ANYRUNE = "anyrune"
NEWLINE = "newline"
LETTER = "letter"
LOWER = "lower"
UPPER = "upper"
TITLE = "title"
WHITE = "white"
TERMINAL = "terminal"
TERMINAL_I = "terminal_i"
TERMINAL_Y = "terminal_y"
CHAR = "char"
CHARSET = "charset"
NONTERMINAL = "nonterminal"
SEQUENCE = "sequence"
CHOICE = "choice"
GREEDY_REP = "greedy_rep"
GREEDY_REP_CHAR = "greedy_rep_char"
GREEDY_REP_SET = "greedy_rep_set"
GREEDY_ANY = "greedy_any"
OPTION = "option"
AND = "and"
NOT = "not"
CAPTURE = "capture"
BACKREF = "backref"
BACKREF_I = "backref_i"
BACKREF_Y = "backref_y"
SEARCH = "search"
CAPTURED_SEARCH = "captured_search"
RULE = "rule"
LIST = "list"
START_ANCHOR = "start_anchor"

KINDS = frozenset([
    EMPTY, ANY, ANYRUNE, NEWLINE, LETTER, LOWER, UPPER, TITLE, WHITE,
    TERMINAL, TERMINAL_I, TERMINAL_Y, CHAR, CHARSET, NONTERMINAL, SEQUENCE,
    CHOICE, GREEDY_REP, GREEDY_REP_CHAR, GREEDY_REP_SET, GREEDY_ANY, OPTION,
    AND, NOT, CAPTURE, BACKREF, BACKREF_I, BACKREF_Y, SEARCH, CAPTURED_SEARCH,
    RULE, LIST, START_ANCHOR,
])

REPEAT_KINDS = frozenset([GREEDY_REP, GREEDY_REP_CHAR, GREEDY_REP_SET,
                          GREEDY_ANY])
PREFIX_KINDS = frozenset([AND, NOT, SEARCH, CAPTURED_SEARCH])

# The builtin names for the unicode class kinds, used when rendering
category_names = {
    LETTER: "letter",
    LOWER: "lower",
    UPPER: "upper",
    TITLE: "title",
    WHITE: "white",
}

# NonTerminal flags
DECLARED = "declared"
USED = "used"

# Default number of capture slots in a capture table
MAX_SUBPATTERNS = 20


# Rules

class Rule(object):
    """
    Base class for all pattern nodes.
    """

    kind = None

    def __repr__(self):
        rep = self._repr()
        if rep:
            return "<%s %s>" % (type(self).__name__, rep)
        else:
            return "<%s>" % type(self).__name__

    def __str__(self):
        return render(self)

    def __eq__(self, other):
        return type(self) is type(other) and self._key() == other._key()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._key())

    def __add__(self, other):
        return sequence(self, ensure(other))

    def __radd__(self, other):
        return sequence(ensure(other), self)

    def __or__(self, other):
        return choice(self, ensure(other))

    def __ror__(self, other):
        return choice(ensure(other), self)

    def _repr(self):
        return

    def _key(self):
        return (self.kind, tuple(self.children()))

    def children(self):
        return ()

    def dump(self, stream=None):
        import sys

        stream = stream or sys.stdout
        stream.write(dump_tree(self))


class SingletonRule(Rule):
    """
    Base class for rules without a payload, which only ever need one instance.
    """

    def _key(self):
        return (self.kind, )


class Empty(SingletonRule):
    """
    Always matches without consuming anything.
    """

    kind = EMPTY


class AnyChar(SingletonRule):
    """
    Matches any single character.
    """

    kind = ANY


class AnyRune(SingletonRule):
    """
    Matches any single unicode codepoint.
    """

    kind = ANYRUNE


class Newline(SingletonRule):
    """
    Matches a line break: CR LF, LF, or CR.
    """

    kind = NEWLINE


class StartAnchor(SingletonRule):
    """
    Matches (without consuming anything) only at the position where the
    top-level match attempt started.
    """

    kind = START_ANCHOR


class Category(SingletonRule):
    """
    Matches a single character in one of the unicode classes (letter, lower
    case, upper case, title case, whitespace).
    """

    def __init__(self, kind):
        assert kind in category_names, kind
        self.kind = kind

    def _repr(self):
        return self.kind


# Make instances of the singleton rules. Other code should use these instead of
# instantiating the rules.
empty_ = Empty()
any_ = AnyChar()
anyrune = AnyRune()
newline_ = Newline()
startanchor = StartAnchor()
letter_ = Category(LETTER)
lower_ = Category(LOWER)
upper_ = Category(UPPER)
title_ = Category(TITLE)
white_ = Category(WHITE)


class Terminal(Rule):
    """
    Matches a literal string, either exactly, ignoring case, or ignoring case
    and underscores ("style insensitive").
    """

    def __init__(self, text, kind=TERMINAL):
        assert kind in (TERMINAL, TERMINAL_I, TERMINAL_Y), kind
        self.text = text
        self.kind = kind

    def _repr(self):
        return "%s %r" % (self.kind, self.text)

    def _key(self):
        return (self.kind, self.text)


class Char(Rule):
    """
    Matches a given character.
    """

    kind = CHAR

    def __init__(self, char):
        self.char = char

    def _repr(self):
        return repr(self.char)

    def _key(self):
        return (self.kind, self.char)


class CharSet(Rule):
    """
    Matches any of a set of characters (or, if negated, any character not in
    the set).
    """

    kind = CHARSET

    def __init__(self, chars, negated=False):
        self.chars = frozenset(chars)
        self.negated = negated

    def _repr(self):
        return charset_string(self.chars, self.negated)

    def _key(self):
        return (self.kind, self.chars, self.negated)

    def __contains__(self, c):
        return (c in self.chars) != self.negated


class NonTerminal(object):
    """
    A named rule of a grammar. Call nodes refer to a NonTerminal instead of
    owning its body, which is what allows rules to be recursive.
    """

    def __init__(self, name, line=0, col=0):
        self.name = name
        self.line = line
        self.col = col
        self.flags = set()
        self.rule = None

    def __repr__(self):
        return "<%s %s %s>" % (type(self).__name__, self.name,
                               sorted(self.flags))

    def define(self, body):
        if DECLARED in self.flags:
            raise PegError("attempt to redefine: " + self.name,
                           line=self.line, col=self.col)
        self.flags.add(DECLARED)
        self.rule = body
        return self


class Call(Rule):
    """
    Invokes a NonTerminal's body.
    """

    kind = NONTERMINAL

    def __init__(self, nt):
        self.nt = nt

    def _repr(self):
        return self.nt.name

    def _key(self):
        return (self.kind, self.nt.name)


class MultiRule(Rule):
    """
    Base class for rules that encapsulate multiple sub-rules (Seq and Or).
    """

    def __init__(self, rules):
        assert rules
        self.rules = tuple(rules)

    def children(self):
        return self.rules


class Seq(MultiRule):
    """
    Matches only if all sub-rules match one after the other.
    """

    kind = SEQUENCE


class Or(MultiRule):
    """
    Checks multiple sub-rules in order and matches with the first one that
    matches.
    """

    kind = CHOICE


class Wrapper(Rule):
    """
    Base class for rules that wrap a single sub-rule.
    """

    def __init__(self, rule):
        self.rule = rule

    def children(self):
        return (self.rule, )


class Star(Wrapper):
    """
    Matches the sub-rule as many times as possible (including zero times).
    """

    kind = GREEDY_REP


class StarChar(Rule):
    """
    Matches a run of a single character.
    """

    kind = GREEDY_REP_CHAR

    def __init__(self, char):
        self.char = char

    def _repr(self):
        return repr(self.char)

    def _key(self):
        return (self.kind, self.char)


class StarSet(CharSet):
    """
    Matches a run of characters from a set.
    """

    kind = GREEDY_REP_SET


class StarAny(SingletonRule):
    """
    Matches the rest of the input.
    """

    kind = GREEDY_ANY


staranything = StarAny()


class Opt(Wrapper):
    """
    Matches the sub-rule zero or one times.
    """

    kind = OPTION


class Peek(Wrapper):
    """
    Matches if the sub-rule would match at the given position, but does not move
    the position forward.
    """

    kind = AND


class Not(Wrapper):
    """
    Matches if a sub-rule *doesn't* match.
    """

    kind = NOT


class Search(Wrapper):
    """
    Skips forward through the input until the sub-rule matches. The match spans
    the skipped text and the sub-rule's match.
    """

    kind = SEARCH


class Capture(Wrapper):
    """
    Records the span matched by the sub-rule in a capture slot. The slot index
    is assigned when the pattern is compiled, not when it matches.
    """

    kind = CAPTURE

    def __init__(self, rule, index=None):
        self.rule = rule
        self.index = index

    def _repr(self):
        return str(self.index)

    def _key(self):
        return (self.kind, self.index, self.rule)


class CapturedSearch(Capture):
    """
    Like Search, but also records the skipped text in a capture slot.
    """

    kind = CAPTURED_SEARCH


class BackRef(Rule):
    """
    Matches the text recorded in an earlier capture slot, either exactly,
    ignoring case, or ignoring case and underscores.
    """

    def __init__(self, index, kind=BACKREF):
        assert kind in (BACKREF, BACKREF_I, BACKREF_Y), kind
        self.index = index
        self.kind = kind

    def _repr(self):
        return "%s %d" % (self.kind, self.index + 1)

    def _key(self):
        return (self.kind, self.index)


class RuleDef(Rule):
    """
    The definition of a NonTerminal, as it appears in a grammar.
    """

    kind = RULE

    def __init__(self, nt):
        self.nt = nt

    def _repr(self):
        return self.nt.name

    def children(self):
        if self.nt.rule is None:
            return ()
        return (self.nt.rule, )

    def _key(self):
        return (self.kind, self.nt.name, self.nt.rule)


class RuleList(Rule):
    """
    A whole grammar. Matching a grammar matches its first (start) rule.
    """

    kind = LIST

    def __init__(self, defs):
        assert defs
        self.rules = tuple(defs)
        self.start = Call(self.rules[0].nt)

    def children(self):
        return self.rules

    def nonterminals(self):
        return dict((d.nt.name, d.nt) for d in self.rules)


# Constructor functions
#
# These are the programmatic API; the grammar compiler builds its trees with
# them too, so both ways of writing a pattern produce the same nodes.

def ensure(rule):
    """
    Ensures an argument is a rule. A string is turned into a literal match, so
    you can write ``capture(x) + "-"``.
    """

    if isinstance(rule, str):
        rule = term(rule)
    if not isinstance(rule, Rule):
        raise TypeError("%r is not a pattern" % (rule, ))
    return rule


def term(text):
    if not text:
        return empty_
    if len(text) == 1:
        return Char(text)
    return Terminal(text)


def term_ignore_case(text):
    if not text:
        return empty_
    return Terminal(text, TERMINAL_I)


def term_ignore_style(text):
    if not text:
        return empty_
    return Terminal(text, TERMINAL_Y)


def char(c):
    if len(c) != 1:
        raise ValueError("%r is not a single character" % (c, ))
    return Char(c)


def charset(chars, negated=False):
    return CharSet(chars, negated)


def any_char():
    return any_


def any_rune():
    return anyrune


def newline():
    return newline_


def letter():
    return letter_


def lower():
    return lower_


def upper():
    return upper_


def title():
    return title_


def white():
    return white_


def start_anchor():
    return startanchor


def end_anchor():
    return not_(any_)


def sequence(*rules):
    items = []
    for r in rules:
        r = ensure(r)
        if r.kind == SEQUENCE:
            items.extend(r.rules)
        elif r.kind != EMPTY:
            items.append(r)

    if not items:
        return empty_
    elif len(items) == 1:
        return items[0]
    return Seq(items)


def _mergeable(r):
    return r.kind == CHAR or (r.kind == CHARSET and not r.negated)


def choice(*rules):
    if not rules:
        raise ValueError("choice() needs at least one alternative")

    items = []
    for r in rules:
        r = ensure(r)
        if r.kind == CHOICE:
            items.extend(r.rules)
        else:
            items.append(r)

    if len(items) == 1:
        return items[0]

    # A choice between single characters is the same as a character set
    if all(_mergeable(r) for r in items):
        chars = set()
        for r in items:
            if r.kind == CHAR:
                chars.add(r.char)
            else:
                chars.update(r.chars)
        return CharSet(chars)

    return Or(items)


def star(rule):
    rule = ensure(rule)
    kind = rule.kind
    if kind == CHAR:
        return StarChar(rule.char)
    elif kind == CHARSET:
        return StarSet(rule.chars, rule.negated)
    elif kind in (ANY, ANYRUNE):
        return staranything
    elif kind in REPEAT_KINDS:
        return rule
    elif kind == OPTION:
        return star(rule.rule)
    return Star(rule)


def plus(rule):
    rule = ensure(rule)
    return sequence(rule, star(rule))


def opt(rule):
    rule = ensure(rule)
    if rule.kind == OPTION or rule.kind in REPEAT_KINDS:
        return rule
    return Opt(rule)


def peek(rule):
    return Peek(ensure(rule))


def not_(rule):
    return Not(ensure(rule))


def search(rule):
    return Search(ensure(rule))


def captured_search(rule):
    return CapturedSearch(ensure(rule))


def capture(rule=None):
    return Capture(ensure(rule) if rule is not None else empty_)


def _backref(number, kind):
    if number < 1:
        raise ValueError("back reference numbers start at 1, not %r" % number)
    return BackRef(number - 1, kind)


def backref(number):
    """
    Matches the text of capture ``number`` (counting from 1).
    """

    return _backref(number, BACKREF)


def backref_ignore_case(number):
    return _backref(number, BACKREF_I)


def backref_ignore_style(number):
    return _backref(number, BACKREF_Y)


def nonterminal(nt):
    nt.flags.add(USED)
    return Call(nt)


def rule_def(nt, body=None):
    if body is not None:
        nt.define(ensure(body))
    return RuleDef(nt)


def rule_list(*defs):
    defs = [d if isinstance(d, RuleDef) else rule_def(d) for d in defs]
    return RuleList(defs)


# Builtin character classes

word_chars = ascii_letters + digits + "_"
space_chars = " \t\n\r\f\v"

builtin_sets = {
    "d": CharSet(digits),
    "D": CharSet(digits, negated=True),
    "s": CharSet(space_chars),
    "S": CharSet(space_chars, negated=True),
    "w": CharSet(word_chars),
    "W": CharSet(word_chars, negated=True),
    "a": CharSet(ascii_letters),
    "A": CharSet(ascii_letters, negated=True),
}


def ident():
    return sequence(CharSet(ascii_letters + "_"), star(CharSet(word_chars)))


# Capture numbering

class _Numberer(object):
    # Collects the new slots in a dict keyed by node id instead of setting
    # them on the nodes, so a failed walk leaves the tree untouched
    def __init__(self, capacity):
        self.capacity = capacity
        self.count = 0
        self.seen = set()
        self.assigned = {}
        self.nodes = []

    def index_of(self, node):
        if node.index is not None:
            return node.index
        return self.assigned.get(id(node))

    def walk(self, node, follow=True):
        kind = node.kind
        if kind in (CAPTURE, CAPTURED_SEARCH):
            index = self.index_of(node)
            if index is None:
                if self.count >= self.capacity:
                    raise PegError("too many captures (the maximum is %d)"
                                   % self.capacity)
                self.assigned[id(node)] = self.count
                self.nodes.append(node)
                self.count += 1
            else:
                self.count = max(self.count, index + 1)
        elif kind in (BACKREF, BACKREF_I, BACKREF_Y):
            if node.index >= self.count:
                raise PegError("invalid back reference index: %d" %
                               (node.index + 1))
        elif kind == NONTERMINAL:
            nt = node.nt
            if follow and nt not in self.seen:
                self.seen.add(nt)
                if nt.rule is not None:
                    self.walk(nt.rule, follow)
            return
        elif kind == LIST:
            for d in node.rules:
                self.seen.add(d.nt)
            follow = False

        for child in node.children():
            self.walk(child, follow)


def number_captures(root, capacity=MAX_SUBPATTERNS):
    """
    Assigns capture slots to any Capture nodes in the tree that don't have one
    yet, in left-to-right, depth-first order, checks that every back reference
    refers to an earlier capture, and returns the number of slots the pattern
    uses.

    The compiler calls this on every tree it returns; call it yourself if you
    want errors in a hand-built pattern reported before the first match.
    """

    count = getattr(root, "capture_count", None)
    if count is None:
        numberer = _Numberer(capacity)
        numberer.walk(root)
        for node in numberer.nodes:
            node.index = numberer.assigned[id(node)]
        count = root.capture_count = numberer.count
    return count


# Rendering

def _escape_char(c, special):
    if c == "\\" or c in special:
        return "\\" + c
    elif c == "\n":
        return "\\n"
    elif c == "\r":
        return "\\r"
    elif c == "\t":
        return "\\t"
    elif c.isprintable():
        return c
    elif ord(c) <= 0xff:
        return "\\x%02x" % ord(c)
    elif ord(c) <= 0xffff:
        return "\\u%04x" % ord(c)
    return c


def quote_string(text):
    """
    Returns the text as a single-quoted grammar literal.
    """

    return "'%s'" % "".join(_escape_char(c, "'") for c in text)


def charset_string(chars, negated=False):
    """
    Returns the grammar representation of a set of characters, collapsing runs
    of consecutive characters into ranges.
    """

    codes = sorted(ord(c) for c in chars)
    parts = []
    i = 0
    while i < len(codes):
        j = i
        while j + 1 < len(codes) and codes[j + 1] == codes[j] + 1:
            j += 1
        lo = _escape_char(chr(codes[i]), "]^-")
        if j - i >= 2:
            parts.append("%s-%s" % (lo, _escape_char(chr(codes[j]), "]^-")))
            i = j + 1
        else:
            parts.append(lo)
            i += 1
    return "[%s%s]" % ("^" if negated else "", "".join(parts))


def _atom(node, out):
    # Suffixes bind tighter than prefixes, so a prefixed rule needs brackets
    # before a suffix can apply to it
    if node.kind in PREFIX_KINDS:
        out.append("(")
        _render(node, out)
        out.append(")")
    else:
        _render(node, out)


def _sequence_items(rules):
    # Returns (rule, repeated) pairs for the items of a sequence. plus(x)
    # builds (x x*) around one shared x node, which must be written back as
    # x+ or a capture inside x gets a second slot when recompiled
    items = []
    for child in rules:
        kind = child.kind
        prev = items[-1][0] if items else None
        if kind in REPEAT_KINDS and prev is child:
            # plus() of a repetition
            items[-1] = (child, True)
            continue
        if kind == GREEDY_REP:
            body = child.rule
            if prev is not None and prev.kind == OPTION and prev.rule is body:
                # plus() of an option
                items[-1] = (prev, True)
                continue
            parts = body.rules if body.kind == SEQUENCE else (body, )
            tail = items[-len(parts):]
            if (len(tail) == len(parts) and
                    all(not rep and a is b
                        for (a, rep), b in zip(tail, parts))):
                del items[-len(parts):]
                items.append((body, True))
                continue
        items.append((child, False))
    return items


def _render(node, out):
    kind = node.kind
    if kind == EMPTY:
        out.append("''")
    elif kind == ANY:
        out.append(".")
    elif kind == ANYRUNE:
        out.append("_")
    elif kind == NEWLINE:
        out.append("\\n")
    elif kind in category_names:
        out.append("\\" + category_names[kind])
    elif kind == TERMINAL:
        out.append(quote_string(node.text))
    elif kind == TERMINAL_I:
        out.append("i" + quote_string(node.text))
    elif kind == TERMINAL_Y:
        out.append("y" + quote_string(node.text))
    elif kind == CHAR:
        out.append(quote_string(node.char))
    elif kind == CHARSET:
        out.append(charset_string(node.chars, node.negated))
    elif kind == NONTERMINAL:
        out.append(node.nt.name)
    elif kind == SEQUENCE:
        out.append("(")
        for i, (child, repeated) in enumerate(_sequence_items(node.rules)):
            if i:
                out.append(" ")
            if repeated:
                _atom(child, out)
                out.append("+")
            else:
                _render(child, out)
        out.append(")")
    elif kind == CHOICE:
        out.append("(")
        for i, child in enumerate(node.rules):
            if i:
                out.append(" / ")
            _render(child, out)
        out.append(")")
    elif kind == GREEDY_REP:
        _atom(node.rule, out)
        out.append("*")
    elif kind == GREEDY_REP_CHAR:
        out.append(quote_string(node.char) + "*")
    elif kind == GREEDY_REP_SET:
        out.append(charset_string(node.chars, node.negated) + "*")
    elif kind == GREEDY_ANY:
        out.append(".*")
    elif kind == OPTION:
        _atom(node.rule, out)
        out.append("?")
    elif kind in PREFIX_KINDS:
        out.append({AND: "&", NOT: "!", SEARCH: "@",
                    CAPTURED_SEARCH: "{@}"}[kind])
        _render(node.rule, out)
    elif kind == CAPTURE:
        out.append("{")
        _render(node.rule, out)
        out.append("}")
    elif kind in (BACKREF, BACKREF_I, BACKREF_Y):
        prefix = {BACKREF: "", BACKREF_I: "i", BACKREF_Y: "y"}[kind]
        out.append("%s$%d" % (prefix, node.index + 1))
    elif kind == START_ANCHOR:
        out.append("^")
    elif kind == RULE:
        out.append(node.nt.name)
        out.append(" <- ")
        _render(node.nt.rule, out)
        out.append("\n")
    elif kind == LIST:
        for d in node.rules:
            _render(d, out)
    else:
        raise ValueError("Unknown node kind %r" % (kind, ))


def render(node):
    """
    Returns grammar text that compiles to a pattern equivalent to the given
    one.
    """

    out = []
    _render(node, out)
    return "".join(out)


def dump_tree(node):
    """
    Returns an indented, one node per line, description of the pattern tree
    for debugging.
    """

    lines = []

    def dump(n, level):
        lines.append("%s%r" % ("  " * level, n))
        for child in n.children():
            dump(child, level + 1)

    dump(node, 0)
    return "\n".join(lines) + "\n"
