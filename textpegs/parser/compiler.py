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
This module compiles pattern text into a tree of rules (see
``textpegs.parser.rules``). The syntax, loosely::

    grammar    = rule+ | expression
    rule       = Name "<-" expression
    expression = sequence ("/" sequence)*
    sequence   = prefixed*
    prefixed   = ("&" | "!" | "@" | "{@}") prefixed | suffixed
    suffixed   = primary ("?" | "*" | "+")*
    primary    = literal | class | "(" expression ")" | "{" expression "}"
               | "." | "_" | "^" | "$" | backref | builtin | Name

The prefix operators bind looser than the suffix operators, as in classic PEG,
so ``!a*`` is ``!(a*)`` and ``&a+`` is ``&(a+)``. Bracket the prefixed part to
repeat a predicate: ``(!a)*``.

The compiler is a plain recursive descent parser over the text, building the
tree bottom-up with the same constructor functions the programmatic API uses.
"""

import logging
import re
from string import ascii_letters, digits, hexdigits

from textpegs.parser import PegError, condition_string, row_and_col
from textpegs.parser import rules as r


logger = logging.getLogger(__name__)


# Regular expressions used by the scanner
rule_header = re.compile(r"([A-Za-z][A-Za-z0-9_]*)[ \t\r\n]*<-")
identifier = re.compile(r"[A-Za-z][A-Za-z0-9_]*")
builtin_name = re.compile(r"[A-Za-z]+")
digits_expr = re.compile(r"[0-9]+")

# Single-character escapes, in literals, classes, and as atoms
escapes = {
    "n": "\n",
    "l": "\n",
    "r": "\r",
    "c": "\r",
    "t": "\t",
    "f": "\f",
    "v": "\v",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
}

# Named unicode classes available as \name
categories = {
    "letter": r.letter_,
    "lower": r.lower_,
    "upper": r.upper_,
    "title": r.title_,
    "white": r.white_,
}

# Builtin sets that can be used inside a character class
class_sets = ("d", "s", "w")

# Rules whose bodies "cost" less than this are inlined where they are used
INLINE_THRESHOLD = 5


def space_cost(rule, limit=INLINE_THRESHOLD):
    """
    Returns a rough measure of the size of a rule, for deciding whether to
    inline it. Stops counting once the cost reaches ``limit``.
    """

    kind = rule.kind
    if kind == r.EMPTY:
        return 0
    elif kind == r.NONTERMINAL:
        # A rule that calls another rule is never inlined
        return limit + 1
    elif kind in (r.CAPTURE, r.CAPTURED_SEARCH):
        # Inlining would copy the capture slot into every caller
        return limit + 1

    children = rule.children()
    if not children:
        return 1

    cost = 0
    for child in children:
        cost += space_cost(child, limit)
        if cost >= limit:
            break
    return cost


class Compiler(object):
    def __init__(self, text, filename="pattern",
                 inline_threshold=INLINE_THRESHOLD,
                 capacity=r.MAX_SUBPATTERNS):
        self.text = text
        self.length = len(text)
        self.filename = filename
        self.inline_threshold = inline_threshold
        self.capacity = capacity

        self.i = 0
        self.nonterminals = {}
        self.in_grammar = False
        self.capture_count = 0
        self.skip = r.empty_

    # Scanning helpers

    def error(self, msg, i=None):
        line, col = row_and_col(self.text, self.i if i is None else i)
        return PegError(msg, self.filename, line, col)

    def eof(self):
        return self.i >= self.length

    def peek(self, k=0):
        j = self.i + k
        if j < self.length:
            return self.text[j]
        return ""

    def skip_ws(self):
        text = self.text
        length = self.length
        i = self.i
        while i < length:
            c = text[i]
            if c in " \t\r\n":
                i += 1
            elif c == "#":
                nl = text.find("\n", i)
                i = length if nl < 0 else nl + 1
            else:
                break
        self.i = i

    def expect(self, s, opener=None):
        self.skip_ws()
        if not self.text.startswith(s, self.i):
            if self.eof() and opener is not None:
                raise self.error("%r expected to match %r" % (s, opener[0]),
                                 opener[1])
            raise self.error("%r expected" % s)
        self.i += len(s)

    def rule_ahead(self):
        return self.in_grammar and rule_header.match(self.text, self.i)

    def token(self, rule):
        if self.skip is r.empty_:
            return rule
        return r.sequence(self.skip, rule)

    # Entry point

    def compile(self):
        self.skip_ws()
        if rule_header.match(self.text, self.i):
            self.in_grammar = True
            result = self.grammar()
        else:
            result = self.expression()

        self.skip_ws()
        if self.peek() in (")", "}"):
            raise self.error("unbalanced %r" % self.peek())
        elif not self.eof():
            raise self.error("EOF expected, but found %r" % self.peek())

        result.capture_count = self.capture_count
        return result

    def grammar(self):
        defs = []
        while True:
            self.skip_ws()
            if self.eof():
                break

            start = self.i
            m = rule_header.match(self.text, start)
            if not m:
                raise self.error("rule definition expected, but found %r" %
                                 self.peek())
            name = m.group(1)
            line, col = row_and_col(self.text, start)

            nt = self.nonterminal(name, start)
            if r.DECLARED in nt.flags:
                raise self.error("attempt to redefine: " + name, start)
            nt.line, nt.col = line, col
            self.i = m.end()

            body = self.expression()
            nt.define(body)
            defs.append(r.rule_def(nt))

        for nt in self.nonterminals.values():
            if r.DECLARED not in nt.flags:
                raise PegError("undeclared identifier: " + nt.name,
                               self.filename, nt.line, nt.col)

        for d in defs[1:]:
            if r.USED not in d.nt.flags:
                logger.warning("%s(%d,%d) unused rule: %s", self.filename,
                               d.nt.line, d.nt.col, d.nt.name)

        return r.rule_list(*defs)

    # Expressions

    def expression(self):
        alts = [self.sequence()]
        while True:
            self.skip_ws()
            if self.peek() != "/":
                break
            self.i += 1
            alts.append(self.sequence())
        return r.choice(*alts)

    def sequence(self):
        items = []
        while True:
            self.skip_ws()
            if self.eof() or self.peek() in "/)}" or self.rule_ahead():
                break
            items.append(self.prefixed())
        return r.sequence(*items)

    def prefixed(self):
        self.skip_ws()
        c = self.peek()
        if c == "&":
            self.i += 1
            return r.peek(self.prefixed())
        elif c == "!":
            self.i += 1
            return r.not_(self.prefixed())
        elif c == "@":
            self.i += 1
            return r.search(self.prefixed())
        elif self.text.startswith("{@}", self.i):
            index = self.new_capture()
            self.i += 3
            node = r.captured_search(self.prefixed())
            node.index = index
            return self.token(node)
        return self.suffixed()

    def suffixed(self):
        rule = self.primary()
        while True:
            self.skip_ws()
            c = self.peek()
            if c == "?":
                rule = r.opt(rule)
            elif c == "*":
                rule = r.star(rule)
            elif c == "+":
                rule = r.plus(rule)
            else:
                break
            self.i += 1
        return rule

    def primary(self):
        self.skip_ws()
        if self.eof():
            raise self.error("expression expected, but found end of input")

        start = self.i
        c = self.peek()
        nxt = self.peek(1)

        if c in "'\"":
            return self.token(r.term(self.literal()))
        elif c in "ivy" and nxt and nxt in "'\"":
            self.i += 1
            if c == "v":
                return self.token(r.term(self.literal(verbatim=True)))
            elif c == "i":
                return self.token(r.term_ignore_case(self.literal()))
            else:
                return self.token(r.term_ignore_style(self.literal()))
        elif c in "iy" and nxt == "$":
            self.i += 1
            return self.token(self.backref(c))
        elif c == "$":
            if nxt and nxt in digits:
                return self.token(self.backref())
            self.i += 1
            return self.token(r.end_anchor())
        elif c == "(":
            self.i += 1
            rule = self.expression()
            self.expect(")", ("(", start))
            return rule
        elif c == "{":
            index = self.new_capture()
            self.i += 1
            rule = self.expression()
            self.expect("}", ("{", start))
            node = r.capture(rule)
            node.index = index
            return node
        elif c == "[":
            return self.token(self.charclass())
        elif c == ".":
            self.i += 1
            return self.token(r.any_)
        elif c == "_":
            self.i += 1
            return self.token(r.anyrune)
        elif c == "^":
            self.i += 1
            return self.token(r.startanchor)
        elif c == "\\":
            return self.builtin()
        elif c in ascii_letters:
            m = identifier.match(self.text, start)
            self.i = m.end()
            return self.reference(m.group(0), start)
        elif c in ")}":
            raise self.error("unbalanced %r" % c)
        raise self.error("expression expected, but found %r" % c)

    def reference(self, name, start):
        if not self.in_grammar:
            raise self.error("undeclared identifier: " + name, start)

        nt = self.nonterminal(name, start)
        body = nt.rule
        limit = self.inline_threshold
        if (body is not None and limit and
                space_cost(body, limit) < limit):
            nt.flags.add(r.USED)
            logger.debug("Inlining rule %s", name)
            return body
        return r.nonterminal(nt)

    def nonterminal(self, name, i):
        nt = self.nonterminals.get(name)
        if nt is None:
            line, col = row_and_col(self.text, i)
            nt = self.nonterminals[name] = r.NonTerminal(name, line, col)
        return nt

    def new_capture(self):
        if self.capture_count >= self.capacity:
            raise self.error("too many captures (the maximum is %d)" %
                             self.capacity)
        index = self.capture_count
        self.capture_count += 1
        return index

    def backref(self, mode=None):
        start = self.i
        self.i += 1
        m = digits_expr.match(self.text, self.i)
        if m is None:
            raise self.error("invalid back reference", start)
        number = int(m.group(0))
        self.i = m.end()
        if not 1 <= number <= self.capture_count:
            raise self.error("invalid back reference index: %d" % number,
                             start)

        if mode == "i":
            return r.backref_ignore_case(number)
        elif mode == "y":
            return r.backref_ignore_style(number)
        return r.backref(number)

    # Tokens

    def escape(self):
        # Decodes the escape sequence following a backslash
        text = self.text
        start = self.i - 1
        if self.eof():
            raise self.error("invalid escape sequence", start)

        c = text[self.i]
        self.i += 1
        if c in escapes:
            return escapes[c]
        elif c in "xu":
            size = 2 if c == "x" else 4
            code = text[self.i:self.i + size]
            if len(code) != size or any(h not in hexdigits for h in code):
                raise self.error("invalid escape sequence", start)
            self.i += size
            return chr(int(code, 16))
        elif c in digits:
            m = digits_expr.match(text, self.i - 1)
            code = m.group(0)[:3]
            self.i = self.i - 1 + len(code)
            return chr(int(code))
        elif c in ascii_letters:
            raise self.error("invalid escape sequence", start)
        return c

    def literal(self, verbatim=False):
        text = self.text
        start = self.i
        quote = text[start]
        self.i += 1
        out = []
        while True:
            if self.eof():
                raise self.error("unterminated string literal", start)
            c = text[self.i]
            self.i += 1
            if c == quote:
                break
            elif c == "\\" and not verbatim:
                out.append(self.escape())
            else:
                out.append(c)
        return "".join(out)

    def class_item(self):
        c = self.text[self.i]
        self.i += 1
        if c != "\\":
            return c
        if self.peek() in class_sets:
            name = self.peek()
            self.i += 1
            return r.builtin_sets[name].chars
        return self.escape()

    def charclass(self):
        start = self.i
        self.i += 1
        negated = False
        if self.peek() == "^":
            negated = True
            self.i += 1

        chars = set()
        while True:
            if self.eof():
                raise self.error("unterminated character class", start)
            if self.peek() == "]":
                self.i += 1
                break

            item_start = self.i
            lo = self.class_item()
            if isinstance(lo, frozenset):
                chars.update(lo)
                continue

            if self.peek() == "-" and self.peek(1) not in ("]", ""):
                self.i += 1
                hi = self.class_item()
                if isinstance(hi, frozenset) or ord(hi) < ord(lo):
                    raise self.error("invalid range in character class",
                                     item_start)
                chars.update(chr(x) for x in range(ord(lo), ord(hi) + 1))
            else:
                chars.add(lo)

        return r.charset(chars, negated)

    def builtin(self):
        start = self.i
        self.i += 1
        m = builtin_name.match(self.text, self.i)
        name = m.group(0) if m else ""

        if name == "skip":
            self.i = m.end()
            self.skip = self.prefixed()
            return r.empty_
        elif name == "n":
            rule = r.newline_
        elif name in r.builtin_sets:
            rule = r.builtin_sets[name]
        elif name in categories:
            rule = categories[name]
        elif name == "ident":
            rule = r.ident()
        elif len(name) > 1 and name[0] not in "xu":
            raise self.error("unknown built-in: " + name, start)
        else:
            return self.token(r.char(self.escape()))

        self.i = m.end()
        return self.token(rule)


def compile(text, filename=None, inline_threshold=None, config=None):
    """
    Compiles pattern text into a rule tree, raising ``PegError`` if the text
    is not a valid pattern.

    If the text starts with a rule definition (``Name <- ...``), it is a
    grammar of one or more rules, and the result is a ``list`` node that
    matches with the first rule.
    """

    if config is None:
        from textpegs.config import get_config
        config = get_config()

    if filename is None:
        filename = config["PATTERN_FILENAME"]
    if inline_threshold is None:
        inline_threshold = config["INLINE_THRESHOLD"]

    capacity = config["MAX_SUBPATTERNS"]
    key = (text, filename, inline_threshold, capacity)
    pattern = _cache.get(key)
    if pattern is None:
        compiler = Compiler(text, filename, inline_threshold, capacity)
        pattern = compiler.compile()
        if len(_cache) >= config["CACHE_SIZE"]:
            _cache.clear()
        _cache[key] = pattern
    return pattern


_cache = {}


def compile_file(filepath, inline_threshold=None, config=None):
    with open(filepath, "rb") as f:
        content = f.read().decode("utf-8")
    return compile(condition_string(content), filename=filepath,
                   inline_threshold=inline_threshold, config=config)
