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
This module implements matching a compiled pattern against a string.

Every handler takes a node and a position and returns the number of characters
the node consumed there, or ``MISS`` if it didn't match. Zero is a successful,
empty match. Returning an integer instead of raising an exception is much
faster, and no-match is the ordinary outcome for most rules at most positions.
"""

import unicodedata

from textpegs.parser import rules as r
from textpegs.parser.captures import Captures


# The value handlers return when a rule does not match
MISS = -1


# Helper functions

def _match_ignore_case(subject, i, text):
    """
    Returns the number of characters of subject at i that equal text ignoring
    case, or MISS.
    """

    end = i + len(text)
    if end > len(subject):
        return MISS
    for a, b in zip(text, subject[i:end]):
        if a != b and a.lower() != b.lower():
            return MISS
    return len(text)


def _match_ignore_style(subject, i, text):
    """
    Like _match_ignore_case, but also ignores underscores in both strings.
    """

    j = i
    length = len(subject)
    for a in text:
        if a == "_":
            continue
        while j < length and subject[j] == "_":
            j += 1
        if j >= length:
            return MISS
        b = subject[j]
        if a != b and a.lower() != b.lower():
            return MISS
        j += 1
    return j - i


def _is_titlecase(c):
    # str.istitle is also True for a lone uppercase letter
    return unicodedata.category(c) == "Lt"


class Matcher(object):
    """
    Matches patterns against one subject string, filling in a capture table.

    Handlers call ``self.match()`` to match their children, so a subclass can
    watch (or change) every step of the match by overriding that one method.
    """

    # Maps node kinds to the names of the methods that match them
    handlers = {
        r.EMPTY: "_empty",
        r.ANY: "_any",
        r.ANYRUNE: "_any",
        r.NEWLINE: "_newline",
        r.LETTER: "_letter",
        r.LOWER: "_lower",
        r.UPPER: "_upper",
        r.TITLE: "_title",
        r.WHITE: "_white",
        r.TERMINAL: "_terminal",
        r.TERMINAL_I: "_terminal_i",
        r.TERMINAL_Y: "_terminal_y",
        r.CHAR: "_char",
        r.CHARSET: "_charset",
        r.NONTERMINAL: "_nonterminal",
        r.SEQUENCE: "_sequence",
        r.CHOICE: "_choice",
        r.GREEDY_REP: "_greedy_rep",
        r.GREEDY_REP_CHAR: "_greedy_rep_char",
        r.GREEDY_REP_SET: "_greedy_rep_set",
        r.GREEDY_ANY: "_greedy_any",
        r.OPTION: "_option",
        r.AND: "_and",
        r.NOT: "_not",
        r.CAPTURE: "_capture",
        r.BACKREF: "_backref",
        r.BACKREF_I: "_backref",
        r.BACKREF_Y: "_backref",
        r.SEARCH: "_search",
        r.CAPTURED_SEARCH: "_captured_search",
        r.RULE: "_rule",
        r.LIST: "_list",
        r.START_ANCHOR: "_start_anchor",
    }

    def __init__(self, subject, captures=None):
        self.subject = subject
        self.length = len(subject)
        self.captures = captures if captures is not None else Captures()
        self.origin = 0
        self._dispatch = dict((kind, getattr(self, name))
                              for kind, name in self.handlers.items())

    def run(self, pattern, start=0, origin=None):
        """
        Starts a new top-level match attempt of the pattern at the given
        position. Clears the capture table. The start anchor (``^``) only
        matches at ``origin``, which defaults to the start position; functions
        that scan forward pass the position the scan started from.
        """

        self.captures.reset()
        self.origin = start if origin is None else origin
        return self.match(pattern, start)

    def match(self, node, i):
        return self._dispatch[node.kind](node, i)

    # Leaves

    def _empty(self, node, i):
        return 0

    def _any(self, node, i):
        return 1 if i < self.length else MISS

    def _newline(self, node, i):
        subject = self.subject
        if subject.startswith("\r\n", i):
            return 2
        elif i < self.length and subject[i] in "\r\n":
            return 1
        return MISS

    def _class(self, i, test):
        if i < self.length and test(self.subject[i]):
            return 1
        return MISS

    def _letter(self, node, i):
        return self._class(i, str.isalpha)

    def _lower(self, node, i):
        return self._class(i, str.islower)

    def _upper(self, node, i):
        return self._class(i, str.isupper)

    def _title(self, node, i):
        return self._class(i, _is_titlecase)

    def _white(self, node, i):
        return self._class(i, str.isspace)

    def _terminal(self, node, i):
        text = node.text
        if self.subject.startswith(text, i):
            return len(text)
        return MISS

    def _terminal_i(self, node, i):
        return _match_ignore_case(self.subject, i, node.text)

    def _terminal_y(self, node, i):
        return _match_ignore_style(self.subject, i, node.text)

    def _char(self, node, i):
        if i < self.length and self.subject[i] == node.char:
            return 1
        return MISS

    def _charset(self, node, i):
        if i < self.length and (self.subject[i] in node.chars) != node.negated:
            return 1
        return MISS

    def _start_anchor(self, node, i):
        return 0 if i == self.origin else MISS

    # Composites

    def _nonterminal(self, node, i):
        rule = node.nt.rule
        if rule is None:
            raise ValueError("Rule %r has no definition" % node.nt.name)
        return self.match(rule, i)

    def _rule(self, node, i):
        return self.match(node.nt.rule, i)

    def _list(self, node, i):
        return self.match(node.start, i)

    def _sequence(self, node, i):
        mark = self.captures.mark()
        pos = i
        for child in node.rules:
            x = self.match(child, pos)
            if x < 0:
                self.captures.rollback(mark)
                return MISS
            pos += x
        return pos - i

    def _choice(self, node, i):
        captures = self.captures
        mark = captures.mark()
        for child in node.rules:
            x = self.match(child, i)
            if x >= 0:
                return x
            captures.rollback(mark)
        return MISS

    def _greedy_rep(self, node, i):
        rule = node.rule
        pos = i
        while True:
            x = self.match(rule, pos)
            # A zero-length repetition would repeat forever, so it ends the
            # loop (after being counted, which changes nothing)
            if x <= 0:
                break
            pos += x
        return pos - i

    def _greedy_rep_char(self, node, i):
        subject = self.subject
        c = node.char
        pos = i
        while pos < self.length and subject[pos] == c:
            pos += 1
        return pos - i

    def _greedy_rep_set(self, node, i):
        subject = self.subject
        chars = node.chars
        negated = node.negated
        pos = i
        while pos < self.length and (subject[pos] in chars) != negated:
            pos += 1
        return pos - i

    def _greedy_any(self, node, i):
        return max(self.length - i, 0)

    def _option(self, node, i):
        x = self.match(node.rule, i)
        return x if x >= 0 else 0

    def _and(self, node, i):
        mark = self.captures.mark()
        x = self.match(node.rule, i)
        if x < 0:
            self.captures.rollback(mark)
            return MISS
        return 0

    def _not(self, node, i):
        mark = self.captures.mark()
        x = self.match(node.rule, i)
        self.captures.rollback(mark)
        return MISS if x >= 0 else 0

    def _capture(self, node, i):
        x = self.match(node.rule, i)
        if x >= 0:
            self.captures.set(node.index, i, x)
        return x

    def _backref(self, node, i):
        text = self.captures.text(self.subject, node.index)
        if text is None:
            return MISS
        kind = node.kind
        if kind == r.BACKREF_I:
            return _match_ignore_case(self.subject, i, text)
        elif kind == r.BACKREF_Y:
            return _match_ignore_style(self.subject, i, text)
        elif self.subject.startswith(text, i):
            return len(text)
        return MISS

    def _scan(self, rule, i):
        # Returns the position where rule first matches at or after i, and the
        # length of that match
        mark = self.captures.mark()
        pos = i
        while pos <= self.length:
            x = self.match(rule, pos)
            if x >= 0:
                return pos, x
            self.captures.rollback(mark)
            pos += 1
        return pos, MISS

    def _search(self, node, i):
        pos, x = self._scan(node.rule, i)
        if x < 0:
            return MISS
        return pos - i + x

    def _captured_search(self, node, i):
        pos, x = self._scan(node.rule, i)
        if x < 0:
            return MISS
        self.captures.set(node.index, i, pos - i)
        return pos - i + x


def evaluate(pattern, subject, start=0, captures=None):
    """
    Matches the pattern at the given position in the subject and returns the
    number of characters matched, or ``MISS`` (-1) if it doesn't match.
    """

    if not isinstance(pattern, r.Rule):
        raise TypeError("%r is not a compiled pattern" % (pattern, ))
    if captures is None:
        captures = Captures()
    r.number_captures(pattern, captures.capacity)
    return Matcher(subject, captures).run(pattern, start)
