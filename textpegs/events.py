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
This module lets you run callbacks while a pattern matches, for example to
build a tree or evaluate an expression as the grammar's rules are entered and
left, without changing the matching engine.
"""

from textpegs.config import get_config
from textpegs.parser import rules as r
from textpegs.parser.captures import Captures
from textpegs.parser.engine import Matcher


def check_callbacks(callbacks):
    for kind in callbacks:
        if kind not in r.KINDS:
            raise ValueError("Unknown node kind %r" % (kind, ))


class EventMatcher(Matcher):
    """
    A Matcher that calls ``enter(subject, node, start)`` before matching a node
    and ``leave(subject, node, start, length)`` after, for the node kinds that
    have callbacks. ``length`` is -1 if the node didn't match.
    """

    def __init__(self, subject, callbacks, captures=None):
        super(EventMatcher, self).__init__(subject, captures)
        check_callbacks(callbacks)
        self.callbacks = callbacks

    def match(self, node, i):
        pair = self.callbacks.get(node.kind)
        if pair is None:
            return self._dispatch[node.kind](node, i)

        enter, leave = pair
        if enter:
            enter(self.subject, node, i)
        length = self._dispatch[node.kind](node, i)
        if leave:
            leave(self.subject, node, i, length)
        return length


def event_parser(pattern, callbacks):
    """
    Returns a function ``parse(subject, start=0)`` that matches the pattern at
    the start position, calling the callbacks as it goes, and returns the
    length of the match or -1.

    ``callbacks`` maps node kinds (such as ``rules.NONTERMINAL`` or
    ``rules.CAPTURE``) to ``(enter, leave)`` pairs; either function may be
    None.

    Compile grammars for an event parser with ``inline_threshold=0``, or calls
    to small rules will be replaced by their bodies and never raise events.
    """

    if not isinstance(pattern, r.Rule):
        raise TypeError("%r is not a compiled pattern" % (pattern, ))
    callbacks = dict(callbacks)
    check_callbacks(callbacks)
    capacity = get_config()["MAX_SUBPATTERNS"]
    r.number_captures(pattern, capacity)

    def parse(subject, start=0):
        matcher = EventMatcher(subject, callbacks, Captures(capacity))
        return matcher.run(pattern, start)

    return parse
