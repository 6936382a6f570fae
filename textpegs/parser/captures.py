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

from textpegs.parser.rules import MAX_SUBPATTERNS


class Captures(object):
    """
    A fixed-size table of (start, length) spans, filled in by capture rules
    while a pattern is matched. Unset slots hold None.

    Every change is written to a journal, so a rule that fails after some of
    its sub-rules captured something can put the table back the way it was
    with ``rollback(mark)``.
    """

    def __init__(self, capacity=MAX_SUBPATTERNS):
        self.capacity = capacity
        self.spans = [None] * capacity
        self._journal = []

    def __repr__(self):
        return "<%s %r>" % (type(self).__name__,
                            [s for s in self.spans if s is not None])

    def __len__(self):
        return self.capacity

    def reset(self):
        self.spans = [None] * self.capacity
        del self._journal[:]

    def set(self, index, start, length):
        if not 0 <= index < self.capacity:
            raise IndexError("capture index %d out of range" % index)
        self._journal.append((index, self.spans[index]))
        self.spans[index] = (start, length)

    def mark(self):
        return len(self._journal)

    def rollback(self, mark):
        journal = self._journal
        spans = self.spans
        while len(journal) > mark:
            index, old = journal.pop()
            spans[index] = old

    def span(self, index):
        return self.spans[index]

    def text(self, subject, index):
        span = self.spans[index]
        if span is None:
            return None
        start, length = span
        return subject[start:start + length]

    def texts(self, subject, count, missing=None):
        out = []
        for i in range(count):
            t = self.text(subject, i)
            out.append(missing if t is None else t)
        return out
