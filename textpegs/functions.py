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
Functions for finding, replacing and splitting text with compiled patterns.

Not finding a match is never an error: the find functions return -1 or None,
replace returns the text unchanged, and split returns the whole text as a
single piece. Passing something that isn't a compiled pattern raises
``TypeError``.
"""

import logging

from textpegs.config import get_config
from textpegs.parser import rules as r
from textpegs.parser.captures import Captures
from textpegs.parser.engine import MISS, Matcher


logger = logging.getLogger(__name__)


class Match(object):
    """
    The result of a successful match: where it is in the subject string, and
    the spans of the pattern's captures. Group 0 is the whole match, groups 1
    and up are the captures.
    """

    def __init__(self, subject, start, length, captures, count):
        self.string = subject
        self.start = start
        self.end = start + length
        self.spans = [captures.span(i) for i in range(count)]

    def __repr__(self):
        return "<%s %d:%d %r>" % (type(self).__name__, self.start, self.end,
                                  self.group())

    def __getitem__(self, n):
        return self.group(n)

    @property
    def length(self):
        return self.end - self.start

    @property
    def captures(self):
        return self.groups()

    def span(self, n=0):
        """
        Returns the (start, end) of group n, or None if the capture didn't
        take part in the match.
        """

        if n == 0:
            return self.start, self.end
        if not 0 < n <= len(self.spans):
            raise IndexError("no such group: %r" % (n, ))
        span = self.spans[n - 1]
        if span is None:
            return None
        start, length = span
        return start, start + length

    def group(self, n=0):
        span = self.span(n)
        if span is None:
            return None
        return self.string[span[0]:span[1]]

    def groups(self, default=None):
        return [default if s is None else self.string[s[0]:s[0] + s[1]]
                for s in self.spans]


# Helper functions

def _prepare(pattern):
    if not isinstance(pattern, r.Rule):
        raise TypeError("%r is not a compiled pattern" % (pattern, ))
    capacity = get_config()["MAX_SUBPATTERNS"]
    count = r.number_captures(pattern, capacity)
    return count, Captures(capacity)


def _matcher(subject, pattern):
    count, captures = _prepare(pattern)
    return Matcher(subject, captures), count


def _make_match(matcher, start, length, count):
    return Match(matcher.subject, start, length, matcher.captures, count)


def format_captures(template, match):
    """
    Fills in a replacement template from a Match: ``$1`` or ``${1}`` is the
    text of the first capture, ``$0`` the whole match, ``$#`` the capture
    after the one used last, and ``$$`` a dollar sign. Captures that didn't
    take part in the match are replaced with nothing.
    """

    out = []
    i = 0
    nextnum = 1
    length = len(template)
    while i < length:
        dollar = template.find("$", i)
        if dollar < 0:
            out.append(template[i:])
            break
        out.append(template[i:dollar])

        i = dollar + 1
        c = template[i:i + 1]
        if c == "$":
            out.append("$")
            i += 1
            continue
        elif c == "#":
            num = nextnum
            i += 1
        elif c == "{":
            close = template.find("}", i)
            digits = template[i + 1:close] if close > 0 else ""
            if not digits.isdigit():
                raise ValueError("invalid format string: %r" % template)
            num = int(digits)
            i = close + 1
        elif c.isdigit():
            j = i
            while j < length and template[j].isdigit():
                j += 1
            num = int(template[i:j])
            i = j
        else:
            raise ValueError("invalid format string: %r" % template)

        if num > len(match.spans):
            raise ValueError("invalid capture index $%d in %r" %
                             (num, template))
        out.append(match.group(num) or "")
        nextnum = num + 1
    return "".join(out)


# Matching

def match_len(subject, pattern, start=0):
    """
    Returns the length of the match of the pattern at the start position, or
    -1 if it doesn't match there.
    """

    matcher, _ = _matcher(subject, pattern)
    return matcher.run(pattern, start)


def match(subject, pattern, start=0):
    """
    Matches the pattern at the start position (without searching) and returns a
    Match, or None.
    """

    matcher, count = _matcher(subject, pattern)
    x = matcher.run(pattern, start)
    if x < 0:
        return None
    return _make_match(matcher, start, x, count)


def fullmatch(subject, pattern, start=0):
    """
    Like match(), but only succeeds if the pattern matches all of the subject
    from the start position to the end.
    """

    matcher, count = _matcher(subject, pattern)
    x = matcher.run(pattern, start)
    if x != len(subject) - start:
        return None
    return _make_match(matcher, start, x, count)


def iter_matches(subject, pattern, start=0):
    """
    Yields a Match for every match in the subject, scanning from left to right.
    After an empty match the scan moves on by one character.
    """

    matcher, count = _matcher(subject, pattern)
    i = start
    length = len(subject)
    while i <= length:
        x = matcher.run(pattern, i, origin=start)
        if x == MISS:
            i += 1
        else:
            yield _make_match(matcher, i, x, count)
            i += x or 1


def find_match(subject, pattern, start=0):
    """
    Returns a Match for the first match at or after the start position, or
    None.
    """

    for m in iter_matches(subject, pattern, start):
        return m


def find(subject, pattern, start=0):
    """
    Returns the position of the first match at or after the start position, or
    -1 if there isn't one.
    """

    matcher, _ = _matcher(subject, pattern)
    for i in range(start, len(subject) + 1):
        if matcher.run(pattern, i, origin=start) >= 0:
            return i
    return -1


def find_bounds(subject, pattern, start=0):
    """
    Returns the (start, end) of the first match at or after the start
    position, or (-1, 0) if there isn't one.
    """

    m = find_match(subject, pattern, start)
    if m is None:
        return -1, 0
    return m.start, m.end


def find_iter(subject, pattern, start=0):
    for m in iter_matches(subject, pattern, start):
        yield m.group()


def find_all(subject, pattern, start=0):
    """
    Returns a list of the text of every match in the subject.
    """

    return list(find_iter(subject, pattern, start))


def contains(subject, pattern, start=0):
    return find(subject, pattern, start) >= 0


def starts_with(subject, prefix, start=0):
    return match_len(subject, prefix, start) >= 0


def ends_with(subject, suffix, start=0):
    """
    Returns True if the pattern matches from some position at or after start
    all the way to the end of the subject.
    """

    matcher, _ = _matcher(subject, suffix)
    length = len(subject)
    for i in range(start, length + 1):
        if matcher.run(suffix, i, origin=start) == length - i:
            return True
    return False


# Replacing

def _replace(subject, pattern, fn):
    matcher, count = _matcher(subject, pattern)
    out = []
    i = last = 0
    index = 0
    length = len(subject)
    while i < length:
        x = matcher.run(pattern, i, origin=0)
        # Empty matches are not replaced
        if x <= 0:
            i += 1
            continue

        out.append(subject[last:i])
        out.append(fn(index, _make_match(matcher, i, x, count)))
        index += 1
        i += x
        last = i

    out.append(subject[last:])
    return "".join(out)


def replace(subject, sub, by=""):
    """
    Replaces every (non-empty) match of the pattern with the given string.
    """

    return _replace(subject, sub, lambda index, m: by)


def replacef(subject, sub, by):
    """
    Replaces every (non-empty) match of the pattern with the template, filled
    in with the captures of the match (see format_captures()).
    """

    return _replace(subject, sub, lambda index, m: format_captures(by, m))


def replace_with(subject, sub, callback):
    """
    Replaces every (non-empty) match of the pattern with the return value of
    ``callback(index, count, captures)``, where ``index`` counts matches from
    0, ``count`` is the number of captures in the pattern, and ``captures`` is
    a list of the captured strings.
    """

    def fn(index, m):
        caps = m.groups(default="")
        return callback(index, len(caps), caps)

    return _replace(subject, sub, fn)


def parallel_replace(subject, subs):
    """
    Replaces matches of several patterns in a single pass. ``subs`` is a list
    of ``(pattern, template)`` pairs. At every position, the patterns are tried
    in order, and the first one that matches is replaced with its template
    (filled in as in replacef()).
    """

    prepared = []
    for pattern, template in subs:
        matcher, count = _matcher(subject, pattern)
        prepared.append((pattern, template, matcher, count))

    out = []
    i = last = 0
    length = len(subject)
    while i < length:
        for pattern, template, matcher, count in prepared:
            x = matcher.run(pattern, i, origin=0)
            if x > 0:
                m = _make_match(matcher, i, x, count)
                out.append(subject[last:i])
                out.append(format_captures(template, m))
                i += x
                last = i
                break
        else:
            i += 1

    out.append(subject[last:])
    return "".join(out)


# Splitting

def split_iter(subject, sep):
    """
    Yields the pieces of text between (non-empty) matches of the separator
    pattern, including empty pieces where separators are adjacent or at either
    end of the subject.
    """

    matcher, _ = _matcher(subject, sep)
    piece = i = 0
    length = len(subject)
    while i < length:
        x = matcher.run(sep, i, origin=0)
        if x > 0:
            yield subject[piece:i]
            i += x
            piece = i
        else:
            i += 1
    yield subject[piece:]


def split(subject, sep):
    return list(split_iter(subject, sep))


def escape_peg(s):
    """
    Returns pattern text that matches the string literally.
    """

    return r.quote_string(s)


# Files

def transform_file(infile, outfile, subs):
    """
    Reads a file, applies parallel_replace() to its contents and writes the
    result to another file.
    """

    with open(infile, "rb") as f:
        content = f.read().decode("utf-8")
    out = parallel_replace(content, subs)
    logger.debug("Transformed %s to %s", infile, outfile)
    with open(outfile, "wb") as f:
        f.write(out.encode("utf-8"))


def replace_in_file(filepath, subs):
    transform_file(filepath, filepath, subs)
