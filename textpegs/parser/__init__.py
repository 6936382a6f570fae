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

class PegError(Exception):
    """
    Raised when a grammar can't be compiled. The message carries the name of
    the grammar "file" and the line and column of the offending text.
    """

    def __init__(self, message, filename="pattern", line=0, col=0):
        super(PegError, self).__init__(message, filename, line, col)
        self.message = message
        self.filename = filename
        self.line = line
        self.col = col

    def __str__(self):
        return "%s(%d,%d) %s" % (self.filename, self.line, self.col,
                                 self.message)


def row_and_col(stream, i):
    """
    Given a string and an index into the string, returns a tuple of the line
    number and column number corresponding to that position.
    """

    row = 1
    nl = stream.find("\n")
    while 0 <= nl < i:
        row += 1
        nl = stream.find("\n", nl + 1)

    pnl = stream.rfind("\n", 0, i)
    col = (i - pnl) if pnl >= 0 else i + 1

    return row, col


def condition_string(c):
    # Remove stray BOM
    if c and c[0] == u"\ufeff":
        c = c[1:]
    return c.replace("\r\n", "\n").replace("\r", "\n")
