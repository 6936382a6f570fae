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

from pygments import highlight
from pygments.formatters import HtmlFormatter, TerminalFormatter
from pygments.lexer import RegexLexer, bygroups, include
from pygments.token import Comment, Keyword, Name, Number, Operator, \
    Punctuation, String, Text


class PegLexer(RegexLexer):
    """
    Lexer for textpegs pattern and grammar text.
    """

    name = "PEG"
    aliases = ["peg", "textpegs"]
    filenames = ["*.peg"]

    tokens = {
        'whitespace': [
            (r'\s+', Text),
            (r'#.*?$', Comment),
        ],
        'root': [
            include('whitespace'),
            (r'([A-Za-z][A-Za-z0-9_]*)(\s*)(<-)',
             bygroups(Name.Function, Text, Operator)),
            (r'[ivy](?=[\'"])', String.Affix),
            (r"'", String, 'sqstring'),
            (r'"', String, 'dqstring'),
            (r'\[', String.Char, 'charclass'),
            (r'[iy]?\$[0-9]+', Name.Variable),
            (r'\\(letter|upper|lower|title|white|ident|skip|'
             r'x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[0-9]{1,3}|[A-Za-z]|.)',
             Keyword),
            (r'\{@\}', Operator),
            (r'[/&!@?*+^$]', Operator),
            (r'[.]', Keyword.Pseudo),
            (r'_(?![A-Za-z0-9_])', Keyword.Pseudo),
            (r'[(){}]', Punctuation),
            (r'[0-9]+', Number),
            (r'[A-Za-z][A-Za-z0-9_]*', Name),
        ],
        'sqstring': [
            (r"'", String, '#pop'),
            (r'\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[0-9]{1,3}|.)',
             String.Escape),
            (r"[^\\']+", String),
        ],
        'dqstring': [
            (r'"', String, '#pop'),
            (r'\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[0-9]{1,3}|.)',
             String.Escape),
            (r'[^\\"]+', String),
        ],
        'charclass': [
            (r'\]', String.Char, '#pop'),
            (r'\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|[0-9]{1,3}|.)',
             String.Escape),
            (r'[^\\\]]+', String.Char),
        ],
    }


def format_string(source, html=False, style="default"):
    """
    Returns the grammar source highlighted with ANSI codes for a terminal, or
    as HTML if ``html`` is True.
    """

    lexer = PegLexer()
    if html:
        if not source:
            return ""
        return highlight(source, lexer, HtmlFormatter(style=style))
    return highlight(source, lexer, TerminalFormatter())


# Command line colors

def code_chars(code):
    return "\033[%sm" % str(code)


class Ansi(object):
    red = code_chars(31)
    green = code_chars(32)
    yellow = code_chars(33)
    cyan = code_chars(36)
    reset = code_chars(39)

    bold = code_chars(1)
    reset_all = code_chars(0)


def mark_spans(text, spans, color=Ansi.yellow):
    """
    Returns the text with the given (start, end) spans wrapped in ANSI color
    codes. The spans must be sorted and must not overlap.
    """

    out = []
    last = 0
    for start, end in spans:
        out.append(text[last:start])
        out.append(color + Ansi.bold + text[start:end] + Ansi.reset_all)
        last = end
    out.append(text[last:])
    return "".join(out)
