import logging


# Add a null handler to the textpegs logging tree to silence it by default.
# (In Python 3 if a logger doesn't have a handler Python will add one when the
# logger is used.)
logger = logging.getLogger("textpegs")
logger.addHandler(logging.NullHandler())


from textpegs.parser import PegError
from textpegs.parser.captures import Captures
from textpegs.parser.compiler import compile, compile_file
from textpegs.parser.engine import MISS, Matcher, evaluate
from textpegs.parser.rules import (
    any_char, any_rune, backref, backref_ignore_case, backref_ignore_style,
    capture, captured_search, char, charset, choice, dump_tree, end_anchor,
    ident, letter, lower, newline, nonterminal, not_, opt, peek, plus,
    render, rule_def, rule_list, search, sequence, star, start_anchor, term,
    term_ignore_case, term_ignore_style, title, upper, white, NonTerminal,
)
from textpegs.functions import (
    Match, contains, ends_with, escape_peg, find, find_all, find_bounds,
    find_iter, find_match, format_captures, fullmatch, iter_matches, match,
    match_len, parallel_replace, replace, replace_in_file, replace_with,
    replacef, split, split_iter, starts_with, transform_file,
)
from textpegs.events import EventMatcher, event_parser
