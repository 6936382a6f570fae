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

import logging
import os.path

import click

from textpegs import config, coloring, functions
from textpegs.parser import PegError, rules
from textpegs.parser.compiler import compile, compile_file


# Helper functions

def logger_from_config(cfg, logger=None):
    logger = logger or logging.getLogger("textpegs")

    if not any(not isinstance(h, logging.NullHandler)
               for h in logger.handlers):
        handler = logging.StreamHandler()
        # If there's a log file in the config, set up a handler for it
        log_file = cfg.get("LOGFILE")
        if log_file:
            log_file = config.expandpath(log_file)
            try:
                handler = logging.FileHandler(log_file)
            except IOError:
                pass

        # Set a formatter because the default is awful
        handler.setFormatter(logging.Formatter("%(asctime)s: %(message)s"))
        logger.addHandler(handler)

    # Set the log level
    log_level = cfg.get("LOGLEVEL", "WARNING")
    if cfg.get("DEBUG"):
        log_level = "DEBUG"
    # If the log level is a string, convert it
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper())
    logger.setLevel(log_level)

    return logger


def _get_pattern(cfg, pattern, from_file=False):
    try:
        if from_file:
            return compile_file(pattern, config=cfg)
        return compile(pattern, config=cfg)
    except PegError as e:
        raise click.ClickException(str(e))


def _get_text(text):
    if text is None:
        return click.get_text_stream("stdin").read()
    return text


def _match_lines(m):
    yield "%d:%d %s" % (m.start, m.end, m.group())
    for n, cap in enumerate(m.groups(), 1):
        yield "  $%d = %r" % (n, cap)


# Command line interface

pattern_file_option = click.option(
    "-f", "--file", "from_file", is_flag=True,
    help="Read the pattern from the file named by PATTERN."
)


@click.group()
@click.option("-C", "--config", "config_file", type=str)
@click.option("-l", "--logfile", type=click.Path())
@click.option("-L", "--loglevel", type=str)
@click.option("-d", "--debug", is_flag=True)
@click.pass_context
def cli(ctx, config_file, logfile, loglevel, debug):
    """Command line tool for matching text with PEG patterns."""

    cfg = config.read_config(config_file=config_file, root_path=os.getcwd())

    if logfile:
        cfg["LOGFILE"] = logfile
    if loglevel:
        cfg["LOGLEVEL"] = loglevel
    if debug:
        cfg["DEBUG"] = debug

    config.set_config(cfg)
    logger_from_config(cfg)
    ctx.obj = cfg


# Commands

@cli.command()
@click.argument("pattern")
@click.argument("text", required=False)
@click.option("--full", is_flag=True,
              help="Only succeed if the pattern matches all of the text.")
@pattern_file_option
@click.pass_obj
def match(cfg, pattern, text, full, from_file):
    """Matches the pattern at the start of the text and prints the captures."""

    peg = _get_pattern(cfg, pattern, from_file)
    text = _get_text(text)
    fn = functions.fullmatch if full else functions.match
    m = fn(text, peg)
    if m is None:
        click.echo("No match", err=True)
        raise SystemExit(1)
    for line in _match_lines(m):
        click.echo(line)


@cli.command()
@click.argument("pattern")
@click.argument("text", required=False)
@pattern_file_option
@click.pass_obj
def find(cfg, pattern, text, from_file):
    """Prints the position of the first match in the text."""

    peg = _get_pattern(cfg, pattern, from_file)
    text = _get_text(text)
    m = functions.find_match(text, peg)
    if m is None:
        click.echo("No match", err=True)
        raise SystemExit(1)
    for line in _match_lines(m):
        click.echo(line)


@cli.command()
@click.argument("pattern")
@click.argument("text", required=False)
@click.option("--color", is_flag=True, help="Print the text with the matches "
                                            "highlighted.")
@pattern_file_option
@click.pass_obj
def findall(cfg, pattern, text, color, from_file):
    """Prints every match in the text."""

    peg = _get_pattern(cfg, pattern, from_file)
    text = _get_text(text)
    if color:
        spans = [(m.start, m.end) for m in functions.iter_matches(text, peg)]
        click.echo(coloring.mark_spans(text, spans))
    else:
        for s in functions.find_all(text, peg):
            click.echo(s)


@cli.command()
@click.argument("pattern")
@click.argument("by")
@click.argument("text", required=False)
@click.option("-t", "--template", is_flag=True,
              help="Fill in $1, $2 etc. in the replacement with the captures.")
@pattern_file_option
@click.pass_obj
def replace(cfg, pattern, by, text, template, from_file):
    """Replaces every match in the text."""

    peg = _get_pattern(cfg, pattern, from_file)
    text = _get_text(text)
    if template:
        try:
            out = functions.replacef(text, peg, by)
        except ValueError as e:
            raise click.ClickException(str(e))
    else:
        out = functions.replace(text, peg, by)
    click.echo(out, nl=False)


@cli.command()
@click.argument("pattern")
@click.argument("text", required=False)
@pattern_file_option
@click.pass_obj
def split(cfg, pattern, text, from_file):
    """Splits the text on matches of the pattern, printing one piece per
    line."""

    peg = _get_pattern(cfg, pattern, from_file)
    for piece in functions.split(_get_text(text), peg):
        click.echo(piece)


@cli.command()
@click.argument("pattern")
@click.option("--tree", is_flag=True, help="Print the rule tree.")
@click.option("--color", is_flag=True, help="Highlight the output.")
@click.option("--html", is_flag=True, help="Highlight the output as HTML.")
@pattern_file_option
@click.pass_obj
def render(cfg, pattern, tree, color, html, from_file):
    """Prints the compiled form of a pattern."""

    peg = _get_pattern(cfg, pattern, from_file)
    if tree:
        click.echo(rules.dump_tree(peg), nl=False)
        return

    out = rules.render(peg)
    if html:
        out = coloring.format_string(out, html=True,
                                     style=cfg["PYGMENTS_STYLE"])
    elif color:
        out = coloring.format_string(out)
    click.echo(out.rstrip("\n"))


@cli.command()
@click.argument("infile", type=click.Path(exists=True, dir_okay=False))
@click.argument("outfile", type=click.Path(dir_okay=False, writable=True))
@click.option("-s", "--sub", "subs", nargs=2, multiple=True, required=True,
              metavar="PATTERN TEMPLATE")
@click.pass_obj
def transform(cfg, infile, outfile, subs):
    """Replaces matches of one or more patterns in a file, writing the result
    to another file."""

    pairs = [(_get_pattern(cfg, p), t) for p, t in subs]
    try:
        functions.transform_file(infile, outfile, pairs)
    except ValueError as e:
        raise click.ClickException(str(e))


def main():
    cli()


if __name__ == "__main__":
    main()
