import logging

from click.testing import CliRunner

from textpegs import config
from textpegs.cli import cli, logger_from_config


def run(*args, **kwargs):
    return CliRunner().invoke(cli, list(args), **kwargs)


def test_match():
    result = run("match", "{[0-9]+} '-' {[0-9]+}", "2024-05")
    assert result.exit_code == 0
    assert result.output == "0:7 2024-05\n  $1 = '2024'\n  $2 = '05'\n"


def test_match_failure():
    result = run("match", "'x'", "abc")
    assert result.exit_code == 1

    result = run("match", "--full", "'ab'", "abc")
    assert result.exit_code == 1


def test_find():
    result = run("find", "[0-9]+", "abc123")
    assert result.exit_code == 0
    assert result.output == "3:6 123\n"


def test_findall():
    result = run("findall", "\\w+", "one two")
    assert result.exit_code == 0
    assert result.output == "one\ntwo\n"


def test_findall_from_stdin():
    result = run("findall", "\\d+", input="a1b22")
    assert result.exit_code == 0
    assert result.output == "1\n22\n"


def test_replace():
    result = run("replace", "'a'", "b", "aaa")
    assert result.exit_code == 0
    assert result.output == "bbb"

    result = run("replace", "-t", "{\\w+} '=' {\\w+}", "$2=$1", "a=b")
    assert result.exit_code == 0
    assert result.output == "b=a"


def test_split():
    result = run("split", "','", "a,,b")
    assert result.exit_code == 0
    assert result.output == "a\n\nb\n"


def test_render():
    result = run("render", "'a'+")
    assert result.exit_code == 0
    assert result.output == "('a' 'a'*)\n"

    result = run("render", "--tree", "{'a'}")
    assert result.exit_code == 0
    assert result.output == "<Capture 0>\n  <Char 'a'>\n"


def test_pattern_from_file(tmp_path):
    path = tmp_path / "words.peg"
    path.write_text(u"Word <- [a-z]+\n")
    result = run("findall", "-f", str(path), "ab cd")
    assert result.exit_code == 0
    assert result.output == "ab\ncd\n"


def test_bad_pattern():
    result = run("findall", "'abc", "abc")
    assert result.exit_code == 1
    assert "unterminated string literal" in result.output


def test_transform(tmp_path):
    infile = tmp_path / "in.txt"
    outfile = tmp_path / "out.txt"
    infile.write_text(u"cat and dog\n")
    result = run("transform", str(infile), str(outfile),
                 "-s", "'cat'", "dog", "-s", "'dog'", "cat")
    assert result.exit_code == 0
    assert outfile.read_text() == u"dog and cat\n"


def test_config_file(tmp_path):
    path = tmp_path / "textpegs.cfg"
    path.write_text(u"MAX_SUBPATTERNS = 1\n")
    result = run("-C", str(path), "match", "{'q'} {'r'}", "qr")
    assert result.exit_code == 1
    assert "too many captures" in result.output
    assert config.get_config()["MAX_SUBPATTERNS"] == 1


def test_logger_from_config(tmp_path):
    logger = logging.getLogger("textpegs.test_cli")
    logfile = tmp_path / "textpegs.log"
    cfg = {"LOGLEVEL": "info", "LOGFILE": str(logfile)}
    try:
        logger_from_config(cfg, logger)
        assert logger.level == logging.INFO
        assert isinstance(logger.handlers[0], logging.FileHandler)
        logger.info("hello")
        logger.handlers[0].flush()
        assert "hello" in logfile.read_text()

        logger_from_config({"DEBUG": True}, logger)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
