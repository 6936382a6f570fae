import pytest

from textpegs import config
from textpegs.parser import PegError
from textpegs.parser.compiler import compile


def test_defaults():
    cfg = config.read_config()
    assert cfg["MAX_SUBPATTERNS"] == 20
    assert cfg["INLINE_THRESHOLD"] == 5
    assert cfg["PATTERN_FILENAME"] == "pattern"
    assert cfg["LOGLEVEL"] == "WARNING"


def test_config_file(tmp_path):
    path = tmp_path / "textpegs.cfg"
    path.write_text(u"INLINE_THRESHOLD = 0\nPATTERN_FILENAME = 'mine'\n")
    cfg = config.read_config(config_file=str(path))
    assert cfg["INLINE_THRESHOLD"] == 0
    assert cfg["PATTERN_FILENAME"] == "mine"
    assert cfg["MAX_SUBPATTERNS"] == 20


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "env.cfg"
    path.write_text(u"CACHE_SIZE = 3\n")
    monkeypatch.setenv("TEXTPEGS_CONFIG", str(path))
    cfg = config.read_config()
    assert cfg["CACHE_SIZE"] == 3


def test_get_and_set_config():
    cfg = config.get_config()
    assert config.get_config() is cfg

    other = config.read_config()
    other["MAX_SUBPATTERNS"] = 2
    config.set_config(other)
    assert config.get_config() is other
    with pytest.raises(PegError):
        compile("{'k'} {'l'} {'m'}")


def test_compile_with_config():
    cfg = config.read_config()
    cfg["PATTERN_FILENAME"] = "mine"
    with pytest.raises(PegError) as excinfo:
        compile("'unclosed", config=cfg)
    assert str(excinfo.value).startswith("mine(1,1)")

    cfg["MAX_SUBPATTERNS"] = 1
    with pytest.raises(PegError):
        compile("{'s'} {'t'}", config=cfg)
