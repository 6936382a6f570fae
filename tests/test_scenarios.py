from textpegs import compile, find_all, match, match_len, replace, split


def test_repeated_literal_then_char():
    assert match_len("ababc", compile("'ab'* 'c'")) == 5


def test_captures_in_a_date():
    m = match("2024-05", compile("{[0-9]+} '-' {[0-9]+}"))
    assert m.group() == "2024-05"
    assert m.groups() == ["2024", "05"]


def test_backreference_to_a_word():
    p = compile("{[a-z]+} ' ' $1")
    assert match_len("foo foo", p) == 7
    assert match_len("foo bar", p) == -1


def test_replace_every_match():
    assert replace("aaa", compile("'a'"), "b") == "bbb"


def test_find_all_words():
    assert find_all("one two three", compile("\\w+")) == ["one", "two", "three"]


def test_split_keeps_empty_pieces():
    assert split("a,,b", compile("','")) == ["a", "", "b"]
