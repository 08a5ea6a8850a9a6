from utils.arg_parser import CommandArgParser, parse_args


def test_parse_args_reads_quoted_pairs():
    assert parse_args('title="A" date="2025-01-01"') == {"title": "A", "date": "2025-01-01"}


def test_parse_args_last_value_wins():
    assert parse_args('a="1" a="2"') == {"a": "2"}


def test_parse_args_ignores_unquoted_values():
    assert "title" not in parse_args("title=A")


def test_parse_args_keeps_spaces_inside_quotes_and_skips_prose():
    text = 'please create title="Design Week 2025" and code="dw25" thanks'
    assert CommandArgParser.parse_args(text) == {"title": "Design Week 2025", "code": "dw25"}


def test_parse_args_empty():
    assert parse_args("") == {}
    assert parse_args('title=""') == {}
