"""Tests for batch parsing, auto-detection, the regex shortcut and aggregation."""
from __future__ import annotations

import logging
import pickle

import pytest

from combparse.aggregators.counter import Counter, field_value
from combparse.errors import ParseError
from combparse.parsers.auto_detect import detect_format, get_grammar, grammar_for_file
from combparse.parsers.base import LineGrammar
from combparse.parsers.json_grammar import JsonGrammar
from combparse.parsers.nginx import NginxGrammar, parse_nginx_log
from combparse.parsers.nginx_regex import NginxRegexParser
from combparse.perf import parallel_parser
from combparse.perf.parallel_parser import BatchStats, parse_file_parallel, parse_lines


# ---------------------------------------------------------------------------
# detect_format / grammar lookup
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("line,expected", [
    ('93.180.71.3 - - [17/May/2015:08:05:32 +0000] "GET / HTTP/1.1" 200 1 "-" "ua"', "nginx"),
    ('{"level": "INFO"}', "json"),
    ("[1, 2]", "json"),
    ("42", "json"),
    ("plain text log line", None),
    ("", None),
])
def test_detect_format(line: str, expected: str | None) -> None:
    assert detect_format(line) == expected


def test_grammars_implement_protocol() -> None:
    assert isinstance(JsonGrammar(), LineGrammar)
    assert isinstance(NginxGrammar(), LineGrammar)


def test_get_grammar_unknown() -> None:
    with pytest.raises(ValueError, match="unknown grammar"):
        get_grammar("syslog")


class TestGrammarForFile:
    def test_auto_detects_nginx(self, tmp_log_file, nginx_log_lines) -> None:
        path = tmp_log_file(["", *nginx_log_lines])
        assert grammar_for_file(str(path)).name == "nginx"

    def test_hint_overrides_detection(self, tmp_log_file, nginx_log_lines) -> None:
        path = tmp_log_file(nginx_log_lines)
        assert grammar_for_file(str(path), hint="json").name == "json"

    def test_undetectable_file(self, tmp_log_file) -> None:
        path = tmp_log_file(["hello world"])
        with pytest.raises(ValueError, match="cannot detect"):
            grammar_for_file(str(path))


# ---------------------------------------------------------------------------
# parse_lines
# ---------------------------------------------------------------------------

class TestParseLines:
    def test_skip_policy(self, nginx_log_lines, bad_nginx_line, caplog) -> None:
        lines = [nginx_log_lines[0], bad_nginx_line, "", nginx_log_lines[1]]
        stats = BatchStats()
        with caplog.at_level(logging.WARNING, logger="combparse.perf.parallel_parser"):
            records = list(parse_lines(lines, NginxGrammar(), on_error="skip", stats=stats))
        assert [r.status for r in records] == [304, 201]
        assert stats.parsed == 2
        assert stats.skipped == 1
        assert stats.errors[0][0] == 2
        assert "Skipping line 2" in caplog.text

    def test_skip_policy_covers_out_of_range_timestamps(self, nginx_log_lines) -> None:
        early = nginx_log_lines[0].replace("17/May/2015:08:05:32 +0000", "01/Jan/0001:00:30:00 +0100")
        late = nginx_log_lines[0].replace("17/May/2015:08:05:32 +0000", "31/Dec/9999:23:30:00 -0100")
        stats = BatchStats()
        records = list(parse_lines([early, nginx_log_lines[1], late], NginxGrammar(), stats=stats))
        assert [r.status for r in records] == [201]
        assert [lineno for lineno, _ in stats.errors] == [1, 3]

    def test_abort_policy(self, nginx_log_lines, bad_nginx_line) -> None:
        lines = [nginx_log_lines[0], bad_nginx_line]
        with pytest.raises(ParseError):
            list(parse_lines(lines, NginxGrammar(), on_error="abort"))

    def test_unknown_policy(self, nginx_log_lines) -> None:
        with pytest.raises(ValueError, match="on_error"):
            list(parse_lines(nginx_log_lines, NginxGrammar(), on_error="retry"))


# ---------------------------------------------------------------------------
# parse_file_parallel
# ---------------------------------------------------------------------------

class TestParallel:
    def test_single_worker(self, tmp_log_file, nginx_log_lines, bad_nginx_line) -> None:
        path = tmp_log_file([*nginx_log_lines, bad_nginx_line])
        stats = BatchStats()
        records = parse_file_parallel(str(path), "nginx", workers=1, stats=stats)
        assert [r.status for r in records] == [304, 201, 404]
        assert stats.skipped == 1

    def test_multiple_workers_keep_order(self, tmp_log_file, nginx_log_lines) -> None:
        lines = nginx_log_lines * 20
        path = tmp_log_file(lines)
        records = parse_file_parallel(str(path), "nginx", workers=3)
        assert len(records) == len(lines)
        assert [r.status for r in records[:3]] == [304, 201, 404]
        assert records[-1].status == 404

    def test_worker_count_falls_back_to_settings(self, tmp_log_file, nginx_log_lines, monkeypatch) -> None:
        def no_pool(*args, **kwargs):
            raise AssertionError("a single configured worker must not start a pool")

        monkeypatch.setattr(parallel_parser.settings, "max_workers", 1)
        monkeypatch.setattr(parallel_parser, "Pool", no_pool)
        path = tmp_log_file(nginx_log_lines * 5)
        records = parse_file_parallel(str(path), "nginx")
        assert len(records) == 15

    def test_ndjson(self, tmp_log_file) -> None:
        path = tmp_log_file(['{"a": 1}', "[true]"], name="events.ndjson")
        values = parse_file_parallel(str(path), "json", workers=1)
        assert len(values) == 2

    def test_abort_raises(self, tmp_log_file, bad_nginx_line) -> None:
        path = tmp_log_file([bad_nginx_line])
        with pytest.raises(ParseError):
            parse_file_parallel(str(path), "nginx", workers=1, on_error="abort")

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.log"
        path.write_text("")
        assert parse_file_parallel(str(path), "nginx") == []

    def test_parse_error_survives_pickling(self, bad_nginx_line) -> None:
        with pytest.raises(ParseError) as info:
            parse_nginx_log(bad_nginx_line)
        clone = pickle.loads(pickle.dumps(info.value))
        assert str(clone) == str(info.value)
        assert clone.failure == info.value.failure


# ---------------------------------------------------------------------------
# NginxRegexParser
# ---------------------------------------------------------------------------

class TestNginxRegexParser:
    def test_agrees_with_typed_grammar(self, nginx_log_lines) -> None:
        regex = NginxRegexParser()
        for line in nginx_log_lines:
            raw = regex.parse_line(line)
            record = parse_nginx_log(line)
            assert raw is not None
            assert raw["addr"] == str(record.address)
            assert raw["method"] == record.method.value
            assert raw["url"] == record.path
            assert raw["protocol"] == record.http_version.value
            assert int(raw["status"]) == record.status
            assert int(raw["body_bytes"]) == record.size
            assert raw["referer"] == record.referer
            assert raw["user_agent"] == record.user_agent

    def test_does_not_validate_values(self) -> None:
        line = '999.1.1.1 - - [nonsense] "FETCH / HTTP/9.9" 200 1 "-" "ua"'
        raw = NginxRegexParser().parse_line(line)
        assert raw is not None
        assert raw["method"] == "FETCH"

    def test_unmatched_and_blank(self) -> None:
        p = NginxRegexParser()
        assert p.parse_line("not a log line") is None
        assert p.parse_line("") is None


# ---------------------------------------------------------------------------
# Counter
# ---------------------------------------------------------------------------

class TestCounter:
    def test_counts_record_fields(self, nginx_log_lines) -> None:
        c = Counter("method")
        for line in nginx_log_lines:
            c.add(parse_nginx_log(line))
        assert c.top(1) == [("GET", 2)]
        assert c.total == 3

    def test_status_counts(self, nginx_log_lines) -> None:
        c = Counter("status")
        for line in nginx_log_lines * 2:
            c.add(parse_nginx_log(line))
        assert dict(c.top()) == {"304": 2, "201": 2, "404": 2}

    def test_missing_field_counts_as_unknown(self) -> None:
        c = Counter("level")
        c.add({"message": "no level here"})
        assert c.top(1)[0][0] == "unknown"

    def test_field_value(self, sample_line) -> None:
        record = parse_nginx_log(sample_line)
        assert field_value(record, "size") == 0
        assert field_value({"size": 5}, "size") == 5
        assert field_value(record, "nope") is None
