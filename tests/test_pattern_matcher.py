import pytest

from s3_artifact_sync.exceptions import ConfigurationError
from s3_artifact_sync.resolve import GLOB, REGEX, MatchRuleTable, PatternMatcher


def table(mapping):
    return MatchRuleTable.from_mapping(mapping)


class TestRegexMatcher:
    def test_search_semantics(self):
        matcher = PatternMatcher(REGEX)
        assert matcher.match("/data/css/file.cgz", table({".*(css|cgz)$": "text/css"})) == "text/css"
        # a substring match is enough
        assert matcher.match("/data/css/file.cgz", table({"css": "text/css"})) == "text/css"

    def test_empty_pattern_is_a_default(self):
        matcher = PatternMatcher(REGEX)
        assert matcher.match("/data/css/file.cgz", table({"": "text/css"})) == "text/css"

    def test_first_rule_in_declaration_order_wins(self):
        matcher = PatternMatcher(REGEX)
        rules = MatchRuleTable.from_pairs([(r"\.css$", "text/css"), ("", "application/x-default")])
        assert matcher.match("site.css", rules) == "text/css"
        assert matcher.match("site.map", rules) == "application/x-default"

        reversed_rules = MatchRuleTable.from_pairs(list(reversed(rules.rules)))
        assert matcher.match("site.css", reversed_rules) == "application/x-default"

    def test_no_match_and_empty_table(self):
        matcher = PatternMatcher(REGEX)
        assert matcher.match("file.bin", table({r"\.css$": "text/css"})) == ""
        assert matcher.match("file.bin", MatchRuleTable()) == ""
        assert matcher.match_value("file.bin", MatchRuleTable()) is None

    def test_repeated_lookups_are_stable(self):
        matcher = PatternMatcher(REGEX)
        rules = table({r"\.css$": "text/css", r"\.js$": "application/javascript"})
        first = matcher.match("a/b.js", rules)
        assert first == matcher.match("a/b.js", rules) == "application/javascript"

    def test_malformed_regex_is_a_configuration_error(self):
        matcher = PatternMatcher(REGEX)
        with pytest.raises(ConfigurationError, match="Invalid regex"):
            matcher.match("file.css", table({"(unclosed": "text/css"}))

    def test_compile_table_fails_eagerly(self):
        with pytest.raises(ConfigurationError):
            PatternMatcher(REGEX).compile_table(table({"[a-": "x"}))


class TestGlobMatcher:
    @pytest.mark.parametrize(
        "pattern,path,expected",
        [
            ("", "data/css/file.cgz", ""),
            ("*", "data/css/file.cgz", "text/css"),
            (".cgz", "data/css/file.cgz", ""),
            ("*.cgz", "data/css/file.cgz", "text/css"),
            ("*.cgz", "data/css/file.tgz", ""),
            ("data*.cgz", "data/css/file.cgz", "text/css"),
            ("*css*.cgz", "data/css/file.cgz", "text/css"),
        ],
    )
    def test_glob_rules(self, pattern, path, expected):
        assert PatternMatcher(GLOB).match(path, table({pattern: "text/css"})) == expected

    def test_compile_table_ignores_glob_syntax(self):
        PatternMatcher(GLOB).compile_table(table({"[a-": "x"}))


def test_unknown_syntax_is_rejected():
    with pytest.raises(ConfigurationError, match="Unsupported pattern syntax"):
        PatternMatcher("shell")
