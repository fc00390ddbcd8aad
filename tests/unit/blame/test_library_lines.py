import pytest

from scmblame.blame import match_lines, split_lines, strip_whitespace


class TestSplitLines:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            (b"", []),
            (b"a", [b"a"]),
            (b"a\n", [b"a"]),
            (b"a\nb", [b"a", b"b"]),
            (b"a\n\n", [b"a", b""]),
            (b"a\r\nb\r\n", [b"a\r", b"b\r"]),
        ],
    )
    def test_splits_on_lf_only(self, content: bytes, expected: list[bytes]) -> None:
        assert split_lines(content) == expected


class TestStripWhitespace:
    def test_removes_all_whitespace(self) -> None:
        assert strip_whitespace(b"  if (a  ==\tb) {\r") == b"if(a==b){"


class TestMatchLines:
    def test_identical_versions_match_one_to_one(self) -> None:
        lines = [b"a", b"b", b"c"]

        assert match_lines(lines, lines) == {0: 0, 1: 1, 2: 2}

    def test_whitespace_changes_still_match(self) -> None:
        old = [b"def f():", b"    return 1"]
        new = [b"def f( ):", b"\treturn  1"]

        assert match_lines(old, new) == {0: 0, 1: 1}

    def test_inserted_line_is_unmatched(self) -> None:
        old = [b"a", b"c"]
        new = [b"a", b"b", b"c"]

        assert match_lines(old, new) == {0: 0, 2: 1}

    def test_changed_line_is_unmatched(self) -> None:
        assert match_lines([b"a", b"b"], [b"a", b"x"]) == {0: 0}

    def test_deleted_lines_shift_indexes(self) -> None:
        assert match_lines([b"a", b"b", b"c"], [b"a", b"c"]) == {0: 0, 1: 2}

    def test_repeated_lines_are_not_junk(self) -> None:
        old = [b"}"] * 300
        new = [b"}"] * 300

        assert len(match_lines(old, new)) == 300

    def test_prefers_more_lines_over_longest_block(self) -> None:
        first = [b"def f():", b"    a = 1", b"    return a"]
        second = [b"def g():", b"    b = 2", b"    return b"]
        braces = [b"}"] * 4
        old = [*first, b"# one", *second, *braces]
        new = [*braces, *first, b"# two", *second]

        assert match_lines(old, new) == {4: 0, 5: 1, 6: 2, 8: 4, 9: 5, 10: 6}

    def test_empty_side_matches_nothing(self) -> None:
        assert match_lines([], [b"a"]) == {}
        assert match_lines([b"a"], []) == {}
