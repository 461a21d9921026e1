from datacat.core.matching import PrefixDirectoryMatcher, match_prefix


def test_match_prefix_respects_path_boundary():
    assert match_prefix("ns/def/A", ["ns/def/A/file.txt", "ns/def/AA/file.txt"]) == [
        "ns/def/A/file.txt"
    ]


def test_matcher_accepts_zero_depth_placeholder():
    matcher = PrefixDirectoryMatcher("ns/def/A")

    assert matcher.matches("ns/def/A") is True
    assert matcher.matches("ns/def/A/") is True
    assert matcher.matches("ns/def") is False


def test_matcher_ignores_trailing_separator_on_prefix():
    assert PrefixDirectoryMatcher("ns/def/A/").matches("ns/def/A/x") is True
    assert PrefixDirectoryMatcher("ns/def/A/").matches("ns/def/AB/x") is False
