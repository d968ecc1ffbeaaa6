"""
Path normalization and joining.
"""

import pytest

from trellis.controller.paths import join_paths, normalize_path


class TestNormalizePath:

    @pytest.mark.parametrize("raw,expected", [
        ("", ""),
        ("a/", "/a"),
        ("/a/", "/a"),
        ("/", "/"),
        ("auth", "/auth"),
        ("/users/:id", "/users/:id"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_only_one_trailing_slash_is_stripped(self):
        assert normalize_path("a//") == "/a/"


class TestJoinPaths:

    def test_join_three_fragments(self):
        assert join_paths("/api", "/auth", "/login") == "/api/auth/login"

    def test_fragments_normalized_independently(self):
        assert join_paths("api/", "auth", "login/") == "/api/auth/login"

    def test_empty_fragments_vanish(self):
        assert join_paths("/api", "", "") == "/api"
        assert join_paths("", "", "") == ""

    def test_result_is_not_renormalized(self):
        # "/" survives as its own fragment
        assert join_paths("/api", "/", "/x") == "/api//x"
