"""Tests for CharmURL parsing."""
import pytest

from charmdir import CharmURL, CharmURLError


class TestCharmURL:
    """Tests for CharmURL."""

    def test_parse(self):
        url = CharmURL.parse("cs:series/blah-blah-123")

        assert url.schema == "cs"
        assert url.series == "series"
        assert url.name == "blah-blah"
        assert url.revision == 123
        assert url.user is None

    def test_parse_user(self):
        url = CharmURL.parse("cs:~alice/trusty/wordpress-7")

        assert url.user == "alice"
        assert url.series == "trusty"
        assert url.name == "wordpress"
        assert str(url) == "cs:~alice/trusty/wordpress-7"

    def test_no_revision(self):
        url = CharmURL.parse("local:precise/mysql")

        assert url.revision == -1
        assert str(url) == "local:precise/mysql"

    @pytest.mark.parametrize("text", [
        "cs:series/blah-blah-123",
        "local:precise/mysql-0",
        "cs:~user.name/quantal/my-charm2",
    ])
    def test_str_round_trip(self, text):
        assert str(CharmURL.parse(text)) == text

    @pytest.mark.parametrize("text", [
        "precise/mysql",
        "http:precise/mysql",
        "cs:mysql",
        "cs:a/b/c/d",
        "local:~alice/precise/mysql",
        "cs:~A/precise/mysql",
        "cs:Precise/mysql",
        "cs:precise/MySQL",
        "cs:precise/1mysql",
        "cs:precise/mysql-",
        "",
    ])
    def test_invalid(self, text):
        with pytest.raises(CharmURLError):
            CharmURL.parse(text)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            CharmURL.parse("nonsense")

    def test_with_revision(self):
        url = CharmURL.parse("cs:precise/mysql-3")

        assert url.with_revision(4) == CharmURL.parse("cs:precise/mysql-4")
        assert url.revision == 3

    def test_equality_and_hash(self):
        a = CharmURL.parse("cs:precise/mysql-3")
        b = CharmURL(schema="cs", series="precise", name="mysql", revision=3)

        assert a == b
        assert len({a, b}) == 1
