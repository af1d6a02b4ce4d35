"""
Tests des objets valeur et entites du domaine.
"""

import pytest

from cinescope.core.entities import AccountUser, CollectionItem
from cinescope.core.value_objects import EpisodeKey, MediaKey, MediaType


class TestEpisodeKey:
    def test_text_form(self):
        assert str(EpisodeKey(1399, 1, 1)) == "1399:1:1"

    def test_parse(self):
        assert EpisodeKey.parse("1399:2:10") == EpisodeKey(1399, 2, 10)

    @pytest.mark.parametrize("value", ["1399:1", "a:b:c", "1:2:3:4", ""])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            EpisodeKey.parse(value)

    def test_hashable(self):
        assert len({EpisodeKey(1, 1, 1), EpisodeKey(1, 1, 1)}) == 1


class TestMediaKey:
    def test_same_id_different_type(self):
        assert MediaKey(550, MediaType.MOVIE) != MediaKey(550, MediaType.TV)

    def test_item_key(self):
        item = CollectionItem(550, MediaType.MOVIE, "Fight Club")
        assert item.key == MediaKey(550, MediaType.MOVIE)

    def test_account_path(self):
        assert MediaType.MOVIE.account_path == "movies"
        assert MediaType.TV.account_path == "tv"


class TestAccountUserAvatar:
    BASE = "https://image.tmdb.org/t/p/w200"

    def test_tmdb_avatar_first(self):
        user = AccountUser(7, "tyler", avatar_path="/a.png", gravatar_hash="abc")
        assert user.avatar_url(self.BASE) == f"{self.BASE}/a.png"

    def test_gravatar_fallback(self):
        user = AccountUser(7, "tyler", gravatar_hash="abc")
        assert user.avatar_url(self.BASE) == "https://www.gravatar.com/avatar/abc"

    def test_no_avatar(self):
        assert AccountUser(7, "tyler").avatar_url(self.BASE) is None
