from datetime import date
from unittest.mock import AsyncMock

import pytest

from core import song_info
from songs import repository

SONG_ROW = {
    "id": 7,
    "name": "Supermassive Black Hole",
    "release_date": date(2006, 7, 16),
    "text": "line1\nline2\nline3",
    "group_id": 1,
}


@pytest.fixture
def get_song(monkeypatch):
    mock = AsyncMock(return_value=dict(SONG_ROW))
    monkeypatch.setattr(repository, "get_song", mock)
    return mock


@pytest.fixture
def update_song(monkeypatch):
    mock = AsyncMock(return_value=dict(SONG_ROW))
    monkeypatch.setattr(repository, "update_song", mock)
    return mock


@pytest.fixture
def delete_song(monkeypatch):
    mock = AsyncMock(return_value=True)
    monkeypatch.setattr(repository, "delete_song", mock)
    return mock


@pytest.fixture
def list_songs(monkeypatch):
    mock = AsyncMock(
        return_value=[
            {**SONG_ROW, "group_name": "Muse"},
            {
                "id": 8,
                "name": "Starlight",
                "release_date": date(2006, 9, 4),
                "text": "far away",
                "group_id": 1,
                "group_name": "Muse",
            },
        ]
    )
    monkeypatch.setattr(repository, "list_songs", mock)
    return mock


class TestSongText:
    def test_pages_of_two_verses(self, client, get_song):
        first = client.get("/music/7/text", params={"page": 1})
        second = client.get("/music/7/text", params={"page": 2})

        assert first.status_code == 200
        assert first.json() == {
            "song_id": 7,
            "title": "Supermassive Black Hole",
            "page": 1,
            "verses": ["line1", "line2"],
        }
        assert second.json()["verses"] == ["line3"]
        get_song.assert_awaited_with(7)

    def test_page_past_last_verse(self, client, get_song):
        resp = client.get("/music/7/text", params={"page": 3})

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Page exceeds total verses"

    @pytest.mark.parametrize("params", [{}, {"page": "0"}, {"page": "-1"}, {"page": "two"}])
    def test_bad_page_parameter(self, client, get_song, params):
        resp = client.get("/music/7/text", params=params)

        assert resp.status_code == 400
        get_song.assert_not_awaited()

    def test_unknown_song(self, client, get_song):
        get_song.return_value = None

        resp = client.get("/music/99/text", params={"page": 1})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Song with ID 99 not found"

    def test_store_failure(self, client, get_song):
        get_song.side_effect = OSError("connection refused")

        resp = client.get("/music/7/text", params={"page": 1})

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to fetch song"


class TestAddSong:
    @pytest.fixture
    def provider(self, monkeypatch):
        fetch = AsyncMock(
            return_value=song_info.SongDetail(
                release_date="16.07.2006",
                text="line1\nline2\nline3",
                link="https://example.test/v",
            )
        )
        monkeypatch.setattr(song_info, "fetch_song_detail", fetch)
        return fetch

    @pytest.fixture
    def store(self, monkeypatch):
        monkeypatch.setattr(repository, "resolve_group_id", AsyncMock(return_value=1))
        insert = AsyncMock(return_value=7)
        monkeypatch.setattr(repository, "insert_song", insert)
        return insert

    def test_adds_song(self, client, provider, store, fake_transaction):
        resp = client.post("/music", json={"group": "Muse", "song": "Supermassive Black Hole"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "Song with ID 7 has been added successfully"
        assert store.await_args.kwargs["release_date"] == date(2006, 7, 16)
        assert fake_transaction.committed

    @pytest.mark.parametrize(
        "body",
        [
            {"group": "Muse"},
            {"song": "Starlight"},
            {"group": "", "song": "Starlight"},
            {"group": "Muse", "song": "   "},
        ],
    )
    def test_missing_fields(self, client, provider, store, body):
        resp = client.post("/music", json=body)

        assert resp.status_code == 400
        provider.assert_not_awaited()

    def test_invalid_json(self, client, provider, store):
        resp = client.post("/music", content=b"{not json", headers={"content-type": "application/json"})

        assert resp.status_code == 400
        provider.assert_not_awaited()

    def test_provider_down(self, client, provider, store, fake_transaction):
        provider.side_effect = song_info.SongInfoFetchError("connection refused")

        resp = client.post("/music", json={"group": "Muse", "song": "Starlight"})

        assert resp.status_code == 500
        assert not fake_transaction.entered


class TestUpdateSong:
    def test_partial_update(self, client, update_song):
        resp = client.put("/music/7", json={"text": "new\nlyrics", "release_date": "2007-01-02"})

        assert resp.status_code == 200
        assert resp.text == "Song with ID 7 has been updated successfully"
        update_song.assert_awaited_once_with(7, {"release_date": date(2007, 1, 2), "text": "new\nlyrics"})

    def test_bad_date_rejects_everything(self, client, update_song):
        resp = client.put("/music/7", json={"name": "Renamed", "release_date": "02.01.2007"})

        assert resp.status_code == 400
        assert "YYYY-MM-DD" in resp.json()["detail"]
        update_song.assert_not_awaited()

    def test_body_is_validated_before_the_song_is_looked_up(self, client, update_song):
        update_song.return_value = None

        resp = client.put("/music/999", json={"release_date": "02.01.2007"})

        assert resp.status_code == 400
        update_song.assert_not_awaited()

    def test_unknown_field(self, client, update_song):
        resp = client.put("/music/7", json={"group_name": "Queen"})

        assert resp.status_code == 400
        update_song.assert_not_awaited()

    def test_invalid_json(self, client, update_song):
        resp = client.put("/music/7", content=b"[1, 2", headers={"content-type": "application/json"})

        assert resp.status_code == 400
        update_song.assert_not_awaited()

    def test_unknown_song(self, client, update_song):
        update_song.return_value = None

        resp = client.put("/music/99", json={"name": "Renamed"})

        assert resp.status_code == 404

    def test_empty_update_still_checks_existence(self, client, update_song):
        resp = client.put("/music/7", json={})

        assert resp.status_code == 200
        update_song.assert_awaited_once_with(7, {})


class TestDeleteSong:
    def test_delete(self, client, delete_song):
        resp = client.delete("/music/7")

        assert resp.status_code == 200
        assert resp.text == "Song with ID 7 has been deleted"
        delete_song.assert_awaited_once_with(7)

    def test_delete_without_match_still_succeeds(self, client, delete_song):
        delete_song.return_value = False

        assert client.delete("/music/404").status_code == 200

    def test_store_failure(self, client, delete_song):
        delete_song.side_effect = OSError("connection refused")

        resp = client.delete("/music/7")

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to delete song with ID 7"

    def test_non_numeric_id(self, client, delete_song):
        assert client.delete("/music/abc").status_code == 400
        delete_song.assert_not_awaited()


class TestListSongs:
    def test_lists_all_songs_without_filters(self, client, list_songs):
        resp = client.get("/songs")

        assert resp.status_code == 200
        body = resp.json()
        assert body["group"] == {"id": 1, "name": "Muse"}
        assert [song["id"] for song in body["songs"]] == [7, 8]
        assert body["songs"][0]["release_date"] == "2006-07-16"
        list_songs.assert_awaited_once_with(name="", group_name="", text="", release_date=None)

    def test_filters_are_passed_through(self, client, list_songs):
        resp = client.get(
            "/songs",
            params={"name": " black ", "group_name": "muse", "text": "line", "release_date": "2006-07-16"},
        )

        assert resp.status_code == 200
        list_songs.assert_awaited_once_with(
            name="black",
            group_name="muse",
            text="line",
            release_date=date(2006, 7, 16),
        )

    def test_no_match_is_not_found(self, client, list_songs):
        list_songs.return_value = []

        resp = client.get("/songs", params={"name": "nothing like this"})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "No songs found"

    def test_bad_release_date(self, client, list_songs):
        resp = client.get("/songs", params={"release_date": "16.07.2006"})

        assert resp.status_code == 400
        list_songs.assert_not_awaited()

    def test_store_failure(self, client, list_songs):
        list_songs.side_effect = OSError("connection refused")

        assert client.get("/songs").status_code == 500
