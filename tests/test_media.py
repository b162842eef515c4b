import pytest

from streamrelay.errors import (
    EpisodeNotFound, InvalidParameter, MetadataIncomplete, UpstreamTransportFailure,
)
from streamrelay.providers.base import MediaDescriptor
from streamrelay.services.media import MediaResolver, parse_year

from conftest import FakeTMDB

TV = {"id": 1396, "name": "Breaking Bad", "first_air_date": "2008-01-20"}
SEASON = {
    "id": 3572,
    "name": "Season 1",
    "episodes": [
        {"id": 62085, "episode_number": 1, "name": "Pilot"},
        {"id": 62086, "episode_number": 2, "name": "Cat's in the Bag...", "imdb_id": "tt-embedded"},
    ],
}


def show_responses(**overrides):
    responses = {
        "/tv/1396": TV,
        "/tv/1396/season/1": SEASON,
        "/tv/1396/external_ids": {"imdb_id": "tt2"},
        "/tv/1396/season/1/episode/2/external_ids": {"imdb_id": "tt1"},
    }
    responses.update(overrides)
    return responses


@pytest.mark.asyncio
async def test_movie_resolves():
    tmdb = FakeTMDB({"/movie/603": {"title": "The Matrix", "release_date": "1999-03-30",
                                    "imdb_id": "tt0133093"}})
    media = await MediaResolver(tmdb).resolve_movie(603)

    assert media.media_type == "movie"
    assert media.title == "The Matrix"
    assert media.release_year == 1999
    assert media.tmdb_id == "603"
    assert media.imdb_id == "tt0133093"
    assert media.season is None and media.episode is None


@pytest.mark.asyncio
async def test_movie_falls_back_to_original_title():
    tmdb = FakeTMDB({"/movie/1": {"title": "", "original_title": "Matrix", "release_date": "1999"}})
    media = await MediaResolver(tmdb).resolve_movie(1)
    assert media.title == "Matrix"
    assert media.imdb_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"title": "", "release_date": "1999-03-30"},
    {"title": "The Matrix", "release_date": ""},
    {"title": "The Matrix", "release_date": "n/a"},
    {"title": "The Matrix"},
])
async def test_movie_incomplete_metadata(payload):
    with pytest.raises(MetadataIncomplete):
        await MediaResolver(FakeTMDB({"/movie/603": payload})).resolve_movie(603)


@pytest.mark.asyncio
async def test_show_prefers_episode_cross_ref():
    tmdb = FakeTMDB(show_responses())
    media = await MediaResolver(tmdb).resolve_show("1396", "1", "2")

    assert media.imdb_id == "tt1"
    assert media.season.number == 1 and media.season.tmdb_id == "3572"
    assert media.episode.number == 2 and media.episode.title == "Cat's in the Bag..."
    assert media.to_dict()["episode"] == {"number": 2, "tmdbId": "62086", "title": "Cat's in the Bag..."}


@pytest.mark.asyncio
async def test_show_cross_ref_fallback_chain():
    failing = UpstreamTransportFailure("TMDB error 500", status=500)
    tmdb = FakeTMDB(show_responses(**{"/tv/1396/season/1/episode/2/external_ids": failing}))
    assert (await MediaResolver(tmdb).resolve_show(1396, 1, 2)).imdb_id == "tt2"

    tmdb = FakeTMDB(show_responses(**{
        "/tv/1396/season/1/episode/2/external_ids": failing,
        "/tv/1396/external_ids": RuntimeError("boom"),
    }))
    assert (await MediaResolver(tmdb).resolve_show(1396, 1, 2)).imdb_id == "tt-embedded"

    tmdb = FakeTMDB(show_responses(**{
        "/tv/1396": dict(TV, imdb_id="tt-show"),
        "/tv/1396/season/1": dict(SEASON, episodes=[{"id": 9, "episode_number": 2}]),
        "/tv/1396/season/1/episode/2/external_ids": {"imdb_id": None},
        "/tv/1396/external_ids": {},
    }))
    assert (await MediaResolver(tmdb).resolve_show(1396, 1, 2)).imdb_id == "tt-show"


@pytest.mark.asyncio
@pytest.mark.parametrize("season, episode", [
    ("0", "1"), ("1", "0"), ("-1", "2"), ("abc", "1"), ("1", "inf"), (None, "1"), ("1", "nan"),
])
async def test_show_invalid_parameters_before_network(season, episode):
    tmdb = FakeTMDB(show_responses())
    with pytest.raises(InvalidParameter):
        await MediaResolver(tmdb).resolve_show(1396, season, episode)
    assert tmdb.calls == []


@pytest.mark.asyncio
async def test_show_episode_not_found():
    tmdb = FakeTMDB(show_responses())
    with pytest.raises(EpisodeNotFound):
        await MediaResolver(tmdb).resolve_show(1396, 1, 7)


@pytest.mark.asyncio
async def test_show_incomplete_metadata():
    tmdb = FakeTMDB(show_responses(**{"/tv/1396": {"name": "Breaking Bad"}}))
    with pytest.raises(MetadataIncomplete):
        await MediaResolver(tmdb).resolve_show(1396, 1, 2)


def test_descriptor_rejects_incomplete_values():
    with pytest.raises(MetadataIncomplete):
        MediaDescriptor(media_type="movie", title="", release_year=1999, tmdb_id="1")
    with pytest.raises(MetadataIncomplete):
        MediaDescriptor(media_type="movie", title="X", release_year=0, tmdb_id="1")
    with pytest.raises(InvalidParameter):
        MediaDescriptor(media_type="show", title="X", release_year=2000, tmdb_id="1")


def test_parse_year():
    assert parse_year("1999-03-30") == 1999
    assert parse_year("") == 0
    assert parse_year(None) == 0
    assert parse_year("soon") == 0
