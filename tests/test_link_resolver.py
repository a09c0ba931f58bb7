"""Link resolver: request shape, response decoding, error kinds, retry policy."""
import pytest
import requests

from beatbridge.core.link_resolver import (
    DecodeFailed,
    InvalidSource,
    LinkResolver,
    NoMatchFound,
    RequestFailed,
    parse_response,
    validate_source_link,
)
from beatbridge.models.service import MusicService

BASE_URL = "https://api.song.link/v1-alpha.1/links"

ODESLI_BODY = {
    "entityUniqueId": "SPOTIFY_SONG::abc",
    "pageUrl": "https://song.link/s/abc",
    "entitiesByUniqueId": {
        "SPOTIFY_SONG::abc": {"title": "Harvest Moon", "artistName": "Neil Young"},
    },
    "linksByPlatform": {
        "spotify": {"url": "https://open.spotify.com/track/abc", "entityUniqueId": "SPOTIFY_SONG::abc"},
        "appleMusic": {"url": "https://music.apple.com/x"},
        "amazonMusic": {"url": "https://music.amazon.com/y"},
    },
}


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None) -> None:
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError("not json")
        return self._body


class FakeSession:
    """Plays back queued responses (or raises queued exceptions) for each GET."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_resolver(session, **kwargs):
    sleeps = []
    resolver = LinkResolver(
        BASE_URL,
        api_key=kwargs.pop("api_key", None),
        user_country=kwargs.pop("user_country", None),
        session=session,
        sleep=sleeps.append,
        **kwargs,
    )
    return resolver, sleeps


def test_resolve_returns_links_for_known_platforms_only():
    session = FakeSession(FakeResponse(body=ODESLI_BODY))
    resolver, _ = make_resolver(session)
    resolution = resolver.resolve("https://open.spotify.com/track/abc")

    assert dict(resolution.links) == {
        MusicService.SPOTIFY: "https://open.spotify.com/track/abc",
        MusicService.APPLE_MUSIC: "https://music.apple.com/x",
    }
    assert resolution.title == "Harvest Moon"
    assert resolution.artist == "Neil Young"
    assert resolution.page_url == "https://song.link/s/abc"


def test_request_passes_link_as_query_parameter():
    session = FakeSession(FakeResponse(body=ODESLI_BODY))
    resolver, _ = make_resolver(session, api_key="k", user_country="GB", timeout=3)
    resolver.resolve("  https://open.spotify.com/track/abc?si=1&x=2  ")

    url, params, timeout = session.requests[0]
    assert url == BASE_URL
    assert params == {"url": "https://open.spotify.com/track/abc?si=1&x=2", "key": "k", "userCountry": "GB"}
    assert timeout == 3


def test_query_value_is_percent_encoded_on_the_wire():
    prepared = requests.Request(
        "GET", BASE_URL, params={"url": "https://open.spotify.com/track/abc?si=1&x=2"}
    ).prepare()
    assert "url=https%3A%2F%2Fopen.spotify.com%2Ftrack%2Fabc%3Fsi%3D1%26x%3D2" in prepared.url


@pytest.mark.parametrize("link", ["", "not a url", "spotify:track:abc", "ftp://host/file", "https://"])
def test_invalid_source_is_rejected_without_request(link):
    session = FakeSession()
    resolver, _ = make_resolver(session)
    with pytest.raises(InvalidSource):
        resolver.resolve(link)
    assert session.requests == []


def test_validate_source_link_strips_whitespace():
    assert validate_source_link(" https://tidal.com/track/1 ") == "https://tidal.com/track/1"


def test_empty_mapping_is_no_match_and_not_retried():
    session = FakeSession(FakeResponse(body={"linksByPlatform": {"amazonMusic": {"url": "u"}}}))
    resolver, sleeps = make_resolver(session)
    with pytest.raises(NoMatchFound):
        resolver.resolve("https://open.spotify.com/track/abc")
    assert len(session.requests) == 1
    assert sleeps == []


@pytest.mark.parametrize(
    "body",
    [
        [],
        {"pageUrl": "x"},
        {"linksByPlatform": []},
        {"linksByPlatform": {"spotify": "https://open.spotify.com/track/abc"}},
        {"linksByPlatform": {"tidal": {"href": "https://tidal.com/track/1"}}},
    ],
)
def test_unexpected_shape_is_decode_failed(body):
    with pytest.raises(DecodeFailed):
        parse_response(body)


def test_null_platform_entry_counts_as_absent():
    resolution = parse_response(
        {"linksByPlatform": {"spotify": None, "deezer": {"url": "https://deezer.com/track/9"}}}
    )
    assert dict(resolution.links) == {MusicService.DEEZER: "https://deezer.com/track/9"}
    assert resolution.title is None


def test_non_json_body_is_decode_failed_and_not_retried():
    session = FakeSession(FakeResponse(status_code=200, text="<html>"))
    resolver, sleeps = make_resolver(session)
    with pytest.raises(DecodeFailed):
        resolver.resolve("https://open.spotify.com/track/abc")
    assert sleeps == []


def test_client_error_body_is_decoded_like_any_other_response():
    session = FakeSession(FakeResponse(status_code=400, body={"statusCode": 400, "code": "could_not_resolve_entity"}))
    resolver, _ = make_resolver(session)
    with pytest.raises(DecodeFailed):
        resolver.resolve("https://open.spotify.com/track/abc")


def test_transport_failure_is_retried_with_backoff_then_succeeds():
    session = FakeSession(
        requests.ConnectionError("reset"),
        FakeResponse(status_code=503),
        FakeResponse(body=ODESLI_BODY),
    )
    resolver, sleeps = make_resolver(session, max_retries=2, backoff=0.5)
    resolution = resolver.resolve("https://open.spotify.com/track/abc")
    assert MusicService.SPOTIFY in resolution.links
    assert sleeps == [0.5, 1.0]


def test_transport_failure_gives_up_after_max_retries():
    session = FakeSession(requests.Timeout("slow"), requests.Timeout("slow"))
    resolver, sleeps = make_resolver(session, max_retries=1, backoff=0.25)
    with pytest.raises(RequestFailed):
        resolver.resolve("https://open.spotify.com/track/abc")
    assert len(session.requests) == 2
    assert sleeps == [0.25]


def test_error_kinds():
    assert InvalidSource.kind == "InvalidSource"
    assert RequestFailed.kind == "RequestFailed"
    assert DecodeFailed.kind == "DecodeFailed"
    assert NoMatchFound.kind == "NoMatchFound"
