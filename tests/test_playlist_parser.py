"""
Unit tests for the M3U playlist parser.
"""
import threading

import pytest

from iptv_guide.exceptions import FormatError
from iptv_guide.services import playlist_parser_service
from iptv_guide.services.playlist_parser_service import (
    LineKind,
    classify_line,
    parse_extinf,
    parse_playlist,
    parse_playlist_async,
)
from iptv_guide.utils.stable_id import stable_channel_id


# ---------------------------------------------------------------------------
# parse_playlist: header
# ---------------------------------------------------------------------------


def test_missing_header_raises_format_error():
    with pytest.raises(FormatError, match="#EXTM3U"):
        parse_playlist("#EXTINF:-1,Channel A\nhttp://a\n")


def test_empty_content_raises_format_error():
    with pytest.raises(FormatError):
        parse_playlist("")
    with pytest.raises(FormatError):
        parse_playlist("\n   \n")


def test_header_after_blank_lines_and_bom():
    result = parse_playlist("\ufeff\n\n  #EXTM3U x-tvg-url=\"http://guide\"\n#EXTINF:-1,One\nhttp://1\n")
    assert [channel.name for channel in result.channels] == ["One"]


def test_crlf_line_endings():
    result = parse_playlist("#EXTM3U\r\n#EXTINF:-1,One\r\nhttp://1\r\n")
    assert result.channels[0].url == "http://1"
    assert result.channels[0].name == "One"


# ---------------------------------------------------------------------------
# parse_playlist: channels and groups
# ---------------------------------------------------------------------------


def test_two_channels_in_one_group():
    content = (
        "#EXTM3U\n"
        "#EXTINF:-1 group-title=\"News\",Channel A\nhttp://a\n"
        "#EXTINF:-1 group-title=\"News\",Channel B\nhttp://b\n"
    )
    result = parse_playlist(content)

    assert len(result.channels) == 2
    assert all(channel.group_title == "News" for channel in result.channels)
    assert len(result.groups) == 1
    assert result.groups[0].name == "News"
    assert result.groups[0].channel_count == 2
    assert result.groups[0].id == "group_0"


def test_sample_playlist(sample_playlist):
    result = parse_playlist(sample_playlist)

    bbc, channel_a, cartoons, movies = result.channels
    assert bbc.id == "bbc1.uk"
    assert bbc.tvg_id == "bbc1.uk"
    assert bbc.tvg_name == "BBC One"
    assert bbc.tvg_logo == "http://img/bbc1.png"
    assert bbc.name == "BBC One HD"
    assert bbc.url == "http://streams.example/bbc1.m3u8"
    assert bbc.duration == -1

    assert channel_a.id == "channel_a"
    assert cartoons.group_title == "Kids"
    # Group carried over from the previous #EXTGRP
    assert movies.group_title == "Kids"

    assert [(g.id, g.name, g.channel_count) for g in result.groups] == [
        ("group_0", "News", 2),
        ("group_1", "Kids", 2),
    ]


def test_group_accounting_matches_channel_count(sample_playlist):
    result = parse_playlist(sample_playlist)
    assert sum(group.channel_count for group in result.groups) == len(result.channels)


def test_ids_are_stable_across_parses(sample_playlist):
    first = parse_playlist(sample_playlist)
    second = parse_playlist(sample_playlist)
    assert [c.id for c in first.channels] == [c.id for c in second.channels]


def test_channel_without_group_is_uncategorized():
    result = parse_playlist("#EXTM3U\n#EXTINF:-1,Lonely\nhttp://x\n")
    assert result.channels[0].group_title == "Uncategorized"
    assert result.groups[0].name == "Uncategorized"


def test_group_title_is_carried_to_following_entries():
    content = (
        "#EXTM3U\n"
        "#EXTINF:-1,One\n#EXTGRP:Movies\nhttp://1\n"
        "#EXTINF:-1,Two\nhttp://2\n"
        "#EXTINF:-1 group-title=\"Kids\",Three\nhttp://3\n"
        "#EXTINF:-1,Four\nhttp://4\n"
    )
    result = parse_playlist(content)

    assert [c.group_title for c in result.channels] == ["Movies", "Movies", "Kids", "Kids"]
    assert [(g.name, g.channel_count) for g in result.groups] == [("Movies", 2), ("Kids", 2)]


def test_group_override_before_entry_sets_current_group():
    result = parse_playlist("#EXTM3U\n#EXTGRP:Sports\n#EXTINF:-1,Match\nhttp://m\n")
    assert result.channels[0].group_title == "Sports"


def test_group_override_without_channels_creates_no_group():
    result = parse_playlist("#EXTM3U\n#EXTGRP:Empty\n#EXTINF:-1 group-title=\"News\",A\nhttp://a\n")
    assert [g.name for g in result.groups] == ["News"]


def test_url_without_entry_is_dropped():
    result = parse_playlist("#EXTM3U\nhttp://orphan\n#EXTINF:-1,One\nhttp://1\nhttp://second\n")
    assert [c.url for c in result.channels] == ["http://1"]


def test_later_entry_replaces_pending_entry():
    result = parse_playlist("#EXTM3U\n#EXTINF:-1,First\n#EXTINF:-1,Second\nhttp://2\n")
    assert [c.name for c in result.channels] == ["Second"]


def test_unknown_directives_and_blank_lines_are_ignored():
    content = (
        "#EXTM3U\n"
        "#EXTINF:-1,One\n"
        "\n"
        "#EXTVLCOPT:http-user-agent=Test\n"
        "# just a comment\n"
        "http://1\n"
    )
    result = parse_playlist(content)
    assert len(result.channels) == 1
    assert result.channels[0].url == "http://1"


def test_trailing_entry_without_url_is_not_emitted():
    result = parse_playlist("#EXTM3U\n#EXTINF:-1,One\nhttp://1\n#EXTINF:-1,Dangling\n")
    assert [c.name for c in result.channels] == ["One"]


def test_channel_without_name_uses_stable_hash_id():
    result = parse_playlist("#EXTM3U\n#EXTINF:-1 group-title=\"News\",\nhttp://x\n")
    channel = result.channels[0]

    assert channel.name == ""
    assert channel.tvg_id is None
    assert channel.id == stable_channel_id("", "News")
    assert channel.id == parse_playlist("#EXTM3U\n#EXTINF:-1 group-title=\"News\",\nhttp://x\n").channels[0].id


def test_channel_ids_equal_tvg_id_when_present(sample_playlist):
    for channel in parse_playlist(sample_playlist).channels:
        if channel.tvg_id:
            assert channel.id == channel.tvg_id


# ---------------------------------------------------------------------------
# parse_playlist_async
# ---------------------------------------------------------------------------


async def test_async_parse_matches_sync(sample_playlist):
    assert await parse_playlist_async(sample_playlist) == parse_playlist(sample_playlist)


async def test_async_parse_runs_off_the_event_loop_thread(sample_playlist, monkeypatch):
    threads = []

    def recording_parse(content):
        threads.append(threading.get_ident())
        return parse_playlist(content)

    monkeypatch.setattr(playlist_parser_service, "parse_playlist", recording_parse)

    result = await parse_playlist_async(sample_playlist)

    assert len(result.channels) == 4
    assert threads and threads[0] != threading.get_ident()


async def test_async_parse_propagates_format_error():
    with pytest.raises(FormatError):
        await parse_playlist_async("not a playlist")


# ---------------------------------------------------------------------------
# parse_extinf
# ---------------------------------------------------------------------------


def test_parse_extinf_attributes():
    descriptor = parse_extinf(
        '#EXTINF:-1 tvg-id="id1" tvg-name="Name" tvg-logo="http://logo" group-title="Group",Display'
    )
    assert descriptor.duration == -1
    assert descriptor.tvg_id == "id1"
    assert descriptor.tvg_name == "Name"
    assert descriptor.tvg_logo == "http://logo"
    assert descriptor.group_title == "Group"
    assert descriptor.name == "Display"


def test_parse_extinf_attributes_are_case_insensitive():
    descriptor = parse_extinf('#EXTINF:-1 TVG-ID="upper" Group-Title="Mixed",X')
    assert descriptor.tvg_id == "upper"
    assert descriptor.group_title == "Mixed"


def test_parse_extinf_name_after_last_comma():
    descriptor = parse_extinf('#EXTINF:-1 tvg-name="A, B",Real Name')
    assert descriptor.name == "Real Name"


def test_parse_extinf_name_falls_back_to_tvg_name():
    descriptor = parse_extinf('#EXTINF:-1 tvg-name="From Attribute"')
    assert descriptor.name == "From Attribute"


def test_parse_extinf_name_falls_back_to_trailing_text():
    descriptor = parse_extinf("#EXTINF:-1 Plain Title")
    assert descriptor.name == "Plain Title"


def test_parse_extinf_synthesizes_tvg_id_from_name():
    descriptor = parse_extinf("#EXTINF:-1,My  Great\tChannel")
    assert descriptor.tvg_id == "my_great_channel"


def test_parse_extinf_empty_tvg_id_is_synthesized():
    descriptor = parse_extinf('#EXTINF:-1 tvg-id="",Some Channel')
    assert descriptor.tvg_id == "some_channel"


def test_parse_extinf_fractional_duration():
    assert parse_extinf("#EXTINF:10.5,Clip").duration == 10.5


def test_parse_extinf_without_duration_returns_defaults():
    descriptor = parse_extinf("#EXTINF:abc,Name")
    assert descriptor.duration == -1
    assert descriptor.name == ""
    assert descriptor.tvg_id is None


# ---------------------------------------------------------------------------
# classify_line
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line, kind",
    [
        ("#EXTINF:-1,A", LineKind.ENTRY_INFO),
        ("#EXTGRP:News", LineKind.GROUP_OVERRIDE),
        ("http://stream", LineKind.STREAM_URL),
        ("rtmp://stream", LineKind.STREAM_URL),
        ("#EXTVLCOPT:foo", LineKind.IGNORED),
        ("", LineKind.IGNORED),
    ],
)
def test_classify_line(line, kind):
    assert classify_line(line) is kind
