"""
Shared fixtures for the IPTV Guide Service tests.
"""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from iptv_guide import database
from iptv_guide.config import settings


SAMPLE_PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="bbc1.uk" tvg-name="BBC One" tvg-logo="http://img/bbc1.png" group-title="News",BBC One HD
http://streams.example/bbc1.m3u8
#EXTINF:-1 group-title="News",Channel A
http://streams.example/a.m3u8
#EXTINF:-1,Cartoon Time
#EXTGRP:Kids
http://streams.example/cartoons.m3u8
#EXTINF:-1,Movie Night
http://streams.example/movies.m3u8
"""

SAMPLE_GUIDE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE tv SYSTEM "xmltv.dtd">
<tv generator-info-name="test">
  <channel id="news.uk">
    <display-name lang="fr">Nouvelles</display-name>
    <display-name lang="en">News UK</display-name>
    <icon src="http://img/news.png"/>
    <url>http://news.example</url>
  </channel>
  <channel id="kids.uk">
    <display-name>Kids</display-name>
  </channel>
  <programme start="20231225120000 +0000" stop="20231225130000 +0000" channel="news.uk">
    <title lang="en">Midday News</title>
    <sub-title>Headlines</sub-title>
    <desc lang="de">Nachrichten</desc>
    <desc>Untagged description</desc>
    <category lang="en">News</category>
    <category></category>
    <category lang="en">Current Affairs</category>
    <icon src="http://img/midday.png"/>
    <date>20231225</date>
    <episode-num system="xmltv_ns"></episode-num>
    <episode-num system="onscreen">S1E5</episode-num>
  </programme>
  <programme start="20231225140000 +0100" stop="20231225150000 +0100" channel="news.uk">
    <title>Afternoon Report</title>
  </programme>
  <programme start="20231225150000 +0000" stop="20231225160000 +0000" channel="news.uk">
    <title>Evening Bulletin</title>
  </programme>
  <programme start="20231225120000 +0000" stop="20231225123000 +0000" channel="kids.uk">
    <title>Cartoons</title>
  </programme>
</tv>
"""


@pytest.fixture
def sample_playlist() -> str:
    return SAMPLE_PLAYLIST


@pytest.fixture
def sample_guide() -> str:
    return SAMPLE_GUIDE


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """Session bound to a fresh SQLite database file"""
    await database.init_db(str(tmp_path / "preferences.db"))
    session_factory = database.get_session_factory()
    async with session_factory() as session:
        yield session
    await database.close_db()


@pytest.fixture
def client(tmp_path, monkeypatch):
    """API client running the app lifespan against a temporary database"""
    from iptv_guide.main import app

    monkeypatch.setattr(settings, "database_path", str(tmp_path / "api.db"))
    with TestClient(app) as test_client:
        yield test_client
