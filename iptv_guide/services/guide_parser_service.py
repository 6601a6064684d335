"""
XMLTV Guide Parser

Parses XMLTV documents into guide channels and programmes. Text-bearing
elements (titles, descriptions, display names) may appear once, once with
attributes, or several times with different languages; all three shapes are
modelled as a TextNode variant and resolved by a single function.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Literal, Optional, Union

from lxml import etree # type: ignore

from iptv_guide.exceptions import FormatError
from iptv_guide.services.guide_types import EPGChannel, GuideResult, Programme
from iptv_guide.utils.timezone import DateFormatError, parse_iso8601_to_utc

logger = logging.getLogger(__name__)

DateFallback = Literal["iso8601", "reject"]

GUIDE_ROOT_TAG = "tv"

_XMLTV_DATE_RE = re.compile(
    r"^(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})\s*([+-]\d{4})?$"
)


@dataclass(frozen=True, slots=True)
class PlainText:
    """Element with nothing but character content."""
    value: str


@dataclass(frozen=True, slots=True)
class StructuredNode:
    """Element carrying attributes (usually lang) or nested markup."""
    text: str | None
    content: str
    lang: str | None = None


@dataclass(frozen=True, slots=True)
class LocalizedList:
    """Repeated element, typically one entry per language."""
    entries: tuple[Union[PlainText, StructuredNode], ...]


TextNode = Union[PlainText, StructuredNode, LocalizedList]


def resolve_text(node: Optional[TextNode]) -> Optional[str]:
    """
    Resolve a text node to a plain string

    Lists prefer the English entry, then an untagged entry, then the first one.
    Structured nodes use their inline text, falling back to all descendant text.

    Returns:
        Stripped text, or None when nothing non-empty is found
    """
    if node is None:
        return None

    if isinstance(node, PlainText):
        return _clean(node.value)

    if isinstance(node, LocalizedList):
        if not node.entries:
            return None
        chosen = (
            next((entry for entry in node.entries if _is_english(_lang_of(entry))), None)
            or next((entry for entry in node.entries if _lang_of(entry) is None), None)
            or node.entries[0]
        )
        return resolve_text(chosen)

    return _clean(node.text) or _clean(node.content)


def text_node_for(parent: etree._Element, tag: str) -> Optional[TextNode]:
    """Build the TextNode for the child elements of parent named tag"""
    children = parent.findall(tag)
    if not children:
        return None
    if len(children) == 1:
        return _element_text_node(children[0])
    return LocalizedList(tuple(_element_text_node(child) for child in children))


def _element_text_node(element: etree._Element) -> Union[PlainText, StructuredNode]:
    if not element.attrib and len(element) == 0:
        return PlainText(element.text or "")
    return StructuredNode(
        text=element.text,
        content="".join(element.itertext()),
        lang=element.get("lang"),
    )


def _lang_of(entry: Union[PlainText, StructuredNode]) -> Optional[str]:
    if isinstance(entry, StructuredNode):
        return entry.lang or None
    return None


def _is_english(lang: Optional[str]) -> bool:
    if not lang:
        return False
    lang = lang.lower()
    return lang == "en" or lang.startswith("en-")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_xmltv_date(value: Optional[str], *, fallback: DateFallback = "iso8601") -> Optional[datetime]:
    """
    Convert XMLTV time format to a UTC datetime

    Args:
        value: XMLTV time like '20080715003000 -0600' (offset optional, UTC if absent)
        fallback: Policy for values not in XMLTV format; 'iso8601' accepts
            ISO8601 strings, 'reject' returns None

    Returns:
        Timezone-aware datetime in UTC, or None if the value cannot be parsed
    """
    if not value:
        return None

    text = value.strip()
    match = _XMLTV_DATE_RE.match(text)
    if match:
        return _build_xmltv_datetime(match, value)

    if fallback == "iso8601":
        try:
            return parse_iso8601_to_utc(text)
        except DateFormatError:
            pass

    logger.warning(f"Unparseable XMLTV date '{value}' (fallback policy: {fallback})")
    return None


def _build_xmltv_datetime(match: re.Match, raw_value: str) -> Optional[datetime]:
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    offset = match.group(7)

    offset_minutes = 0
    if offset:
        # Offset is (+|-)HHMM
        tz_sign = 1 if offset[0] == '+' else -1
        tz_hours = int(offset[1:3])
        tz_mins = int(offset[3:5])
        if tz_mins >= 60:
            logger.warning(f"Invalid UTC offset in XMLTV date '{raw_value}'")
            return None
        offset_minutes = tz_sign * (tz_hours * 60 + tz_mins)

    try:
        tzinfo = timezone(timedelta(minutes=offset_minutes))
        local_time = datetime(year, month, day, hour, minute, second, tzinfo=tzinfo)
    except ValueError as e:
        logger.warning(f"Invalid XMLTV date '{raw_value}': {e}")
        return None

    return local_time.astimezone(timezone.utc)


def _build_parser(content: str | bytes) -> etree.XMLParser:
    options = dict(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=True,
    )
    if isinstance(content, str):
        return etree.XMLParser(encoding="utf-8", **options)
    return etree.XMLParser(**options)


def parse_guide_content(content: str | bytes, *, date_fallback: DateFallback = "iso8601") -> GuideResult:
    """
    Parse XMLTV content and return channels and programmes

    Args:
        content: Raw XMLTV document; str is read as UTF-8, bytes honour the XML declaration
        date_fallback: Policy for start/stop values not in XMLTV format

    Returns:
        GuideResult with channels and programmes in document order

    Raises:
        FormatError: If the document is not XML or has no <tv> root element
    """
    if not content or not content.strip():
        raise FormatError("Invalid XMLTV format: empty document")

    parser = _build_parser(content)
    raw = content.encode("utf-8") if isinstance(content, str) else content

    logger.debug("  Loading XML document...")
    try:
        root = etree.fromstring(raw, parser)
    except etree.XMLSyntaxError as e:
        logger.error(f"  XML parsing error: {e}")
        raise FormatError(f"Invalid XMLTV format: missing <tv> root element ({e})") from e

    if root is None or root.tag != GUIDE_ROOT_TAG:
        raise FormatError("Invalid XMLTV format: missing <tv> root element")
    logger.debug(f"  XML document loaded (root tag: {root.tag})")

    channels = [_parse_channel(element) for element in root.findall('channel')]
    logger.debug(f"    Found {len(channels)} channels")

    programmes = [
        _parse_programme(element, date_fallback)
        for element in root.findall('programme')
    ]
    logger.debug(f"    Found {len(programmes)} programmes")

    logger.info(f"XMLTV parsing complete: {len(channels)} channels, {len(programmes)} programmes")

    return GuideResult(channels=channels, programmes=programmes)


async def parse_guide(content: str | bytes, *, date_fallback: DateFallback = "iso8601") -> GuideResult:
    """
    Parse XMLTV content without blocking the event loop

    Parsing is offloaded to the default thread pool executor.

    Raises:
        FormatError: If the document is not XML or has no <tv> root element
    """
    loop = asyncio.get_running_loop()
    logger.debug("Offloading XML parsing to thread pool executor...")
    return await loop.run_in_executor(
        None,
        partial(parse_guide_content, content, date_fallback=date_fallback)
    )


def _parse_channel(channel: etree._Element) -> EPGChannel:
    """Parse single channel element"""
    xmltv_id = channel.get('id')
    if not xmltv_id:
        logger.debug("Channel element without id attribute")

    return EPGChannel(
        id=xmltv_id,
        name=resolve_text(text_node_for(channel, 'display-name')),
        icon=_icon_for(channel),
        url=resolve_text(text_node_for(channel, 'url')),
    )


def _parse_programme(programme: etree._Element, date_fallback: DateFallback) -> Programme:
    """Parse single programme element"""
    categories = []
    for element in programme.findall('category'):
        category = resolve_text(_element_text_node(element))
        if category:
            categories.append(category)

    return Programme(
        channel_id=programme.get('channel'),
        start=parse_xmltv_date(programme.get('start'), fallback=date_fallback),
        stop=parse_xmltv_date(programme.get('stop'), fallback=date_fallback),
        title=resolve_text(text_node_for(programme, 'title')),
        subtitle=resolve_text(text_node_for(programme, 'sub-title')),
        description=resolve_text(text_node_for(programme, 'desc')),
        category=categories,
        icon=_icon_for(programme),
        date=resolve_text(text_node_for(programme, 'date')),
        episode_num=_episode_num_for(programme),
    )


def _icon_for(element: etree._Element) -> Optional[str]:
    """Icon URL from the first <icon> child: src attribute, else its text"""
    icon = element.find('icon')
    if icon is None:
        return None
    return icon.get('src') or _clean(icon.text)


def _episode_num_for(programme: etree._Element) -> Optional[str]:
    """First <episode-num> child with non-empty text"""
    for element in programme.findall('episode-num'):
        episode_num = _clean(element.text)
        if episode_num:
            return episode_num
    return None
