"""HAR (HTTP Archive) 1.2 export and import.

Sessions are exported with one page (``page_1``) and one entry per resource.
Internal durations are seconds; HAR timings are milliseconds. HAR counts
``ssl`` inside ``connect`` and leaves it out of the entry ``time``, while
records keep the two phases disjoint. The exported JSON uses two-space
indentation and sorted keys, so the same session always produces the same
bytes.
"""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from whenever import Instant, OffsetDateTime

from perfscope import __version__
from perfscope.classifier import classify
from perfscope.errors import HarExportError, HarImportError
from perfscope.models import ResourceRecord, Session, TimingBreakdown

logger = logging.getLogger(__name__)

HAR_VERSION = "1.2"
PAGE_ID = "page_1"
DEFAULT_MIME_TYPE = "application/octet-stream"


class HarHeader(BaseModel):
    name: str
    value: str


class HarCreator(BaseModel):
    name: str = "perfscope"
    version: str = __version__


class HarPageTimings(BaseModel):
    on_content_load: float = Field(alias="onContentLoad", default=-1)
    on_load: float = Field(alias="onLoad", default=-1)

    model_config = {"populate_by_name": True}


class HarPage(BaseModel):
    started_date_time: str = Field(alias="startedDateTime")
    id: str = PAGE_ID
    title: str = ""
    page_timings: HarPageTimings = Field(alias="pageTimings", default_factory=HarPageTimings)

    model_config = {"populate_by_name": True}


class HarRequest(BaseModel):
    method: str
    url: str
    http_version: str = Field(alias="httpVersion", default="HTTP/1.1")
    headers: list[HarHeader] = Field(default_factory=list)
    cookies: list[dict] = Field(default_factory=list)
    query_string: list[HarHeader] = Field(alias="queryString", default_factory=list)
    headers_size: int = Field(alias="headersSize", default=-1)
    body_size: int = Field(alias="bodySize", default=-1)

    model_config = {"populate_by_name": True}


class HarContent(BaseModel):
    size: int = 0
    mime_type: str = Field(alias="mimeType", default=DEFAULT_MIME_TYPE)
    text: str | None = None
    encoding: str | None = None

    model_config = {"populate_by_name": True}


class HarResponse(BaseModel):
    status: int
    status_text: str = Field(alias="statusText", default="")
    http_version: str = Field(alias="httpVersion", default="HTTP/1.1")
    headers: list[HarHeader] = Field(default_factory=list)
    cookies: list[dict] = Field(default_factory=list)
    content: HarContent = Field(default_factory=HarContent)
    redirect_url: str = Field(alias="redirectURL", default="")
    headers_size: int = Field(alias="headersSize", default=-1)
    body_size: int = Field(alias="bodySize", default=-1)

    model_config = {"populate_by_name": True}


class HarTimings(BaseModel):
    """Phase durations in milliseconds; -1 means not applicable."""

    blocked: float = -1
    dns: float = -1
    connect: float = -1
    ssl: float = -1
    send: float = 0
    wait: float = 0
    receive: float = 0


class HarEntry(BaseModel):
    pageref: str | None = None
    started_date_time: str = Field(alias="startedDateTime")
    time: float = 0
    request: HarRequest
    response: HarResponse
    cache: dict = Field(default_factory=dict)
    timings: HarTimings = Field(default_factory=HarTimings)

    model_config = {"populate_by_name": True}


class HarLog(BaseModel):
    version: str = HAR_VERSION
    creator: HarCreator = Field(default_factory=HarCreator)
    pages: list[HarPage] = Field(default_factory=list)
    entries: list[HarEntry] = Field(default_factory=list)


class HarFile(BaseModel):
    """Top-level HAR document wrapper."""

    log: HarLog = Field(default_factory=HarLog)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _iso(timestamp: float) -> str:
    # Microsecond precision; finer digits are float noise.
    micros = int(round(timestamp * 1_000_000))
    return Instant.from_timestamp(micros, unit="microsecond").format_iso()


def _ms(seconds: float) -> float:
    return round(seconds * 1000, 3)


def _headers(headers: dict[str, str]) -> list[HarHeader]:
    return [HarHeader(name=name, value=value) for name, value in headers.items()]


def _content(record: ResourceRecord) -> HarContent:
    content = HarContent(
        size=record.response_size,
        mime_type=record.mime_type or "",
    )
    body = record.response_body
    if body is None:
        return content
    try:
        return content.model_copy(update={"text": body.decode("utf-8")})
    except UnicodeDecodeError:
        return content.model_copy(
            update={"text": base64.b64encode(body).decode("ascii"), "encoding": "base64"}
        )


def _entry(record: ResourceRecord) -> HarEntry:
    t = record.timings
    return HarEntry(
        pageref=PAGE_ID,
        started_date_time=_iso(record.start_time),
        time=_ms(t.total),
        request=HarRequest(
            method=record.method,
            url=record.url,
            headers=_headers(record.request_headers),
            body_size=record.request_size,
        ),
        response=HarResponse(
            status=record.status_code,
            headers=_headers(record.response_headers),
            content=_content(record),
            body_size=record.response_size,
        ),
        timings=HarTimings(
            blocked=_ms(t.blocked),
            dns=_ms(t.dns),
            connect=_ms(t.connect + t.ssl),
            ssl=_ms(t.ssl),
            send=_ms(t.send),
            wait=_ms(t.wait),
            receive=_ms(t.receive),
        ),
    )


def build_har(
    session: Session,
    *,
    creator_name: str = "perfscope",
    creator_version: str = __version__,
) -> HarFile:
    load_ms = _ms(session.load_time)
    page = HarPage(
        started_date_time=_iso(session.start_time),
        title=session.resources[0].url if session.resources else "",
        page_timings=HarPageTimings(on_content_load=load_ms, on_load=load_ms),
    )
    return HarFile(
        log=HarLog(
            creator=HarCreator(name=creator_name, version=creator_version),
            pages=[page],
            entries=[_entry(r) for r in session.resources],
        )
    )


def export_har(session: Session, *, creator_name: str = "perfscope") -> str:
    """Serialize a session as a HAR 1.2 JSON document."""
    har = build_har(session, creator_name=creator_name)
    return json.dumps(har.model_dump(by_alias=True, exclude_none=True), indent=2, sort_keys=True)


def write_har(session: Session, path: str | Path, *, creator_name: str = "perfscope") -> Path:
    """Write a session's HAR document to ``path``.

    Raises ``HarExportError`` if the destination cannot be written.
    """
    destination = Path(path)
    document = export_har(session, creator_name=creator_name)
    try:
        destination.write_text(document, encoding="utf-8")
    except OSError as e:
        raise HarExportError(str(destination), e.strerror or str(e)) from e
    logger.info("Exported %d entries to %s", session.request_count, destination)
    return destination


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def parse_timestamp(value: str) -> float:
    """Parse a HAR ISO-8601 timestamp to epoch seconds."""
    try:
        instant = Instant.parse_iso(value)
    except ValueError:
        try:
            instant = OffsetDateTime.parse_iso(value).to_instant()
        except ValueError:
            raise HarImportError(f"Invalid startedDateTime '{value}'") from None
    return instant.timestamp(unit="nanosecond") / 1e9


def parse_har(text: str | bytes) -> HarFile:
    try:
        return HarFile.model_validate_json(text)
    except ValidationError as e:
        raise HarImportError(f"Malformed HAR document: {e.error_count()} validation errors") from e


def read_har(path: str | Path) -> HarFile:
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        raise HarImportError(f"Cannot read HAR file '{source}': {e.strerror or e}") from e
    return parse_har(text)


def _seconds(ms: float) -> float:
    # Negative HAR timings mean "not applicable".
    return max(0.0, ms) / 1000


def _body(content: HarContent) -> bytes | None:
    if content.text is None:
        return None
    if content.encoding == "base64":
        try:
            return base64.b64decode(content.text, validate=True)
        except ValueError:
            logger.debug("Undecodable base64 body, dropping it")
            return None
    return content.text.encode("utf-8")


def _record(index: int, entry: HarEntry) -> ResourceRecord:
    t = entry.timings
    mime = entry.response.content.mime_type or None
    response_size = entry.response.body_size
    if response_size < 0:
        response_size = max(0, entry.response.content.size)
    return ResourceRecord(
        id=f"entry-{index}",
        url=entry.request.url,
        method=entry.request.method,
        status_code=entry.response.status,
        mime_type=mime,
        resource_type=classify(mime, entry.request.url),
        start_time=parse_timestamp(entry.started_date_time),
        timings=TimingBreakdown(
            blocked=_seconds(t.blocked),
            dns=_seconds(t.dns),
            connect=_seconds(t.connect - max(0.0, t.ssl)),
            ssl=_seconds(t.ssl),
            send=_seconds(t.send),
            wait=_seconds(t.wait),
            receive=_seconds(t.receive),
        ),
        request_size=max(0, entry.request.body_size),
        response_size=response_size,
        request_headers={h.name: h.value for h in entry.request.headers},
        response_headers={h.name: h.value for h in entry.response.headers},
        response_body=_body(entry.response.content),
    )


def session_from_har(har: HarFile) -> Session:
    """Rebuild an immutable session from a HAR document."""
    resources = tuple(_record(i, entry) for i, entry in enumerate(har.log.entries))
    if har.log.pages:
        start_time = parse_timestamp(har.log.pages[0].started_date_time)
    elif resources:
        start_time = min(r.start_time for r in resources)
    else:
        start_time = 0.0
    return Session(start_time=start_time, resources=resources)
