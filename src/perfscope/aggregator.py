"""Resource timing aggregator.

Turns the browser instrumentation's lifecycle events (request start, DNS,
connect, TLS, send, response start/end, completion) into immutable
``ResourceRecord`` objects attached to the active navigation ``Session``.

Defaults for incomplete data:
- A phase whose timestamps were never reported has zero duration: the missing
  point takes the value of the nearest earlier known point.
- A point reported earlier than its predecessor is clamped forward, so no
  phase is ever negative.
- TLS reported inside the connect interval (the usual browser order) is split
  out: connect ends where TLS starts and the handshake is charged to ssl.
- MIME type: explicit value, else the ``Content-Type`` response header, else
  none (the URL extension then decides the resource type).
- Response size: explicit value, else body length, else ``Content-Length``,
  else 0. Request size: explicit value, else body length, else 0.

Every navigation increments an epoch. Events tagged with an older epoch are
dropped so stragglers from a previous page never leak into the new session.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from whenever import Instant

from perfscope.classifier import classify, mime_from_content_type
from perfscope.models import ResourceRecord, Session, TimingBreakdown
from perfscope.scoring import PerformanceScoreCalculator
from perfscope.types import TimingPhase
from perfscope.vitals import build_snapshot

logger = logging.getLogger(__name__)

SessionObserver = Callable[[Session], None]

# Bucket receiving the interval that ends at each phase point.
_PHASE_BUCKETS: tuple[tuple[TimingPhase, str], ...] = (
    (TimingPhase.DNS_START, "blocked"),
    (TimingPhase.DNS_END, "dns"),
    (TimingPhase.CONNECT_START, "connect"),
    (TimingPhase.CONNECT_END, "connect"),
    (TimingPhase.TLS_START, "ssl"),
    (TimingPhase.TLS_END, "ssl"),
    (TimingPhase.SEND_START, "send"),
    (TimingPhase.SEND_END, "send"),
    (TimingPhase.RESPONSE_START, "wait"),
    (TimingPhase.RESPONSE_END, "receive"),
)


@dataclass
class PartialRequestState:
    """Mutable in-flight state for one request, keyed by request id."""

    id: str
    url: str
    method: str
    start_time: float
    epoch: int
    request_headers: dict[str, str] = field(default_factory=dict)
    request_body: bytes | None = None
    request_size: int | None = None
    points: dict[TimingPhase, float] = field(default_factory=dict)


def _split_nested_tls(points: Mapping[TimingPhase, float]) -> Mapping[TimingPhase, float]:
    tls_start = points.get(TimingPhase.TLS_START)
    connect_end = points.get(TimingPhase.CONNECT_END)
    if tls_start is None or connect_end is None or tls_start >= connect_end:
        return points
    split = dict(points)
    split[TimingPhase.CONNECT_END] = tls_start
    split[TimingPhase.TLS_END] = max(points.get(TimingPhase.TLS_END, connect_end), connect_end)
    return split


def build_timings(start_time: float, points: Mapping[TimingPhase, float]) -> TimingBreakdown:
    """Walk the phase points in order and bucket the consecutive differences.

    The bucket durations always telescope to ``response_end - start``.
    """
    points = _split_nested_tls(points)
    buckets = dict.fromkeys(
        ("blocked", "dns", "connect", "ssl", "send", "wait", "receive"), 0.0
    )
    previous = start_time
    for phase, bucket in _PHASE_BUCKETS:
        current = points.get(phase, previous)
        if current < previous:
            current = previous
        buckets[bucket] += current - previous
        previous = current
    return TimingBreakdown(**buckets)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _non_negative(value: int, what: str, request_id: str) -> int:
    if value < 0:
        logger.warning("Negative %s %d for request %s, clamping to 0", what, value, request_id)
        return 0
    return value


class ResourceTimingAggregator:
    """Single-writer aggregator for one browsing session.

    All mutations happen under an ``RLock``; readers get frozen ``Session``
    snapshots. Observers registered with ``subscribe`` are called outside the
    lock after every change.
    """

    def __init__(self, calculator: PerformanceScoreCalculator | None = None) -> None:
        self._calculator = calculator or PerformanceScoreCalculator()
        self._lock = threading.RLock()
        self._epoch = 0
        self._session: Session | None = None
        self._partials: dict[str, PartialRequestState] = {}
        self._observers: list[SessionObserver] = []

    # -- Observation -----------------------------------------------------

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def snapshot(self) -> Session | None:
        """Current session, or ``None`` when no navigation is active."""
        with self._lock:
            return self._session

    def subscribe(self, callback: SessionObserver) -> Callable[[], None]:
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def _notify(self, session: Session | None) -> None:
        if session is None:
            return
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(session)
            except Exception:
                logger.exception("Session observer %r failed", observer)

    # -- Navigation ------------------------------------------------------

    def start_navigation(self, start_time: float | None = None) -> int:
        """Begin a new session, discarding all resources and in-flight requests."""
        if start_time is None:
            start_time = Instant.now().timestamp(unit="nanosecond") / 1e9
        with self._lock:
            self._epoch += 1
            dropped = len(self._partials)
            self._partials.clear()
            self._session = Session(epoch=self._epoch, start_time=start_time, is_loading=True)
            epoch, session = self._epoch, self._session
        if dropped:
            logger.debug("Discarded %d in-flight requests from previous navigation", dropped)
        logger.info("Navigation %d started", epoch)
        self._notify(session)
        return epoch

    def finish_loading(self) -> None:
        with self._lock:
            if self._session is None:
                return
            self._session = self._session.model_copy(update={"is_loading": False})
            session = self._session
        self._notify(session)

    def clear(self) -> None:
        with self._lock:
            self._partials.clear()
            self._session = None

    def _is_stale(self, epoch: int | None) -> bool:
        return epoch is not None and epoch != self._epoch

    # -- Request lifecycle -----------------------------------------------

    def start_request(
        self,
        request_id: str,
        url: str,
        method: str,
        start_time: float,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        request_size: int | None = None,
        epoch: int | None = None,
    ) -> None:
        with self._lock:
            if self._session is None:
                logger.debug("Request %s started with no active navigation, ignoring", request_id)
                return
            if self._is_stale(epoch):
                logger.debug("Dropping stale start for %s (epoch %s)", request_id, epoch)
                return
            self._partials[request_id] = PartialRequestState(
                id=request_id,
                url=url,
                method=method,
                start_time=start_time,
                epoch=self._epoch,
                request_headers=dict(headers or {}),
                request_body=body,
                request_size=request_size,
            )

    def mark(
        self,
        request_id: str,
        phase: TimingPhase,
        timestamp: float,
        *,
        epoch: int | None = None,
    ) -> None:
        """Record one lifecycle timestamp for an in-flight request."""
        with self._lock:
            if self._is_stale(epoch):
                logger.debug("Dropping stale %s for %s (epoch %s)", phase, request_id, epoch)
                return
            state = self._partials.get(request_id)
            if state is None:
                logger.debug("Ignoring %s for unknown request %s", phase, request_id)
                return
            state.points[phase] = timestamp

    def mark_dns_start(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.DNS_START, timestamp, epoch=epoch)

    def mark_dns_end(self, request_id: str, timestamp: float, *, epoch: int | None = None) -> None:
        self.mark(request_id, TimingPhase.DNS_END, timestamp, epoch=epoch)

    def mark_connect_start(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.CONNECT_START, timestamp, epoch=epoch)

    def mark_connect_end(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.CONNECT_END, timestamp, epoch=epoch)

    def mark_tls_start(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.TLS_START, timestamp, epoch=epoch)

    def mark_tls_end(self, request_id: str, timestamp: float, *, epoch: int | None = None) -> None:
        self.mark(request_id, TimingPhase.TLS_END, timestamp, epoch=epoch)

    def mark_send_start(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.SEND_START, timestamp, epoch=epoch)

    def mark_send_end(self, request_id: str, timestamp: float, *, epoch: int | None = None) -> None:
        self.mark(request_id, TimingPhase.SEND_END, timestamp, epoch=epoch)

    def mark_response_start(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.RESPONSE_START, timestamp, epoch=epoch)

    def mark_response_end(
        self, request_id: str, timestamp: float, *, epoch: int | None = None
    ) -> None:
        self.mark(request_id, TimingPhase.RESPONSE_END, timestamp, epoch=epoch)

    def finalize(
        self,
        request_id: str,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        response_size: int | None = None,
        *,
        mime_type: str | None = None,
        end_time: float | None = None,
        epoch: int | None = None,
    ) -> ResourceRecord | None:
        """Complete a request and append its record to the active session.

        Returns ``None`` for unknown or stale requests.
        """
        with self._lock:
            if self._is_stale(epoch):
                logger.debug("Dropping stale completion for %s (epoch %s)", request_id, epoch)
                return None
            state = self._partials.pop(request_id, None)
            if state is None:
                logger.debug("Completion for unknown request %s ignored", request_id)
                return None
            if state.epoch != self._epoch or self._session is None:
                logger.debug("Request %s belongs to epoch %d, discarding", request_id, state.epoch)
                return None

            record = self._build_record(
                state,
                status_code=status_code,
                headers=dict(headers or {}),
                body=body,
                response_size=response_size,
                mime_type=mime_type,
                end_time=end_time,
            )
            resources = (*self._session.resources, record)
            updated = self._session.model_copy(update={"resources": resources})
            self._session = self._rescored(updated)
            session = self._session

        self._notify(session)
        return record

    def record_web_vitals(
        self,
        lcp: float,
        cls: float,
        fid: float,
        *,
        epoch: int | None = None,
    ) -> None:
        """Attach Core Web Vitals (LCP and FID in milliseconds) to the session."""
        with self._lock:
            if self._session is None or self._is_stale(epoch):
                logger.debug("Dropping Web Vitals for inactive or stale navigation")
                return
            vitals = build_snapshot(lcp, cls, fid)
            self._session = self._rescored(self._session.model_copy(update={"web_vitals": vitals}))
            session = self._session
        self._notify(session)

    # -- Internals -------------------------------------------------------

    def _rescored(self, session: Session) -> Session:
        if not session.resources:
            return session
        score = self._calculator.calculate(session)
        return session.model_copy(update={"performance_score": score})

    def _build_record(
        self,
        state: PartialRequestState,
        *,
        status_code: int,
        headers: dict[str, str],
        body: bytes | None,
        response_size: int | None,
        mime_type: str | None,
        end_time: float | None,
    ) -> ResourceRecord:
        points = dict(state.points)
        if end_time is not None and TimingPhase.RESPONSE_END not in points:
            points[TimingPhase.RESPONSE_END] = end_time
        timings = build_timings(state.start_time, points)

        mime = mime_type or mime_from_content_type(_header(headers, "Content-Type"))

        if response_size is None:
            if body is not None:
                response_size = len(body)
            else:
                response_size = _content_length(headers)
        if state.request_size is not None:
            request_size = state.request_size
        elif state.request_body is not None:
            request_size = len(state.request_body)
        else:
            request_size = 0

        return ResourceRecord(
            id=state.id,
            url=state.url,
            method=state.method,
            status_code=status_code,
            mime_type=mime,
            resource_type=classify(mime, state.url),
            start_time=state.start_time,
            timings=timings,
            request_size=_non_negative(request_size, "request size", state.id),
            response_size=_non_negative(response_size, "response size", state.id),
            request_headers=state.request_headers,
            response_headers=headers,
            request_body=state.request_body,
            response_body=body,
        )


def _content_length(headers: Mapping[str, str]) -> int:
    raw = _header(headers, "Content-Length")
    if raw is None:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        logger.debug("Unparseable Content-Length %r, assuming 0", raw)
        return 0
