"""Optimization advisory rule engine.

Eight independent analyzers inspect a session's resources and emit
``OptimizationSuggestion`` objects. Every analyzer runs on every pass; the
combined list is ordered by impact (critical first) then difficulty (easy
first). Analyzers are pure functions of ``(resources, session_start,
thresholds)`` so they can also be fanned out concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from urllib.parse import urlsplit

from perfscope.config import AdvisorThresholds
from perfscope.formatting import format_duration, format_size, percent
from perfscope.models import OptimizationSuggestion, ResourceDetail, ResourceRecord
from perfscope.types import Difficulty, Impact, ResourceType, SuggestionCategory

logger = logging.getLogger(__name__)

Analyzer = Callable[
    [Sequence[ResourceRecord], float, AdvisorThresholds], list[OptimizationSuggestion]
]

_TEXT_TYPES = frozenset(
    {ResourceType.SCRIPT, ResourceType.STYLESHEET, ResourceType.DOCUMENT, ResourceType.XHR}
)
_CACHE_HEADERS = ("Cache-Control", "Expires", "ETag")


def sort_suggestions(suggestions: Iterable[OptimizationSuggestion]) -> list[OptimizationSuggestion]:
    """Impact weight descending, then difficulty ascending. Stable for ties."""
    return sorted(suggestions, key=lambda s: (-s.impact.weight, s.difficulty.rank))


def _file_name(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return "unknown"
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return name or "unknown"


def _extension(url: str) -> str:
    name = _file_name(url)
    if "." not in name:
        return "Unknown"
    return name.rsplit(".", 1)[-1].upper()


def _detail(resource: ResourceRecord, issue: str) -> ResourceDetail:
    return ResourceDetail(
        url=resource.url,
        size=resource.response_size,
        type=resource.resource_type,
        duration=resource.total_duration,
        specific_issue=issue,
    )


def _total_size(resources: Iterable[ResourceRecord]) -> int:
    return sum(r.response_size for r in resources)


def _type_breakdown(resources: Sequence[ResourceRecord], *, with_size: bool = False) -> str:
    groups: dict[ResourceType, list[ResourceRecord]] = {}
    for resource in resources:
        groups.setdefault(resource.resource_type, []).append(resource)
    parts = []
    for resource_type, members in groups.items():
        part = f"{len(members)} {resource_type}"
        if with_size:
            part += f" ({format_size(_total_size(members))})"
        parts.append(part)
    return ", ".join(parts)


# ---------------------------------------------------------------------------
# Analyzers
# ---------------------------------------------------------------------------


def analyze_compression(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    uncompressed = [
        r
        for r in resources
        if r.resource_type in _TEXT_TYPES
        and r.response_size > thresholds.compression_min_bytes
        and not r.has_response_header("Content-Encoding")
    ]
    if not uncompressed:
        return []

    total = _total_size(uncompressed)
    savings = int(total * 0.7)
    return [
        OptimizationSuggestion(
            title="Enable Gzip/Brotli Compression",
            description=(
                f"{len(uncompressed)} text-based resources ({_type_breakdown(uncompressed)}) "
                f"totaling {format_size(total)} are served without compression. "
                "Text files typically compress 60-80%."
            ),
            impact=(
                Impact.CRITICAL if total > thresholds.compression_critical_bytes else Impact.HIGH
            ),
            difficulty=Difficulty.EASY,
            category=SuggestionCategory.COMPRESSION,
            affected_resources=[
                _detail(r, "Missing Content-Encoding header (gzip/brotli)") for r in uncompressed
            ],
            current_state=f"{len(uncompressed)} uncompressed files, {format_size(total)} total",
            target_state="Enable gzip (compression level 6) or brotli (level 4) on server",
            estimated_savings=(
                f"Current size: {format_size(total)}. With compression: "
                f"~{format_size(total - savings)} (saves {format_size(savings)} "
                f"or {percent(savings, total)}%)"
            ),
        )
    ]


def analyze_images(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    images = [r for r in resources if r.resource_type == ResourceType.IMAGE]
    suggestions: list[OptimizationSuggestion] = []

    large = [r for r in images if r.response_size > thresholds.large_image_bytes]
    if large:
        total = _total_size(large)
        average = total // len(large)
        largest = max(large, key=lambda r: r.response_size)
        suggestions.append(
            OptimizationSuggestion(
                title="Optimize Large Images",
                description=(
                    f"{len(large)} images exceed {format_size(thresholds.large_image_bytes)} each. "
                    f"Largest is {format_size(largest.response_size)}. Modern formats (WebP, AVIF) "
                    "and proper sizing can dramatically reduce file size while maintaining quality."
                ),
                impact=Impact.HIGH,
                difficulty=Difficulty.MEDIUM,
                category=SuggestionCategory.IMAGES,
                affected_resources=[
                    _detail(
                        r,
                        f"{format_size(r.response_size)} {_extension(r.url)} image - "
                        "Convert to WebP and resize appropriately",
                    )
                    for r in large
                ],
                current_state=(
                    f"{len(large)} images > {format_size(thresholds.large_image_bytes)}, "
                    f"totaling {format_size(total)}"
                ),
                target_state=(
                    "Convert to WebP, resize to actual display dimensions, "
                    "use srcset for responsive images"
                ),
                estimated_savings=(
                    f"Current total: {format_size(total)} across {len(large)} images "
                    f"(avg {format_size(average)}). Target with WebP: ~{format_size(total // 5)} "
                    f"(80% reduction). Potential savings: {format_size(total - total // 5)}"
                ),
            )
        )

    if len(images) > thresholds.lazy_load_image_count:
        above_fold = min(thresholds.above_fold_images, len(images))
        below_fold = images[above_fold:]
        deferred = _total_size(below_fold)
        suggestions.append(
            OptimizationSuggestion(
                title="Implement Image Lazy Loading",
                description=(
                    f"{len(images)} images loaded eagerly. Approximately {len(below_fold)} images "
                    f"(~{percent(len(below_fold), len(images))}%) are likely below the fold and "
                    "could be lazy-loaded to improve initial page load."
                ),
                impact=Impact.MEDIUM,
                difficulty=Difficulty.EASY,
                category=SuggestionCategory.IMAGES,
                affected_resources=[
                    _detail(
                        r,
                        f'{format_size(r.response_size)} - Candidate for lazy loading '
                        'with loading="lazy" attribute',
                    )
                    for r in images
                ],
                current_state=(
                    f"{len(images)} images loaded immediately, "
                    f"{format_size(_total_size(images))} total"
                ),
                target_state=(
                    'Lazy load images below fold using loading="lazy" or IntersectionObserver API'
                ),
                estimated_savings=(
                    f"Defer {format_size(deferred)} of images ({len(below_fold)} images) "
                    f'from initial load. Add loading="lazy" attribute to <img> tags.'
                ),
            )
        )

    return suggestions


def analyze_caching(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    uncached = [
        r
        for r in resources
        if r.resource_type != ResourceType.DOCUMENT and not r.has_response_header(*_CACHE_HEADERS)
    ]
    if not uncached:
        return []

    total = _total_size(uncached)
    return [
        OptimizationSuggestion(
            title="Add Cache Headers",
            description=(
                f"{len(uncached)} static resources ({_type_breakdown(uncached, with_size=True)}) "
                f"totaling {format_size(total)} lack cache headers. Every repeat visitor "
                "re-downloads these files unnecessarily."
            ),
            impact=Impact.MEDIUM,
            difficulty=Difficulty.EASY,
            category=SuggestionCategory.CACHING,
            affected_resources=[
                _detail(
                    r,
                    "No Cache-Control, Expires, or ETag headers - "
                    "will be re-downloaded on every visit",
                )
                for r in uncached
            ],
            current_state=(
                f"{len(uncached)} resources without caching, "
                f"{format_size(total)} re-downloaded per visit"
            ),
            target_state=(
                "Add Cache-Control: max-age=31536000 for CSS/JS/images, "
                "with versioned URLs for cache busting"
            ),
            estimated_savings=(
                f"Repeat visitors currently re-download {format_size(total)} unnecessarily. "
                f"With proper caching: 0 bytes on repeat visits ({len(uncached)} requests saved)."
            ),
        )
    ]


def analyze_render_blocking(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    window = thresholds.render_blocking_window_sec
    early = [r for r in resources if r.start_time - session_start < window]
    scripts = [r for r in early if r.resource_type == ResourceType.SCRIPT]
    stylesheets = [r for r in early if r.resource_type == ResourceType.STYLESHEET]
    suggestions: list[OptimizationSuggestion] = []

    if scripts:
        total = _total_size(scripts)
        blocking = sum(r.total_duration for r in scripts)
        longest = max(scripts, key=lambda r: r.total_duration)
        suggestions.append(
            OptimizationSuggestion(
                title="Defer Non-Critical JavaScript",
                description=(
                    f"{len(scripts)} JavaScript files ({format_size(total)}) loaded in the first "
                    f"{format_duration(window)} block HTML parsing and rendering. "
                    f"Longest blocker: {format_duration(longest.total_duration)}."
                ),
                impact=Impact.HIGH,
                difficulty=Difficulty.MEDIUM,
                category=SuggestionCategory.RENDER_BLOCKING,
                affected_resources=[
                    _detail(
                        r,
                        f"{_file_name(r.url)}: {format_size(r.response_size)}, "
                        f"{format_duration(r.total_duration)} download - "
                        "Add async or defer attribute",
                    )
                    for r in scripts
                ],
                current_state=(
                    f"{len(scripts)} render-blocking scripts, {format_duration(blocking)} "
                    f"blocking time, {format_size(total)} must load before render"
                ),
                target_state=(
                    "Add async attribute for analytics/ads, defer for app logic, "
                    "inline critical scripts"
                ),
                estimated_savings=(
                    f"Blocking time: {format_duration(blocking)} total. Using async/defer could "
                    f"improve First Contentful Paint by {format_duration(blocking * 0.7)}."
                ),
            )
        )

    if len(stylesheets) > thresholds.blocking_stylesheet_count:
        total = _total_size(stylesheets)
        blocking = sum(r.total_duration for r in stylesheets)
        suggestions.append(
            OptimizationSuggestion(
                title="Reduce Render-Blocking CSS",
                description=(
                    f"{len(stylesheets)} CSS files ({format_size(total)}) block rendering in the "
                    "critical path. Browser must download and parse all CSS before rendering "
                    f"page. Total blocking time: {format_duration(blocking)}."
                ),
                impact=Impact.HIGH,
                difficulty=Difficulty.HARD,
                category=SuggestionCategory.RENDER_BLOCKING,
                affected_resources=[
                    _detail(
                        r,
                        f"{_file_name(r.url)}: {format_size(r.response_size)}, "
                        f"{format_duration(r.total_duration)} - Consider inlining critical CSS",
                    )
                    for r in stylesheets
                ],
                current_state=(
                    f"{len(stylesheets)} render-blocking stylesheets, {format_size(total)} total, "
                    f"{format_duration(blocking)} blocking time"
                ),
                target_state=(
                    'Inline critical CSS (~10 KB), async load non-critical with rel="preload" '
                    'as="style"'
                ),
                estimated_savings=(
                    f"Could improve First Paint by {format_duration(blocking * 0.6)} and reduce "
                    "blocking CSS to ~10 KB."
                ),
            )
        )

    return suggestions


def analyze_javascript(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    scripts = [r for r in resources if r.resource_type == ResourceType.SCRIPT]
    total = _total_size(scripts)
    if total <= thresholds.javascript_budget_bytes:
        return []

    top5 = _total_size(sorted(scripts, key=lambda r: r.response_size, reverse=True)[:5])
    target = thresholds.javascript_budget_bytes // 2
    return [
        OptimizationSuggestion(
            title="Reduce JavaScript Bundle Size",
            description=(
                f"{len(scripts)} JavaScript files totaling {format_size(total)}. Top 5 largest "
                f"scripts account for {format_size(top5)} ({percent(top5, total)}%). Excessive "
                "JavaScript increases parse/compile time and delays interactivity."
            ),
            impact=Impact.HIGH,
            difficulty=Difficulty.MEDIUM,
            category=SuggestionCategory.JAVASCRIPT,
            affected_resources=[
                _detail(
                    r,
                    f"{_file_name(r.url)}: {format_size(r.response_size)} "
                    f"({percent(r.response_size, total)}% of total) - "
                    "Consider code splitting, tree shaking",
                )
                for r in scripts
            ],
            current_state=(
                f"{len(scripts)} JS files, {format_size(total)} total "
                f"(target: < {format_size(target)})"
            ),
            target_state=(
                "Code split by route, tree shake unused code, dynamic imports, "
                "remove duplicate dependencies"
            ),
            estimated_savings=f"Potential savings: ~{format_size(total - target)}",
        )
    ]


def analyze_css(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    stylesheets = [r for r in resources if r.resource_type == ResourceType.STYLESHEET]
    total = _total_size(stylesheets)
    if total <= thresholds.css_budget_bytes:
        return []

    largest = max(stylesheets, key=lambda r: r.response_size)
    return [
        OptimizationSuggestion(
            title="Reduce CSS Bundle Size",
            description=(
                f"{len(stylesheets)} CSS files totaling {format_size(total)}. Largest file: "
                f"{format_size(largest.response_size)}. Most sites only use 10-30% of their CSS "
                "rules. Tools like PurgeCSS can remove unused styles."
            ),
            impact=Impact.MEDIUM,
            difficulty=Difficulty.MEDIUM,
            category=SuggestionCategory.CSS,
            affected_resources=[
                _detail(
                    r,
                    f"{_file_name(r.url)}: {format_size(r.response_size)} "
                    f"({percent(r.response_size, total)}% of total) - "
                    "Remove unused rules with PurgeCSS or UnCSS",
                )
                for r in stylesheets
            ],
            current_state=f"{len(stylesheets)} CSS files, {format_size(total)} total",
            target_state=(
                "Remove unused CSS rules, combine files, minify, "
                "consider utility-first CSS frameworks"
            ),
            estimated_savings=(
                f"Potential savings: ~{format_size(int(total * 0.7))} (70% reduction)"
            ),
        )
    ]


def analyze_fonts(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    fonts = [r for r in resources if r.resource_type == ResourceType.FONT]
    if len(fonts) <= thresholds.font_count:
        return []

    total = _total_size(fonts)
    average = total // len(fonts)
    removable = len(fonts) - 3
    return [
        OptimizationSuggestion(
            title="Reduce Font Variants",
            description=(
                f"{len(fonts)} font files loaded, totaling {format_size(total)} "
                f"(avg {format_size(average)} per font). Each font weight/style is a separate "
                "file. Most sites only need 2-3 weights (Regular 400, Medium 500, Bold 700)."
            ),
            impact=Impact.MEDIUM,
            difficulty=Difficulty.EASY,
            category=SuggestionCategory.FONTS,
            affected_resources=[
                _detail(
                    r,
                    f"{_file_name(r.url)}: {format_size(r.response_size)} {_extension(r.url)} - "
                    f"Each font family/weight adds {format_duration(r.total_duration)} load time",
                )
                for r in fonts
            ],
            current_state=f"{len(fonts)} font files, {format_size(total)} total",
            target_state=(
                "Keep only essential weights (Regular, Bold), use font-display: swap, "
                "subset fonts for languages needed"
            ),
            estimated_savings=(
                f"Removing {removable} fonts saves ~{format_size(average * removable)}"
            ),
        )
    ]


def analyze_connections(
    resources: Sequence[ResourceRecord], session_start: float, thresholds: AdvisorThresholds
) -> list[OptimizationSuggestion]:
    counts = Counter(r.domain for r in resources if r.domain)
    if len(counts) <= thresholds.domain_count:
        return []

    overhead = len(counts) * thresholds.connection_overhead_sec
    per_domain = thresholds.connection_overhead_sec
    details = []
    for domain, count in counts.most_common():
        members = [r for r in resources if r.domain == domain]
        details.append(
            ResourceDetail(
                url=domain,
                size=_total_size(members),
                type=ResourceType.OTHER,
                duration=max(r.total_duration for r in members),
                specific_issue=(
                    f"{count} requests, {format_size(_total_size(members))} - Each domain "
                    f"requires DNS + TCP + SSL (~{format_duration(per_domain)} overhead)"
                ),
            )
        )
    top5 = ", ".join(domain for domain, _ in counts.most_common(5))
    excess = len(counts) - thresholds.domain_count

    return [
        OptimizationSuggestion(
            title="Reduce Third-Party Domains",
            description=(
                f"{len(counts)} unique domains detected. Each requires separate DNS lookup, TCP "
                f"connection, and SSL handshake (~{format_duration(per_domain)} each). Top 5 "
                f"chattiest domains: {top5}. Connection overhead: ~{format_duration(overhead)}."
            ),
            impact=Impact.MEDIUM,
            difficulty=Difficulty.HARD,
            category=SuggestionCategory.THIRD_PARTY,
            affected_resources=details,
            current_state=(
                f"{len(counts)} unique domains, ~{format_duration(overhead)} connection overhead"
            ),
            target_state=(
                f"Reduce to < {thresholds.domain_count} domains, self-host critical resources, "
                "use dns-prefetch for remaining third-parties"
            ),
            estimated_savings=(
                f"Reducing to < {thresholds.domain_count} domains saves "
                f"~{format_duration(excess * per_domain)}"
            ),
        )
    ]


ANALYZERS: tuple[Analyzer, ...] = (
    analyze_compression,
    analyze_images,
    analyze_caching,
    analyze_render_blocking,
    analyze_javascript,
    analyze_css,
    analyze_fonts,
    analyze_connections,
)


class OptimizationAdvisor:
    """Runs every analyzer against a resource list and orders the results."""

    def __init__(
        self,
        thresholds: AdvisorThresholds | None = None,
        analyzers: Sequence[Analyzer] = ANALYZERS,
    ) -> None:
        self._thresholds = thresholds or AdvisorThresholds()
        self._analyzers = tuple(analyzers)

    def analyze(
        self, resources: Sequence[ResourceRecord], session_start: float
    ) -> list[OptimizationSuggestion]:
        resources = tuple(resources)
        suggestions: list[OptimizationSuggestion] = []
        for analyzer in self._analyzers:
            suggestions.extend(analyzer(resources, session_start, self._thresholds))
        return sort_suggestions(suggestions)

    async def analyze_concurrently(
        self,
        resources: Sequence[ResourceRecord],
        session_start: float,
        *,
        timeout: float = 5.0,
        max_concurrency: int = 4,
    ) -> list[OptimizationSuggestion]:
        """Fan the analyzers out to worker threads and join them with a deadline.

        Analyzers that raise or miss the deadline contribute nothing; the rest
        are combined in analyzer order and sorted as in ``analyze``.
        """
        resources = tuple(resources)
        semaphore = asyncio.Semaphore(max_concurrency)

        async def run(analyzer: Analyzer) -> list[OptimizationSuggestion]:
            async with semaphore:
                return await asyncio.to_thread(analyzer, resources, session_start, self._thresholds)

        tasks = [
            asyncio.create_task(run(a), name=getattr(a, "__name__", repr(a)))
            for a in self._analyzers
        ]
        if not tasks:
            return []
        _, pending = await asyncio.wait(tasks, timeout=timeout)

        for task in pending:
            task.cancel()
            logger.warning("Analyzer %s missed the %.1fs deadline", task.get_name(), timeout)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        suggestions: list[OptimizationSuggestion] = []
        for task in tasks:
            if task in pending:
                continue
            error = task.exception()
            if error is not None:
                logger.warning("Analyzer %s failed: %s", task.get_name(), error)
                continue
            suggestions.extend(task.result())
        return sort_suggestions(suggestions)
