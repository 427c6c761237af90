"""Unit tests for resource type classification."""

import pytest

from perfscope.classifier import classify, mime_from_content_type
from perfscope.types import ResourceType


class TestMimeClassification:
    @pytest.mark.parametrize(
        ("mime", "expected"),
        [
            ("text/html", ResourceType.DOCUMENT),
            ("text/css", ResourceType.STYLESHEET),
            ("application/javascript", ResourceType.SCRIPT),
            ("text/ecmascript", ResourceType.SCRIPT),
            ("image/png", ResourceType.IMAGE),
            ("font/woff2", ResourceType.FONT),
            ("application/x-font-woff", ResourceType.FONT),
            ("application/json", ResourceType.XHR),
            ("application/xml", ResourceType.XHR),
            ("video/mp4", ResourceType.MEDIA),
            ("audio/mpeg", ResourceType.MEDIA),
            ("application/octet-stream", ResourceType.OTHER),
        ],
    )
    def test_mime_rules(self, mime, expected):
        assert classify(mime, "https://example.com/whatever") == expected

    def test_case_insensitive(self):
        assert classify("TEXT/HTML", "https://example.com/") == ResourceType.DOCUMENT

    def test_html_wins_over_xml(self):
        # application/xhtml+xml contains both needles; rules are checked in order
        assert classify("application/xhtml+xml", "https://example.com/") == ResourceType.DOCUMENT

    def test_mime_overrides_extension(self):
        assert classify("application/json", "https://example.com/data.js") == ResourceType.XHR


class TestExtensionFallback:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://example.com/app.js", ResourceType.SCRIPT),
            ("https://example.com/app.mjs", ResourceType.SCRIPT),
            ("https://example.com/site.CSS", ResourceType.STYLESHEET),
            ("https://example.com/a/b/photo.jpeg?w=200", ResourceType.IMAGE),
            ("https://example.com/icon.svg#frag", ResourceType.IMAGE),
            ("https://example.com/font.woff2", ResourceType.FONT),
            ("https://example.com/font.otf", ResourceType.FONT),
            ("https://example.com/page", ResourceType.OTHER),
            ("https://example.com/archive.tar.gz", ResourceType.OTHER),
            ("https://example.com/", ResourceType.OTHER),
        ],
    )
    def test_extension_rules(self, url, expected):
        assert classify(None, url) == expected

    def test_empty_mime_uses_extension(self):
        assert classify("", "https://example.com/app.js") == ResourceType.SCRIPT

    def test_extension_in_query_is_ignored(self):
        assert classify(None, "https://example.com/load?file=app.js") == ResourceType.OTHER

    def test_malformed_url_is_other(self):
        assert classify(None, "http://[::1") == ResourceType.OTHER


class TestContentType:
    def test_strips_parameters(self):
        assert mime_from_content_type("text/html; charset=utf-8") == "text/html"

    def test_missing(self):
        assert mime_from_content_type(None) is None
        assert mime_from_content_type("") is None
        assert mime_from_content_type(" ; charset=utf-8") is None
