import pytest

from shared.errors.product_errors import InvalidURLError
from shared.helper.url_helper import normalize_handle, normalize_product_url, url_variants, validate_url


class TestValidateUrl:
    def test_accepts_http_and_https(self):
        assert validate_url(" https://example.com ") == "https://example.com"
        assert validate_url("http://example.com/path") == "http://example.com/path"

    @pytest.mark.parametrize("url", ["ftp://example.com", "javascript:alert(1)", "mailto:me@example.com"])
    def test_rejects_other_schemes(self, url):
        with pytest.raises(InvalidURLError):
            validate_url(url)

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "example.com", "https://", "https://exa mple.com", "https://a..b", "https://.example.com", "https://\u2603.com"],
    )
    def test_rejects_malformed(self, url):
        with pytest.raises(InvalidURLError) as exc_info:
            validate_url(url)
        assert exc_info.value.kind == "InvalidURL"


class TestNormalizeProductUrl:
    def test_variants_map_to_same_url(self):
        variants = ["https://Example.com/", "https://example.com", "https://example.com/", "HTTPS://EXAMPLE.COM"]
        assert {normalize_product_url(url) for url in variants} == {"https://example.com"}

    def test_keeps_port(self):
        assert normalize_product_url("http://LocalHost:8080/") == "http://localhost:8080"

    def test_rejects_path(self):
        with pytest.raises(InvalidURLError, match="root domain"):
            normalize_product_url("https://example.com/pricing")

    def test_rejects_query(self):
        with pytest.raises(InvalidURLError, match="query"):
            normalize_product_url("https://example.com/?ref=producthunt")

    def test_url_variants(self):
        assert url_variants("https://example.com") == ["https://example.com", "https://example.com/"]
        assert url_variants("https://example.com/") == ["https://example.com", "https://example.com/"]


class TestNormalizeHandle:
    @pytest.mark.parametrize(
        "raw, expected",
        [("@JaneDoe", "janedoe"), (" janedoe ", "janedoe"), ("@", None), ("", None), (None, None)],
    )
    def test_normalize(self, raw, expected):
        assert normalize_handle(raw) == expected
