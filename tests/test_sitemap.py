import pytest
import requests

import sitemap
from exceptions import BucketUriError, SitemapError, StorageError


SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/</loc></url>
  <url><loc>https://example.com/about</loc></url>
  <url><loc>https://example.com/blog/first-post</loc></url>
  <url><loc>https://example.com/legacy.html</loc></url>
</urlset>
"""


def test_parse_sitemap_paths():
    assert sitemap.parse_sitemap_paths(SITEMAP) == ["/", "/about", "/blog/first-post", "/legacy.html"]


def test_parse_sitemap_without_namespace_and_host_only_url():
    xml = "<urlset><url><loc>https://example.com</loc></url></urlset>"
    assert sitemap.parse_sitemap_paths(xml) == ["/"]


def test_parse_empty_urlset_is_valid():
    assert sitemap.parse_sitemap_paths('<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"/>') == []


def test_parse_skips_invalid_urls():
    xml = "<urlset><url><loc>not a url</loc></url><url><loc>https://e.com/a</loc></url></urlset>"
    assert sitemap.parse_sitemap_paths(xml) == ["/a"]


def test_parse_rejects_bad_xml_and_wrong_root():
    with pytest.raises(SitemapError):
        sitemap.parse_sitemap_paths("<urlset><url>")
    with pytest.raises(SitemapError, match="Invalid sitemap structure"):
        sitemap.parse_sitemap_paths("<sitemapindex></sitemapindex>")


def test_validate_bucket_uri():
    sitemap.validate_bucket_uri("s3://bucket")
    with pytest.raises(BucketUriError):
        sitemap.validate_bucket_uri("")
    with pytest.raises(BucketUriError):
        sitemap.validate_bucket_uri("bucket")


@pytest.mark.parametrize("uri,expected", [
    ("s3://bucket", ("bucket", "", None)),
    ("s3://bucket/", ("bucket", "", None)),
    ("s3://bucket/site/sitemap.xml", ("bucket", "site/sitemap.xml", None)),
    ("s3://bucket/sitemap.xml:region://us-west-2", ("bucket", "sitemap.xml", "us-west-2")),
    ("s3://bucket:region://eu-west-1", ("bucket", "", "eu-west-1")),
])
def test_parse_s3_uri(uri, expected):
    assert sitemap.parse_s3_uri(uri) == expected


def test_parse_s3_uri_rejects_non_s3():
    with pytest.raises(BucketUriError):
        sitemap.parse_s3_uri("https://bucket")


def test_build_sitemap_locator_defaults_to_bucket_root():
    assert sitemap.build_sitemap_locator("s3://bucket") == "s3://bucket/sitemap.xml"
    assert sitemap.build_sitemap_locator("s3://bucket/") == "s3://bucket/sitemap.xml"
    assert sitemap.build_sitemap_locator("s3://bucket", region="us-west-2") == \
        "s3://bucket/sitemap.xml:region://us-west-2"


def test_build_sitemap_locator_explicit():
    assert sitemap.build_sitemap_locator("s3://bucket", "./site_map.xml") == "./site_map.xml"
    with pytest.raises(SitemapError):
        sitemap.build_sitemap_locator("s3://bucket", "./site_map.txt")


def test_build_sitemap_locator_rejects_bad_bucket():
    with pytest.raises(BucketUriError):
        sitemap.build_sitemap_locator("s3://bucket/sitemap.xml")
    with pytest.raises(BucketUriError):
        sitemap.build_sitemap_locator("bucket")
    with pytest.raises(BucketUriError):
        sitemap.build_sitemap_locator("")


def test_fetch_routes_from_local_file(tmp_path):
    path = tmp_path / "sitemap.xml"
    path.write_text(SITEMAP, encoding="utf-8")
    assert sitemap.fetch_routes(str(path))[1] == "/about"


def test_fetch_routes_missing_local_file(tmp_path):
    with pytest.raises(SitemapError):
        sitemap.fetch_routes(str(tmp_path / "missing.xml"))


def test_fetch_routes_undecodable_local_file(tmp_path):
    path = tmp_path / "sitemap.xml"
    path.write_bytes(b"<urlset><url><loc>https://x.com/\xff\xfe</loc></url></urlset>")
    with pytest.raises(SitemapError):
        sitemap.fetch_routes(str(path))


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


def test_fetch_routes_over_http(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(SITEMAP)

    monkeypatch.setattr(sitemap.requests, "get", fake_get)

    assert sitemap.fetch_routes("https://example.com/sitemap.xml")[2] == "/blog/first-post"
    assert calls == [("https://example.com/sitemap.xml", sitemap.HTTP_TIMEOUT)]


def test_fetch_routes_http_error(monkeypatch):
    monkeypatch.setattr(sitemap.requests, "get", lambda url, timeout: FakeResponse("", status=404))
    with pytest.raises(SitemapError):
        sitemap.fetch_routes("https://example.com/sitemap.xml")


class FakeS3:
    instances = []

    def __init__(self, bucket_name, prefix="", region=None, log=None, fail=False):
        self.bucket_name = bucket_name
        self.region = region
        self.keys = []
        FakeS3.instances.append(self)

    def get_object_text(self, key):
        self.keys.append(key)
        if key == "broken.xml":
            raise StorageError("AccessDenied")
        return SITEMAP


def test_fetch_routes_from_s3():
    FakeS3.instances = []
    routes = sitemap.fetch_routes("s3://bucket/sitemap.xml:region://us-west-2", s3_factory=FakeS3)

    assert routes[0] == "/"
    client = FakeS3.instances[0]
    assert (client.bucket_name, client.region, client.keys) == ("bucket", "us-west-2", ["sitemap.xml"])


def test_fetch_routes_from_s3_failure():
    with pytest.raises(SitemapError):
        sitemap.fetch_routes("s3://bucket/broken.xml", s3_factory=FakeS3)
