"""
Nuxt S3 Fix - Sitemap Module
Locates, fetches and parses the sitemap.xml that lists a site's routes.

Locators:
    http(s)://host/sitemap.xml              fetched with requests
    s3://bucket/sitemap.xml[:region://r]    read from S3
    anything else                           read as a local file
"""

import re
import xml.etree.ElementTree as ET
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

import requests

from exceptions import BucketUriError, SitemapError, StorageError
from logger import Logger, NullLogger
from s3_client import S3Client


DEFAULT_SITEMAP_NAME = "sitemap.xml"
REGION_MARKER = ":region://"
HTTP_TIMEOUT = 30  # seconds

_BUCKET_RE = re.compile(r'^s3://([^/:]+)')
_KEY_RE = re.compile(r'^s3://[^/:]+/(.*?)(?::region://|$)')
_REGION_RE = re.compile(r':region://([^/]+)')


def validate_bucket_uri(bucket_uri: str) -> None:
    """
    Raises:
        BucketUriError: If the URI is empty or not an s3:// URI.
    """
    if not bucket_uri:
        raise BucketUriError('S3 bucket uri is required.')
    if not bucket_uri.startswith('s3://'):
        raise BucketUriError('S3 bucket uri must start with "s3://".')


def parse_s3_uri(s3_uri: str) -> Tuple[str, str, Optional[str]]:
    """
    Split "s3://bucket/key:region://region" into (bucket, key, region).

    The key and region parts are optional; key is "" and region None when absent.

    Raises:
        BucketUriError: If no bucket name can be found.
    """
    bucket = _BUCKET_RE.match(s3_uri or '')
    if not bucket:
        raise BucketUriError(f"Invalid S3 URL format: {s3_uri}")
    key = _KEY_RE.match(s3_uri)
    region = _REGION_RE.search(s3_uri)
    return bucket.group(1), key.group(1) if key else '', region.group(1) if region else None


def build_bucket_uri_region(bucket_uri: str, region: Optional[str] = None) -> str:
    return f"{bucket_uri}{REGION_MARKER}{region}" if region else bucket_uri


def build_sitemap_locator(
    bucket_uri: str,
    sitemap: Optional[str] = None,
    region: Optional[str] = None,
    default_name: str = DEFAULT_SITEMAP_NAME
) -> str:
    """
    Work out where to read the sitemap from.

    An explicit sitemap wins and must end with ".xml". Otherwise the sitemap
    is the default name in the root of the bucket URI.

    Raises:
        SitemapError: If the explicit sitemap is not an .xml file.
        BucketUriError: If the bucket URI cannot hold a default sitemap.
    """
    if sitemap:
        if not sitemap.endswith('.xml'):
            raise SitemapError('Sitemap file locator must end with ".xml".')
        return sitemap

    if not bucket_uri:
        raise BucketUriError(
            'Either a bucket uri or a sitemap locator must be provided to determine the sitemap path.'
        )
    validate_bucket_uri(bucket_uri)
    if bucket_uri.endswith('.xml'):
        raise BucketUriError('S3 bucket uri must not include the .xml file name.')

    separator = '' if bucket_uri.endswith('/') else '/'
    return build_bucket_uri_region(f"{bucket_uri}{separator}{default_name}", region)


def _local_name(tag: str) -> str:
    """Strip an XML namespace: '{ns}loc' -> 'loc'."""
    return tag.rsplit('}', 1)[-1]


def parse_sitemap_paths(xml_text: str, log: Optional[Logger] = None) -> List[str]:
    """
    Extract the URL path of every <loc> in a sitemap urlset.

    Raises:
        SitemapError: If the document is not XML or not a urlset.
    """
    log = log or NullLogger()
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise SitemapError(f"Could not parse sitemap XML: {e}") from e

    if _local_name(root.tag) != 'urlset':
        raise SitemapError(f"Invalid sitemap structure: root element is <{_local_name(root.tag)}>")

    paths = []
    for element in root.iter():
        if _local_name(element.tag) != 'loc':
            continue
        loc = (element.text or '').strip()
        parsed = urlparse(loc)
        if parsed.scheme and parsed.netloc:
            paths.append(parsed.path or '/')
        else:
            log.error(f"Invalid URL in sitemap: {loc}")
    return paths


def read_sitemap(
    locator: str,
    s3_factory: Callable[..., S3Client] = S3Client,
    log: Optional[Logger] = None
) -> str:
    """
    Fetch the raw sitemap text from a URL, an S3 object or a local file.

    Raises:
        SitemapError: If the source cannot be read.
    """
    log = log or NullLogger()
    if locator.startswith('http://') or locator.startswith('https://'):
        try:
            response = requests.get(locator, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise SitemapError(f"Could not fetch sitemap {locator}: {e}") from e

    if locator.startswith('s3://'):
        bucket, key, region = parse_s3_uri(locator)
        try:
            return s3_factory(bucket, region=region, log=log).get_object_text(key)
        except StorageError as e:
            raise SitemapError(f"Could not read sitemap {locator}: {e}") from e

    log.debug(f"Reading local file {locator}")
    try:
        with open(locator, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SitemapError(f"Could not read sitemap file {locator}: {e}") from e


def fetch_routes(
    locator: str,
    s3_factory: Callable[..., S3Client] = S3Client,
    log: Optional[Logger] = None
) -> List[str]:
    """
    Fetch and parse a sitemap into site-relative routes.

    Returns:
        Route paths in document order; an empty list is valid.

    Raises:
        SitemapError: If the sitemap cannot be read or parsed.
    """
    log = log or NullLogger()
    log.info(f"Fetching sitemap from: {locator}")
    return parse_sitemap_paths(read_sitemap(locator, s3_factory, log), log)
