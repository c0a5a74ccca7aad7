"""
Nuxt S3 Fix - Exceptions
Failures of external collaborators (bucket URI, sitemap, storage, config).
Planning anomalies are never raised; they are encoded as action statuses.
"""


class LayoutFixError(Exception):
    """Base exception for Nuxt S3 Fix."""

    pass


class BucketUriError(LayoutFixError):
    pass


class SitemapError(LayoutFixError):
    pass


class StorageError(LayoutFixError):
    pass


class ConfigError(LayoutFixError):
    pass
