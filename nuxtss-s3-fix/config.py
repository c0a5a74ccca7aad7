"""
Nuxt S3 Fix - Configuration Parser

Reads a pipe-delimited config file defining multiple buckets to converge in batch mode.

Config format:
    bucket_uri | region (optional) | sitemap (optional) | layout (single|double, optional)

Example:
    s3://my-site-bucket       |           |                                    | double
    s3://my-docs-bucket       | eu-west-1 | https://docs.example.com/sitemap.xml | single
"""

import os
from dataclasses import dataclass
from typing import List, Optional

from exceptions import ConfigError
from models import Layout
from sitemap import build_bucket_uri_region


# Default config file location
DEFAULT_CONFIG_PATH = os.path.expanduser("~/.nuxtss-s3-fix.conf")

LAYOUT_NAMES = {
    'single': Layout.SINGLE,
    'double': Layout.DOUBLE,
}


@dataclass
class FixTarget:
    """Represents a single bucket to converge."""
    bucket_uri: str                  # s3://bucket[/prefix]
    region: Optional[str] = None     # Non-default AWS region
    sitemap: Optional[str] = None    # Sitemap locator, default: bucket root
    layout: str = "single"           # Target layout name

    def get_bucket_uri_region(self) -> str:
        """Bucket URI with the region marker used in reports."""
        return build_bucket_uri_region(self.bucket_uri, self.region)

    def get_target_layout(self) -> Layout:
        return LAYOUT_NAMES[self.layout]


def parse_config(config_path: Optional[str] = None) -> List[FixTarget]:
    """
    Parse config file and return list of FixTarget objects.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        List of FixTarget objects.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigError: If config file has invalid format.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    targets = []

    with open(path, 'r') as f:
        for line_num, line in enumerate(f, 1):
            # Skip empty lines and comments
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            parts = [p.strip() for p in line.split('|')]

            bucket_uri = parts[0]
            if not bucket_uri.startswith('s3://'):
                raise ConfigError(
                    f"Invalid config line {line_num}: bucket uri must start with 's3://'"
                )

            region = parts[1] if len(parts) > 1 and parts[1] else None
            sitemap = parts[2] if len(parts) > 2 and parts[2] else None
            layout = parts[3].lower() if len(parts) > 3 and parts[3] else "single"

            if layout not in LAYOUT_NAMES:
                raise ConfigError(
                    f"Invalid config line {line_num}: layout must be 'single' or 'double', got '{layout}'"
                )

            targets.append(FixTarget(
                bucket_uri=bucket_uri,
                region=region,
                sitemap=sitemap,
                layout=layout
            ))

    return targets


def create_sample_config(config_path: Optional[str] = None) -> str:
    """
    Create a sample config file with commented examples.

    Args:
        config_path: Path to create config. If None, uses default location.

    Returns:
        Path to created config file.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    sample_content = """# Nuxt S3 Fix Configuration
# =========================
# Format: bucket_uri | region (optional) | sitemap (optional) | layout (single|double)
#
# Examples:
# s3://my-site-bucket   |           |                                      | double
# s3://my-docs-bucket   | eu-west-1 | https://docs.example.com/sitemap.xml | single
#
# Notes:
# - The sitemap defaults to sitemap.xml in the root of the bucket uri
# - Region, sitemap and layout columns may be left empty
# - Layout defaults to single
# - Lines starting with # are comments

# Add your buckets below:
"""

    with open(path, 'w') as f:
        f.write(sample_content)

    return path
