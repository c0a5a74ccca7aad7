"""
Nuxt S3 Fix - S3 Client Module
Wraps boto3 for the bucket reads and writes the tool needs: listing for
existence checks, server-side copy, delete, and reading the sitemap object.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from typing import Dict, Iterable, Optional, Set

from exceptions import StorageError
from logger import Logger, NullLogger


class S3Client:
    """
    Wrapper for boto3 S3 operations.

    Keys passed in and returned are relative to the optional prefix.
    """

    def __init__(
        self,
        bucket_name: str,
        prefix: str = "",
        region: Optional[str] = None,
        log: Optional[Logger] = None
    ):
        """
        Initialize S3 client.

        Args:
            bucket_name: Name of the S3 bucket.
            prefix: Optional prefix (folder) within the bucket.
            region: Optional non-default AWS region.
            log: Optional logger.
        """
        self.bucket_name = bucket_name
        self.prefix = prefix.strip('/') + '/' if prefix else ''
        self.region = region
        self.log = log or NullLogger()
        self.client = boto3.client('s3', region_name=region) if region else boto3.client('s3')

    def _full_key(self, key: str) -> str:
        """Prepend prefix to key."""
        return f"{self.prefix}{key}"

    def _relative_key(self, key: str) -> str:
        return key[len(self.prefix):] if key.startswith(self.prefix) else key

    def list_keys(self) -> Set[str]:
        """
        List all object keys in the bucket (under prefix).

        Returns:
            Set of keys without prefix.

        Raises:
            StorageError: If the listing fails.
        """
        result = set()
        paginator = self.client.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=self.prefix):
                for obj in page.get('Contents', []):
                    rel_key = self._relative_key(obj['Key'])
                    if rel_key:  # Skip the prefix folder itself
                        result.add(rel_key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Listing s3://{self.bucket_name}/{self.prefix} failed: {e}") from e
        return result

    def check_exists(self, keys: Iterable[str]) -> Dict[str, bool]:
        """
        Check which keys exist, with a single batched listing.

        Args:
            keys: Keys to look up.

        Returns:
            Dict with an entry for every requested key.

        Raises:
            StorageError: If the listing fails.
        """
        keys = list(keys)
        self.log.debug(f"Checking S3 objects keys (3 for each path): {len(keys)}")
        existing = self.list_keys()
        return {key: key in existing for key in keys}

    def copy_object(self, source_key: str, target_key: str) -> bool:
        """
        Server-side copy within the bucket.

        Returns:
            True if successful, False otherwise.
        """
        try:
            copy_source = {'Bucket': self.bucket_name, 'Key': self._full_key(source_key)}
            self.client.copy_object(
                Bucket=self.bucket_name,
                Key=self._full_key(target_key),
                CopySource=copy_source
            )
            self.log.info(f"  [COPY] {source_key} -> {target_key}")
            return True
        except (ClientError, BotoCoreError) as e:
            self.log.error(f"Copy failed for {source_key} -> {target_key}: {e}")
            return False

    def delete_object(self, key: str) -> bool:
        """
        Delete an object from S3.

        Returns:
            True if successful, False otherwise.
        """
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=self._full_key(key))
            self.log.info(f"  [REMOVE] {key}")
            return True
        except (ClientError, BotoCoreError) as e:
            self.log.error(f"Remove failed for {key}: {e}")
            return False

    def get_object_text(self, key: str) -> str:
        """
        Read an object as UTF-8 text.

        Raises:
            StorageError: If the object cannot be read.
        """
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=self._full_key(key))
            return response['Body'].read().decode('utf-8')
        except (ClientError, BotoCoreError, UnicodeDecodeError) as e:
            raise StorageError(f"Reading s3://{self.bucket_name}/{self._full_key(key)} failed: {e}") from e

