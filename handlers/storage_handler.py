"""Storage disks used for backups and media uploads."""
import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import StorageError
from utils.path_utils import normalize_path


Content = Union[bytes, BinaryIO]


class StorageBackend(ABC):
    """Abstract base class for storage disks."""

    @abstractmethod
    def put(self, path: str, content: Content) -> None:
        """Store bytes or a readable binary stream at path."""
        pass

    @abstractmethod
    def get(self, path: str) -> bytes:
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def size(self, path: str) -> Optional[int]:
        """Size in bytes, or None when the blob does not exist."""
        pass

    @abstractmethod
    def all_files(self, prefix: str = '') -> List[str]:
        """Every blob path under prefix, relative to the disk root."""
        pass

    def put_file(self, path: str, local_file: str) -> None:
        """Upload a local file without reading it into memory."""
        with open(local_file, 'rb') as stream:
            self.put(path, stream)


class LocalStorage(StorageBackend):
    """Disk backed by a local (or mounted) directory."""

    def __init__(self, root: str):
        self.root = Path(os.path.expanduser(root)).resolve()

    def _full_path(self, path: str) -> Path:
        relative = normalize_path(path).lstrip('/')
        full = (self.root / relative).resolve()
        if full != self.root and self.root not in full.parents:
            raise StorageError(f"Invalid path: {path} - path traversal not allowed")
        return full

    def put(self, path: str, content: Content) -> None:
        target = self._full_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'wb') as f:
                if isinstance(content, bytes):
                    f.write(content)
                else:
                    shutil.copyfileobj(content, f)
        except OSError as e:
            raise StorageError(f"Failed to write {target}: {e}")

    def get(self, path: str) -> bytes:
        try:
            return self._full_path(path).read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def size(self, path: str) -> Optional[int]:
        target = self._full_path(path)
        return target.stat().st_size if target.is_file() else None

    def all_files(self, prefix: str = '') -> List[str]:
        base = self._full_path(prefix) if prefix else self.root
        if not base.is_dir():
            return []
        return sorted(
            normalize_path(str(p.relative_to(self.root)))
            for p in base.rglob('*') if p.is_file()
        )


class S3Storage(StorageBackend):
    """Disk backed by an S3 bucket (optionally under a key prefix)."""

    def __init__(self, bucket: str, prefix: str = '', region: Optional[str] = None,
                 profile: Optional[str] = None, endpoint_url: Optional[str] = None, client=None):
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        if client is None:
            try:
                session = boto3.Session(profile_name=profile, region_name=region)
                client = session.client('s3', endpoint_url=endpoint_url)
            except BotoCoreError as e:
                raise StorageError(f"Unable to create S3 client for bucket {bucket}: {e}")
        self.client = client

    def _key(self, path: str) -> str:
        key = normalize_path(path).lstrip('/')
        return f"{self.prefix}/{key}" if self.prefix else key

    def put(self, path: str, content: Content) -> None:
        key = self._key(path)
        try:
            if isinstance(content, bytes):
                self.client.put_object(Bucket=self.bucket, Key=key, Body=content)
            else:
                self.client.upload_fileobj(content, self.bucket, key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload s3://{self.bucket}/{key}: {e}")

    def get(self, path: str) -> bytes:
        key = self._key(path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to download s3://{self.bucket}/{key}: {e}")

    def _head(self, path: str) -> Optional[Dict[str, Any]]:
        key = self._key(path)
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get('Error', {}).get('Code', ''))
            if code in ('404', 'NoSuchKey', 'NotFound'):
                return None
            raise StorageError(f"Failed to stat s3://{self.bucket}/{key}: {e}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to stat s3://{self.bucket}/{key}: {e}")

    def exists(self, path: str) -> bool:
        return self._head(path) is not None

    def size(self, path: str) -> Optional[int]:
        head = self._head(path)
        return int(head['ContentLength']) if head is not None else None

    def all_files(self, prefix: str = '') -> List[str]:
        key_prefix = self._key(prefix) if prefix else (f"{self.prefix}/" if self.prefix else '')
        strip = len(self.prefix) + 1 if self.prefix else 0
        files = []
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=key_prefix):
                for obj in page.get('Contents', []):
                    files.append(obj['Key'][strip:])
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list s3://{self.bucket}/{key_prefix}: {e}")
        return files


def create_storage(name: str, config: Dict[str, Any]) -> StorageBackend:
    """
    Create the storage disk configured under storage.disks.<name>.

    Raises:
        StorageError: If the disk is not configured or its driver is unknown
    """
    disks = (config.get('storage') or {}).get('disks') or {}
    disk = disks.get(name)
    if not isinstance(disk, dict):
        raise StorageError(f"The storage disk '{name}' is not configured.")

    driver = disk.get('driver', 'local')
    if driver == 'local':
        if not disk.get('root'):
            raise StorageError(f"Storage disk '{name}' needs a 'root' directory")
        return LocalStorage(disk['root'])
    elif driver == 's3':
        if not disk.get('bucket'):
            raise StorageError(f"Storage disk '{name}' needs a 'bucket'")
        logging.getLogger(__name__).debug(f"Using S3 bucket {disk['bucket']} for disk '{name}'")
        return S3Storage(
            bucket=disk['bucket'],
            prefix=disk.get('prefix', ''),
            region=disk.get('region'),
            profile=disk.get('profile'),
            endpoint_url=disk.get('endpoint_url'),
        )
    else:
        raise StorageError(f"Unsupported storage driver for disk '{name}': {driver}")
