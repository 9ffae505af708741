"""Path handling utilities for cross-platform compatibility."""
import os
from typing import Optional


def normalize_path(path: str) -> str:
    """
    Normalize path to use forward slashes for cross-platform comparison.

    Args:
        path: Path to normalize

    Returns:
        Path with forward slashes
    """
    return path.replace('\\', '/')


def format_path(path: Optional[str]) -> Optional[str]:
    """
    Ensure a folder has exactly one trailing slash.

    Args:
        path: Folder name, e.g. "backup" or "backup///"

    Returns:
        "backup/", or None for an empty value
    """
    if path is None or path == '':
        return None
    return path.rstrip('/') + '/'


def join_remote_path(*parts: str) -> str:
    """
    Join path components for remote (Unix) systems using forward slashes.

    Args:
        *parts: Path components to join

    Returns:
        Joined path with forward slashes
    """
    cleaned = [normalize_path(str(p)) for p in parts if p]
    if not cleaned:
        return ''
    head = cleaned[0].rstrip('/')
    tail = [p.strip('/') for p in cleaned[1:] if p.strip('/')]
    return '/'.join([head] + tail)


def relative_to(path: str, base: str) -> str:
    """
    Strip a base directory from a remote or local path.

    Args:
        path: e.g. /var/www/storage/app/media/a.jpg
        base: e.g. /var/www/storage/app

    Returns:
        media/a.jpg
    """
    path = normalize_path(path)
    base = normalize_path(base).rstrip('/')
    if base and path.startswith(base + '/'):
        return path[len(base) + 1:]
    return path.lstrip('/')


def is_hidden_or_thumbnail(relative_path: str) -> bool:
    """True for dotfiles and anything inside a thumb/ directory."""
    relative_path = normalize_path(relative_path)
    if os.path.basename(relative_path).startswith('.'):
        return True
    return 'thumb' in relative_path.lower().split('/')[:-1]
