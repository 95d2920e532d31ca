"""
Asset Index Builder

Walks a client's asset directory and maps every file to the public URL
it is served from.

KEYS AND VALUES:
- key: path relative to the asset directory, "/"-separated, with the final
  extension stripped ("sub/dir/img.png" -> "sub/dir/img")
- value: {scheme}://{host}/assets/{client}/{relative path with extension}

DIRECTORY STRUCTURE:
assets/
├── acme/
│   ├── logo.png            -> "logo"
│   └── icons/home.svg      -> "icons/home"
└── globex/
    └── banner.a.b.jpg      -> "banner.a.b"
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Union

from fastapi import Request

logger = logging.getLogger(__name__)

# Last dot in the final path segment and everything after it
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def base_url_of(request: Request) -> str:
    """Scheme and host of the inbound request, e.g. 'https://cdn.example.com'."""
    return f"{request.url.scheme}://{request.url.netloc}"


def strip_extension(relative_path: str) -> str:
    """
    Remove the final extension of a "/"-separated relative path.

    Only the last dot of the last segment counts: "a.b.txt" -> "a.b",
    "README" -> "README", ".env" -> "".
    """
    return _EXTENSION_RE.sub("", relative_path)


def build_asset_index(base_url: str, client_name: str, asset_dir: Union[str, Path]) -> Dict[str, str]:
    """
    Build the asset index for one client.

    The walk is iterative (explicit stack) so deep trees cannot exhaust the
    interpreter's recursion limit. Directories are descended into and never
    listed as entries; symlinked directories are neither followed nor
    listed. Only regular files (or symlinks to them) become entries.
    Entries are visited in sorted order; when two files normalise to the
    same key the one visited last wins.

    Args:
        base_url: "{scheme}://{host}" of the current request
        client_name: Tenant short-name used as URL segment
        asset_dir: Root of the tenant's assets; must exist

    Returns:
        Mapping of extension-less relative path -> public URL

    Raises:
        OSError: Propagated from the filesystem walk
    """
    root = os.fspath(asset_dir)
    index: Dict[str, str] = {}
    stack: List[str] = [root]

    while stack:
        current = stack.pop()
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)

        subdirs = []
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(entry.path)
                continue
            # Symlinked directories, sockets, fifos and dangling links
            if not entry.is_file():
                continue

            relative = os.path.relpath(entry.path, root).replace(os.sep, "/")
            index[strip_extension(relative)] = f"{base_url}/assets/{client_name}/{relative}"

        # Reversed so subdirectories are popped in name order
        stack.extend(reversed(subdirs))

    logger.info(f"Indexed {len(index)} assets for client: {client_name}")
    return index
