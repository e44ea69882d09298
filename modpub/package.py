"""Download a mod package and read its ``mod.json``."""

import io
import json
import logging
import zipfile

import requests
from pydantic import ValidationError

from modpub.catalog import ModManifest
from modpub.errors import PackageError

MANIFEST_NAME = "mod.json"


def fetch_package(url: str, session: requests.Session | None = None, timeout: int = 60) -> bytes:
    """Download the package archive at ``url``.

    Raises:
        PackageError: If the download fails.
    """
    if session is None:
        with requests.Session() as owned:
            return fetch_package(url, session=owned, timeout=timeout)
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise PackageError(f"Failed to download package {url}: {e}") from e
    return resp.content


def read_manifest(data: bytes, log: logging.Logger | None = None) -> ModManifest | None:
    """Parse ``mod.json`` from the package archive.

    Returns:
        ModManifest, or None if the archive has no ``mod.json``.

    Raises:
        PackageError: If the bytes are not a zip or the manifest is invalid.
    """
    logger = log or logging.getLogger("modpub.package")
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise PackageError(f"Package is not a zip archive: {e}") from e

    with archive:
        if MANIFEST_NAME not in archive.namelist():
            logger.debug("Archive entries: %s", archive.namelist())
            return None
        raw = archive.read(MANIFEST_NAME)

    try:
        return ModManifest.model_validate(json.loads(raw.decode("utf-8-sig")))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        raise PackageError(f"Invalid {MANIFEST_NAME}: {e}") from e
