from __future__ import annotations

import io
import json
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from llm_conversations.adapters import parse_conversations
from llm_conversations.errors import SourceError
from llm_conversations.models import Conversation

logger = logging.getLogger(__name__)

ARCHIVE_MEMBER = "conversations.json"


@dataclass(frozen=True)
class ImportBatch:
    source: str
    conversations: list[Conversation]
    # False for remote sources: they stay in memory unless explicitly persisted.
    persist: bool = True


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _loads(text: str, origin: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise SourceError(f"{origin} is not valid JSON: {exc}") from exc


def _decode(data: bytes, origin: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SourceError(f"{origin} is not UTF-8 text: {exc}") from exc


def _read_archive(data: bytes, origin: str) -> Any:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            try:
                raw = archive.read(ARCHIVE_MEMBER)
            except KeyError:
                raise SourceError(f"{ARCHIVE_MEMBER} not found in ZIP file {origin}") from None
    except zipfile.BadZipFile as exc:
        raise SourceError(f"{origin} is not a valid ZIP file: {exc}") from exc
    return _loads(_decode(raw, f"{origin}:{ARCHIVE_MEMBER}"), f"{origin}:{ARCHIVE_MEMBER}")


def read_payload(path: Path) -> Any:
    """Read the raw JSON payload of a ``.json`` export or a ``.zip`` export archive."""
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            return _loads(_decode(path.read_bytes(), str(path)), str(path))
        if suffix == ".zip":
            return _read_archive(path.read_bytes(), str(path))
    except OSError as exc:
        raise SourceError(f"Could not read {path}: {exc}") from exc
    raise SourceError(f"Unsupported file type: {path.name}. Please select a .json or .zip file.")


async def fetch_payload(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> Any:
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise SourceError(f"Could not fetch {url}: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()
    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    if httpx.URL(url).path.lower().endswith(".zip"):
        return _read_archive(response.content, url)
    return _loads(_decode(response.content, url), url)


async def load_source(
    source: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
    persist_remote: bool = False,
) -> ImportBatch:
    if is_remote(source):
        payload = await fetch_payload(source, client=client, timeout=timeout)
        return ImportBatch(source, parse_conversations(payload), persist=persist_remote)
    path = Path(source).expanduser()
    return ImportBatch(str(path), parse_conversations(read_payload(path)))
