"""
JSON feed (snapshot fetch + fallback cascade)
=============================================

An upstream exporter periodically copies the incident spreadsheet into a
JSON snapshot:

    {"lastUpdate": "2025-07-01T12:00:00.000Z", "count": 42, "data": [ {...row...}, ... ]}

The local Excel service answers with the same rows plus `"success": true`,
and older snapshots are a bare list of rows. `parse_feed` accepts all three.

`auto_load` tries each source in order with a short timeout. Failures are
logged and the next source is tried; if every source fails it returns None and
the caller falls back to a manual file upload.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import json
import logging
import os
import requests
from .normalize import is_missing, to_str

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class FeedError(ValueError):
    """The payload is not a recognizable incident feed."""


@dataclass
class Feed:
    rows: List[Dict[str, Any]]
    last_update: Optional[str] = None
    count: int = 0
    source: Optional[str] = None


def parse_feed(payload: Any, source: Optional[str] = None) -> Feed:
    if isinstance(payload, list):
        rows = payload
        last_update = None
    elif isinstance(payload, Mapping):
        if payload.get("success") is False:
            raise FeedError(str(payload.get("error") or "source reported failure"))
        rows = payload.get("data")
        if not isinstance(rows, list):
            raise FeedError("feed has no 'data' list")
        last_update = payload.get("lastUpdate")
    else:
        raise FeedError(f"unexpected feed payload type: {type(payload).__name__}")
    rows = [r for r in rows if isinstance(r, Mapping)]
    return Feed(rows=[dict(r) for r in rows], last_update=last_update, count=len(rows), source=source)


def fetch_feed(url: str, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None) -> Feed:
    """GET one feed URL. Raises requests.RequestException / ValueError on failure."""
    getter = session.get if session is not None else requests.get
    resp = getter(url, timeout=timeout, headers={"Cache-Control": "no-cache"})
    resp.raise_for_status()
    return parse_feed(resp.json(), source=url)


def read_feed_file(path: str) -> Feed:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    return parse_feed(payload, source=path)


def auto_load(sources: Sequence[str], timeout: float = DEFAULT_TIMEOUT,
              session: Optional[requests.Session] = None) -> Optional[Feed]:
    """Return the first feed that loads with at least one row, or None."""
    for url in sources:
        if not url:
            continue
        try:
            feed = fetch_feed(url, timeout=timeout, session=session)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Feed source %s failed: %s", url, e)
            continue
        if not feed.rows:
            logger.warning("Feed source %s returned no rows", url)
            continue
        logger.info("Loaded %d rows from %s (lastUpdate=%s)", feed.count, url, feed.last_update)
        return feed
    logger.warning("No feed source available; manual upload required")
    return None


# ---------------- Snapshot writing ----------------

def build_feed_snapshot(rows: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Snapshot in the exporter's shape. Cell values are written as text."""
    now = now or datetime.now(timezone.utc)
    data = [{str(k): _cell_text(v) for k, v in r.items()} for r in rows]
    return {
        "lastUpdate": now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
        "count": len(data),
        "data": data,
    }


def write_feed(path: str, rows: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    snapshot = build_feed_snapshot(rows, now=now)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, indent=2)
    return snapshot


def _cell_text(v: Any) -> str:
    if is_missing(v):
        return ""
    if isinstance(v, datetime):
        return v.strftime("%d/%m/%Y %H:%M")
    return to_str(v)
