"""
Build event logging utilities (Tier 2 logging).

Appends one JSON object per line to the build event log so that builds, merges,
signatures and releases leave a queryable trail across runs.

For detailed within-context logging (Tier 1), use latex_toolkit.utils.logger instead.

Usage:
    from latex_toolkit.utils.event_logging import log_build_event, get_recent_events

    log_build_event(
        event_type="build_completed",
        document_name="decision_memo",
        source="building",
        compiler="pdflatex",
        page_count=2,
    )

    events = get_recent_events(5, document_name="decision_memo")
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from latex_toolkit.utils.timestamp import now_exact

load_dotenv()
BUILD_EVENTS_FILE = Path(os.getenv("BUILD_EVENTS_FILE", "outs/logs/build_events.log"))


def log_build_event(event_type: str, document_name: str, source: str, **extra_fields) -> None:
    """
    Log an event to the build event log.

    Args:
        event_type: Type of event (e.g., "build_started", "merge_completed", "signed")
        document_name: Document identifier (file stem)
        source: Event source (e.g., "building", "merging", "signing", "release")
        **extra_fields: Additional event-specific fields (must be JSON serializable)
    """
    BUILD_EVENTS_FILE.parent.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "document_name": document_name,
        "source": source,
        **extra_fields,
    }

    with open(BUILD_EVENTS_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(event, default=str) + "\n")


def read_events() -> List[Dict]:
    """Read every well-formed event from the log, oldest first."""
    if not BUILD_EVENTS_FILE.exists():
        return []

    events = []
    with open(BUILD_EVENTS_FILE, "r", encoding="utf-8") as f:
        for line in f:
            try:
                events.append(json.loads(line.strip()))
            except json.JSONDecodeError:
                # Skip malformed lines
                continue
    return events


def get_recent_events(
    n: int = 10, document_name: Optional[str] = None, event_type: Optional[str] = None
) -> List[Dict]:
    """
    Get the last n events from the build log, optionally filtered.

    Args:
        n: Number of recent events to return (default: 10)
        document_name: Filter to only events for this document (optional)
        event_type: Filter to only events of this type (optional)

    Returns:
        List of event dicts (most recent last)
    """
    if n <= 0:
        return []

    events = read_events()

    if document_name:
        events = [e for e in events if e.get("document_name") == document_name]

    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]

    return events[-n:] if len(events) > n else events


def last_event_for(document_name: str) -> Optional[Dict]:
    """Most recent event recorded for a document, or None."""
    events = get_recent_events(1, document_name=document_name)
    return events[0] if events else None
