"""Export of a finished run as a self-describing JSON document.

The document layout::

    {
        "run_id": "run_...",
        "correlation_id": "cor_...",
        "timestamp": "2026-01-01T00:00:00+00:00",
        "actor": {"type": "system", "device_id": "cli:host:user", "cli_version": "0.1.0"},
        "result": {"converged": true, "cycles": 5, "total_facts": 15},
        "facts": [{"sequence": 1, "key": "Signals", "id": "...", "content": "..."}]
    }

Facts are numbered from 1 in ``ContextKey`` order.
"""

from __future__ import annotations

import datetime
import getpass
import json
import socket
import uuid
from pathlib import Path
from typing import Any

from converge_app.services.engine import RunResult


def new_run_id() -> str:
    return f"run_{uuid.uuid4()}"


def new_correlation_id() -> str:
    return f"cor_{uuid.uuid4()}"


def default_device_id() -> str:
    """Return ``cli:<hostname>:<user>``, using ``unknown`` for missing parts."""
    try:
        host = socket.gethostname() or "unknown"
    except OSError:
        host = "unknown"
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    return f"cli:{host}:{user}"


def build_run_output(
    result: RunResult,
    run_id: str,
    correlation_id: str,
    device_id: str | None = None,
    timestamp: datetime.datetime | None = None,
) -> dict[str, Any]:
    """Build the export document for *result*."""
    from converge_app import __version__

    facts = [
        {
            "sequence": sequence,
            "key": fact.key.value,
            "id": fact.id,
            "content": fact.content,
        }
        for sequence, fact in enumerate(result.context.all_facts(), start=1)
    ]
    when = timestamp or datetime.datetime.now(datetime.timezone.utc)
    return {
        "run_id": run_id,
        "correlation_id": correlation_id,
        "timestamp": when.isoformat(),
        "actor": {
            "type": "system",
            "device_id": device_id or default_device_id(),
            "cli_version": __version__,
        },
        "result": {
            "converged": result.converged,
            "cycles": result.cycles,
            "total_facts": len(facts),
        },
        "facts": facts,
    }


def export_json(document: dict[str, Any], path: str | Path) -> None:
    """Write *document* to *path* as indented JSON, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2)
