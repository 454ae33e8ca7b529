"""Live streaming of merged facts while the engine runs.

Human-readable format::

    [cycle:1] fact:Signals:signal:linkedin-b2b | LinkedIn shows ...
    [cycle:5] converged | 5 cycles, 15 facts

JSON Lines format::

    {"cycle":1,"type":"fact","key":"Signals","id":"signal:linkedin-b2b","content":"..."}
    {"cycle":5,"type":"status","converged":true,"cycles":5,"facts":15}
"""

from __future__ import annotations

import json
import sys
import threading
from enum import Enum
from typing import Any, TextIO

from converge_app.domain.values import Fact
from converge_app.services.engine import StreamingCallback


class OutputFormat(Enum):
    HUMAN = "human"
    JSON = "json"


class StreamingHandler(StreamingCallback):
    """Writes each merged fact to *stream* as soon as it lands.

    Parameters
    ----------
    output_format:
        :attr:`OutputFormat.HUMAN` or :attr:`OutputFormat.JSON`.
    stream:
        Destination; defaults to ``sys.stdout``.
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.HUMAN, stream: TextIO | None = None) -> None:
        self._format = output_format
        self._stream = stream or sys.stdout
        self._fact_count = 0
        self._lock = threading.Lock()

    @classmethod
    def human(cls, stream: TextIO | None = None) -> StreamingHandler:
        return cls(OutputFormat.HUMAN, stream)

    @classmethod
    def json_lines(cls, stream: TextIO | None = None) -> StreamingHandler:
        return cls(OutputFormat.JSON, stream)

    @property
    def fact_count(self) -> int:
        """Number of facts streamed so far."""
        return self._fact_count

    def on_fact(self, cycle: int, fact: Fact) -> None:
        with self._lock:
            self._fact_count += 1
        if self._format is OutputFormat.JSON:
            self._emit_json({
                "cycle": cycle,
                "type": "fact",
                "key": fact.key.value,
                "id": fact.id,
                "content": fact.content,
            })
        else:
            self._emit(f"[cycle:{cycle}] fact:{fact.key.value}:{fact.id} | {fact.content}")

    def emit_final_status(self, converged: bool, cycles: int) -> None:
        """Write the closing status line for the run."""
        facts = self.fact_count
        if self._format is OutputFormat.JSON:
            self._emit_json({
                "cycle": cycles,
                "type": "status",
                "converged": converged,
                "cycles": cycles,
                "facts": facts,
            })
        else:
            status = "converged" if converged else "halted"
            self._emit(f"[cycle:{cycles}] {status} | {cycles} cycles, {facts} facts")

    def _emit_json(self, payload: dict[str, Any]) -> None:
        self._emit(json.dumps(payload, separators=(",", ":")))

    def _emit(self, line: str) -> None:
        self._stream.write(line + "\n")
        self._stream.flush()
