"""Presentation layer: console rendering, live streaming and JSON export."""

from converge_app.presentation.console import ConsoleDashboard
from converge_app.presentation.export import (
    build_run_output,
    default_device_id,
    export_json,
    new_correlation_id,
    new_run_id,
)
from converge_app.presentation.streaming import OutputFormat, StreamingHandler

__all__ = [
    "ConsoleDashboard",
    "OutputFormat",
    "StreamingHandler",
    "build_run_output",
    "default_device_id",
    "export_json",
    "new_correlation_id",
    "new_run_id",
]
