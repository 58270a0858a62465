"""Shared helpers for the workflow kernel."""

from workflow_kernel.utils.serialization import json_default, to_json_safe

__all__ = ["json_default", "to_json_safe"]
