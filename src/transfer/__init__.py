"""Signed-URL transfer pipeline.

This package moves file bytes between the local filesystem and Notion's
object storage through pre-signed URLs, and drives the per-file
create -> upload -> attach workflow. Import ``src.transfer.pipeline`` and
``src.transfer.workflow`` directly; this module only re-exports the pure
formatting helpers.
"""

from .formatting import DEFAULT_MIME_TYPE, guess_mime_type, size_to_text

__all__ = [
    "DEFAULT_MIME_TYPE",
    "guess_mime_type",
    "size_to_text",
]
