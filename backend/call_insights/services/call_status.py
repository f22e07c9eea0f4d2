"""Call status labels.

Lifecycle: pending -> completed | failed | skipped, and back to pending only
through a reprocess. ``processing`` is written by the process-call backend.
"""

_LABELS = {
    "in_progress": "Processing",
    "processing": "Processing",
    "completed": "Completed",
    "pending": "Pending",
    "failed": "Failed",
    "skipped": "Skipped",
}


def status_label(status: str) -> str:
    """Human readable label; unknown values are returned as-is."""
    return _LABELS.get(status, status)
