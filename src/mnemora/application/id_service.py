"""Stable identifiers for progress records."""

from ulid import ULID

from mnemora.domain.progress.models import ProgressId


def generate_progress_id() -> ProgressId:
    """Generate a sortable progress id using ULID."""
    return ProgressId(f"prog_{ULID()}")
