"""Document status persistence for the pipeline."""

from .document_status_updater import DocumentStatusUpdater

__all__ = ["DocumentStatusUpdater"]
