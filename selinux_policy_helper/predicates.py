"""Which watch events trigger a reconciliation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EventFilter:
    """
    Per event type switch, evaluated before a pod is queued.

    Dropping events only saves work: the reconciler re-reads the pod
    anyway. The default passes updates only, since target pods become
    eligible when they reach Running and companions when they finish.
    """
    on_create: bool = False
    on_update: bool = True
    on_delete: bool = False
    on_generic: bool = False

    def allows(self, event_type: str) -> bool:
        """Check a watch event type (ADDED, MODIFIED, DELETED, ...)."""
        if event_type == "ADDED":
            return self.on_create
        if event_type == "MODIFIED":
            return self.on_update
        if event_type == "DELETED":
            return self.on_delete
        return self.on_generic
