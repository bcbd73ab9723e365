"""Display-time correction of recurrence expansion."""

from .occurrence_patch import OccurrenceExpansionPatch, RecurrenceSource, patch_expansion

__all__ = ["OccurrenceExpansionPatch", "RecurrenceSource", "patch_expansion"]
