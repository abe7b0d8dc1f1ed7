"""Engine module - reviewer selection and assignment rules."""

from revassign.engine.assignment import MAX_REVIEWERS, ReviewerAssignmentEngine, eligible_candidates
from revassign.engine.selector import RandomSelector, Selector

__all__ = [
    "MAX_REVIEWERS",
    "RandomSelector",
    "ReviewerAssignmentEngine",
    "Selector",
    "eligible_candidates",
]
