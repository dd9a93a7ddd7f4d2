"""
Processing subsystem for snapshot point data.
"""

from .subject_filter import (
    SubjectCutoffs,
    SubjectFilterService,
    compute_cutoffs,
    filter_subject,
)


__all__ = [
    "SubjectCutoffs",
    "SubjectFilterService",
    "compute_cutoffs",
    "filter_subject",
]
