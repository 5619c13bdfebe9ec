"""
Specification document adapters: state assessment and drift detection.
"""

from modloop.infrastructure.documents.assessor import (
    InMemoryStateAssessor,
    SpecificationStateAssessor,
)
from modloop.infrastructure.documents.drift import (
    NullDriftService,
    SpecificationDriftService,
)

__all__ = [
    "InMemoryStateAssessor",
    "NullDriftService",
    "SpecificationDriftService",
    "SpecificationStateAssessor",
]
