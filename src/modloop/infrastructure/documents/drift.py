"""
Specification drift detection.

Hashes each markdown section of a module's specification and reports the
sections added, removed or changed since the previous check.
"""

import logging

from modloop.domain.cancellation import CancellationToken
from modloop.domain.interfaces import DriftServiceInterface
from modloop.domain.models import DriftResult
from modloop.infrastructure.documents.assessor import SpecificationStateAssessor
from modloop.infrastructure.documents.markdown import content_hash, extract_sections

logger = logging.getLogger(__name__)


class SpecificationDriftService(DriftServiceInterface):
    """
    Section hashes are cached in memory per module. The first check only
    records a baseline and reports nothing.
    """

    def __init__(self, assessor: SpecificationStateAssessor):
        """
        Args:
            assessor: Used to locate the module's specification file
        """
        self._assessor = assessor
        self._baselines: dict[str, dict[str, tuple[str, str]]] = {}

    def check_drift(
        self, module: str, cancel: CancellationToken | None = None
    ) -> tuple[DriftResult, ...]:
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")
        if cancel is not None:
            cancel.raise_if_cancelled()

        path = self._assessor.spec_path(module)
        if path is None:
            logger.debug("No specification for module %s, skipping drift check", module)
            return ()

        content = path.read_text(encoding="utf-8")
        current = {
            header.lower(): (header, content_hash(body))
            for header, body in extract_sections(content)
        }

        key = module.lower()
        previous = self._baselines.get(key)
        self._baselines[key] = current
        if previous is None:
            return ()

        results: list[DriftResult] = []
        for lowered, (header, digest) in current.items():
            before = previous.get(lowered)
            if before is None:
                logger.info("New section '%s' in %s", header, path)
                results.append(DriftResult(header, current_hash=digest, is_new=True))
            elif before[1] != digest:
                logger.warning("Drift detected in '%s' of %s", header, path)
                results.append(DriftResult(header, before[1], digest))

        for lowered, (header, digest) in previous.items():
            if lowered not in current:
                logger.warning("Section '%s' removed from %s", header, path)
                results.append(DriftResult(header, previous_hash=digest, is_removed=True))

        return tuple(results)


class NullDriftService(DriftServiceInterface):
    """Never reports drift."""

    def check_drift(
        self, module: str, cancel: CancellationToken | None = None
    ) -> tuple[DriftResult, ...]:
        return ()
