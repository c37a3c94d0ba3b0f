from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from migrator.normalization.models import NormalizationOutcome


class BaseNormalizer(ABC):
    """Contract for record normalizers."""

    @abstractmethod
    def normalize(self, record: Mapping[str, Any]) -> NormalizationOutcome:
        """Classify one raw record and compute its update directive.

        Args:
            record: Raw document as read from the source collection.

        Returns:
            A Patch for records that can be normalized in place, otherwise
            one of UnhandledType, ConfusedId or NullEmail.

        Must not raise for any input and must not mutate ``record``.
        """
