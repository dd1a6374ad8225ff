"""
classification/base.py

Abstract base interface for report classifiers.
All classifier implementations must inherit from BaseClassifier.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from app.domain.classification import ClassifiedBatch


class BaseClassifier(ABC):
    """Abstract base class for report classifiers.

    Implementations receive the file name, the header cells, and a handful
    of data rows (header excluded) and return a ClassifiedBatch.
    """

    name: str = "base"

    @abstractmethod
    def classify(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> ClassifiedBatch:
        """Classify one report.

        Args:
            file_name: Original upload file name.
            headers: Header cells as they appear in the report.
            sample_rows: First data rows, header excluded.

        Returns:
            The classified batch.

        Raises:
            ClassificationUnavailable: If the classifier cannot produce a
                                       trustworthy result (remote only).
        """
        raise NotImplementedError("Subclasses must implement classify()")
