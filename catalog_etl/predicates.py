"""
Row Classification Rules

Predicates over free-text sheet labels. Kept separate from the plan builder
so the heuristics can be tested and swapped on their own.
"""

import re
from abc import ABC, abstractmethod
from typing import Iterable, Pattern, Union


class LabelPredicate(ABC):
    """Abstract base class for label predicates."""

    @abstractmethod
    def __call__(self, label: str) -> bool:
        """
        Classify a label.

        Returns:
            True if the label matches
        """
        pass


class PatternPredicate(LabelPredicate):
    """Matches labels against a full-match regular expression."""

    def __init__(self, pattern: Union[str, Pattern]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def __call__(self, label: str) -> bool:
        if not label:
            return False
        return self.pattern.fullmatch(label.strip()) is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.pattern.pattern!r})"


class CategoryHeaderPredicate(PatternPredicate):
    """
    Recognizes section headers in the sponsorship plan tab.

    Venue exposure, network promotion and any "...曝光" (exposure) label
    are treated as category headers.
    """

    CATEGORY_PATTERN = r"(年會現場|Logo曝光|網路宣傳|.*曝光)"

    def __init__(self, extra_labels: Iterable[str] = ()):
        pattern = self.CATEGORY_PATTERN
        extra = [re.escape(label) for label in extra_labels if label]
        if extra:
            pattern = f"(?:{pattern}|{'|'.join(extra)})"
        super().__init__(pattern)


is_category_header = CategoryHeaderPredicate()
