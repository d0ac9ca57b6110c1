"""Strategies for turning an accepted suggestion into a new field value."""

from abc import ABC, abstractmethod

from ipr_review.models.edit_suggestion import EditSuggestion


class ValueChangeStrategy(ABC):
    """Abstract field value change interface."""

    name: str = "abstract"

    @abstractmethod
    def apply(self, current_value: str | None, suggestion: EditSuggestion) -> str:
        """Return the field value after ``suggestion`` is accepted."""

    def is_stale(self, current_value: str | None, suggestion: EditSuggestion) -> bool:
        """Whether the field moved since the suggestion snapshotted it."""

        if suggestion.original_value is None:
            return False
        return (current_value or "") != suggestion.original_value


class WholeValueReplace(ValueChangeStrategy):
    """One suggestion replaces the entire field value."""

    name = "whole_value_replace"

    def apply(self, current_value: str | None, suggestion: EditSuggestion) -> str:
        return suggestion.suggested_value
