"""Map question text onto canonical profile keys."""

from campus_autofill.mapping.mapper import FieldMapper, best_choice, choice_matches, create_field_mapper

__all__ = ["FieldMapper", "best_choice", "choice_matches", "create_field_mapper"]
