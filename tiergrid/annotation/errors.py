"""
Exceptions raised by tiers, textgrids and the TextGrid codec.

Every error is raised where it is detected and aborts the whole
operation; nothing is partially applied.
"""

from __future__ import annotations


def _entry_text(entry) -> str:
    return str(list(entry))


class TextgridError(Exception):
    """Base class for all tiergrid errors."""
    pass


class TierCreationError(TextgridError):
    """A tier could not be built (no derivable time range or a bad entry)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Couldn't create tier: {reason}")


class TierExistsError(TextgridError):
    """A tier name is already used in the textgrid."""

    def __init__(self, tier_name: str):
        self.tier_name = tier_name
        super().__init__(f"Tier name {tier_name} already exists in textgrid")


class TextgridCollisionError(TextgridError):
    """An inserted entry overlaps existing entries and no collision policy was given."""

    def __init__(self, tier_name: str, entry, match_list):
        self.tier_name = tier_name
        self.entry = entry
        self.match_list = list(match_list)
        matches = ', '.join(_entry_text(match) for match in self.match_list)
        super().__init__(
            f"Attempted to insert entry {_entry_text(entry)} into tier '{tier_name}' "
            f"of textgrid but overlapping entries [{matches}] already exist."
        )


class OvershootModificationError(TextgridError):
    """A timestamp edit would push an entry outside the tier's bounds."""

    def __init__(self, tier_name: str, old_entry, new_entry, min_timestamp: float, max_timestamp: float):
        self.tier_name = tier_name
        self.old_entry = old_entry
        self.new_entry = new_entry
        self.min_timestamp = min_timestamp
        self.max_timestamp = max_timestamp
        super().__init__(
            f"Attempted to change {_entry_text(old_entry)} to {_entry_text(new_entry)} "
            f"in tier '{tier_name}' however, this exceeds the bounds "
            f"({min_timestamp}, {max_timestamp})."
        )


class TierIndexError(TextgridError, IndexError):
    """An entry to delete was not found in the tier."""

    def __init__(self, index: int, list_length: int):
        self.index = index
        self.list_length = list_length
        super().__init__(
            f"Attempted to index a list of length {list_length} with index {index}."
        )


class IncorrectArgumentError(TextgridError, ValueError):
    """A mode or policy string is not one of the accepted values."""

    def __init__(self, value, valid_values):
        self.value = value
        self.valid_values = list(valid_values)
        choices = ', '.join(str(valid) for valid in self.valid_values)
        super().__init__(
            f"Expected value '{value}' to be one value in [{choices}]."
        )


class NonMatchingTiersError(TextgridError):
    """Two tiers of different types were combined."""

    def __init__(self, message: str = 'Tier types must match when appending tiers.'):
        super().__init__(message)


class NormalizationRangeError(TextgridError):
    """Tier data lies outside the range requested for saving."""

    def __init__(self, tier_name: str, message: str):
        self.tier_name = tier_name
        super().__init__(f"Tier '{tier_name}': {message}")


class TextgridParseError(TextgridError, ValueError):
    """TextGrid text is truncated or missing a required field."""
    pass
