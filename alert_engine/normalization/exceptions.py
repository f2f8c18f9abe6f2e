"""Normalization errors."""


class PreferenceNormalizationError(Exception):
    """Stored preference data for a buyer cannot be turned into criteria.

    Attributes:
        field: Preference field that was malformed
        value: Offending raw value
    """

    def __init__(self, message: str, field: str = "", value: object = None):
        super().__init__(message)
        self.field = field
        self.value = value
