"""Exception hierarchy for table building, targeting, styling and options.

Every error is raised by the transformation call that received the bad input.
Table values are frozen, so a failed call leaves the previous value usable.
"""


class TableStyleError(Exception):
    """Base class for all errors raised by tablestyle."""


class ShapeError(TableStyleError):
    """The tabular data cannot form a valid table shape (e.g. duplicate row ids)."""


class ResolutionError(TableStyleError):
    """A location or selector cannot be resolved against the table shape."""


class StyleError(TableStyleError):
    """A style directive names an unknown property or carries an invalid value."""


class OptionError(TableStyleError):
    """Base class for option registry misconfiguration."""


class UnknownOptionError(OptionError):
    """An option key does not exist in the option tree."""

    def __init__(self, key: str, suggestions: list[str] | None = None):
        self.key = key
        self.suggestions = suggestions or []
        message = f"Unknown option '{key}'"
        if self.suggestions:
            message += f" (did you mean: {', '.join(self.suggestions)}?)"
        super().__init__(message)


class InvalidOptionValueError(OptionError):
    """A known option key received a value of the wrong type or out of range."""

    def __init__(self, key: str, value, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value {value!r} for option '{key}': {reason}")
