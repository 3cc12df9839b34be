"""Custom exception hierarchy for familycal.

Callers can catch FamilyCalError for anything raised by this package, or the
ValueError base for argument problems. The expansion engine itself does not
raise for bad event records; it logs and skips them.
"""


class FamilyCalError(Exception):
    """Base exception for all familycal errors."""


class InvalidWindowError(FamilyCalError, ValueError):
    """Query window is malformed.

    Raised when:
    - range_start is after range_end
    - a window bound is not a datetime
    """


class InstanceIdError(FamilyCalError, ValueError):
    """Instance id cannot be resolved.

    Raised when:
    - the id is empty or not a string
    - the id does not belong to the template it is applied to
    """


class TemplateValidationError(FamilyCalError, ValueError):
    """An event record could not be coerced into an EventTemplate.

    Raised by explicit coercion helpers. The expansion engine catches this
    and skips the record instead.
    """
