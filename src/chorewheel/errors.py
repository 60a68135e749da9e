"""Exception hierarchy for the chore scheduling core."""


class ChorewheelError(Exception):
    """Base class for all errors raised by chorewheel."""


class PayloadError(ChorewheelError, ValueError):
    """Raised when an event payload cannot be parsed into domain objects."""


class EventValidationError(ChorewheelError):
    """Raised when an event definition fails validation.

    Attributes:
        errors: Every validation error found, in check order.
    """

    def __init__(self, errors: list):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} validation error(s): {summary}")


class SchedulingError(ChorewheelError):
    """Raised when a generated plan breaks a plan invariant.

    Validated input never produces this; seeing it means a solver defect.
    """
