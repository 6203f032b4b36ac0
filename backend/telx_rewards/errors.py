"""Exceptions raised by the fee attribution pipeline."""


class TelxError(Exception):
    """Base class for fatal run errors."""


class ResumabilityError(TelxError):
    """Requested period does not continue the previous checkpoint."""


class NoProgressError(TelxError):
    """Requested end block lies before the start block."""


class PositionInvariantError(TelxError):
    """A position record could not be built from the data at hand."""


class MalformedEventError(TelxError):
    """A decoded ModifyLiquidity log is missing required arguments."""


class ReorgSafetyError(TelxError):
    """Requested end block is too close to the chain head to be final."""
