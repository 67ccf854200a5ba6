"""
optionkit Exceptions

Custom exception classes for the optionkit client library.
"""


class OptionKitException(Exception):
    """Base exception for optionkit."""
    pass


class DomainRangeError(OptionKitException, ValueError):
    """Input violates a numeric or structural invariant."""
    pass


class OutOfRangeError(DomainRangeError):
    """Value does not fit the bit field it is packed into."""
    pass


class SingularComputationError(OptionKitException, ArithmeticError):
    """Computation divides by zero for the given inputs."""
    pass


class SourceUnavailableError(OptionKitException):
    """A liquidity source failed to produce a quote."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}" if reason else source)


class InvalidQuoteError(OptionKitException):
    """A quote failed validation (expired, undersized, or mismatched side)."""
    pass


class ConfigurationError(OptionKitException):
    """Configuration file or value is invalid."""
    pass
