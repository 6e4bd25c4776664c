"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Caller supplied data that cannot be computed on"""

    pass


class InvalidTargetDateError(InvalidInputError):
    """Target date is not in the future, or is set without a target amount"""

    pass


class InvalidFrequencyError(InvalidInputError):
    """Frequency value is zero/negative or the frequency name is unknown"""

    pass


class UnknownEntryError(InvalidInputError):
    """Percentage update references an id that is not part of the allocation"""

    pass


class InsufficientFundsError(DomainException):
    """Withdrawal or transfer exceeds what the account can cover"""

    pass


class AccountNotFoundError(DomainException):
    """Referenced account does not exist"""

    pass