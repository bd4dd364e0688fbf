"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidSchemeError(DomainException):
    """Scheme data is malformed (amount, duration or payment rows)"""

    pass


class InvalidPaymentError(DomainException):
    """Payment details are invalid (non-positive amount, empty batch)"""

    pass


class InvalidDateError(DomainException):
    """A required date is missing or cannot be parsed"""

    pass


class SchemeNotFoundError(DomainException):
    """No scheme with the given id"""

    pass


class PaymentNotFoundError(DomainException):
    """No payment with the given id inside the scheme"""

    pass


class PaymentOrderError(DomainException):
    """Payment recorded while an earlier month is still unpaid"""

    pass


class SchemeStateError(DomainException):
    """Operation is not allowed for the scheme's current status"""

    pass


class IneligibleForDeletionError(DomainException):
    """Scheme must be Closed or Archived before it can be deleted"""

    def __init__(self, scheme_id: str, status: str):
        self.scheme_id = scheme_id
        self.status = status
        super().__init__(f"Scheme {scheme_id} is {status}; only Closed or Archived schemes can be deleted")
