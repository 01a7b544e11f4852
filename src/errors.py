from typing import Optional


class ProcessError(Exception):
    """
    Base class for transaction processing rule violations.
    A processor raises one of the subclasses below and leaves state untouched.
    """

    message = "transaction rejected"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class AmountNotFound(ProcessError):
    message = "transaction does not carry an amount"


class DecimalAmountOverflow(ProcessError):
    message = "amount overflow after transaction"


class NegativeAmount(ProcessError):
    message = "expected amount >= 0"


class NotSufficientAvailableFunds(ProcessError):
    message = "available funds not sufficient for transaction"


class NotSufficientHeldFunds(ProcessError):
    message = "held funds not sufficient for transaction"


class AccountLocked(ProcessError):
    message = "account locked after chargeback"


class TransactionExists(ProcessError):
    message = "transaction id already processed"


class OrgTransactionNotFound(ProcessError):
    message = "original transaction not found"


class DisputedTransactionNotFound(ProcessError):
    message = "transaction is not under dispute"


class TransactionUnderDispute(ProcessError):
    message = "transaction already under dispute"


class InvalidTransactionTypeOrAmount(ProcessError):
    message = "invalid transaction type or amount"


class MismatchClientId(ProcessError):
    message = "client id differs from original transaction"


class ParseError(Exception):
    """Malformed source record. Aborts the whole run."""

    def __init__(self, message: str, line_number: Optional[int] = None, record: Optional[dict] = None):
        self.line_number = line_number
        self.record = record
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
