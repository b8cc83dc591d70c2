"""Financial records extracted from OFX element trees."""

from .dates import parse_ofx_date
from .models import (
    Account,
    BankAccount,
    CreditAccount,
    FinancialInformation,
    Institution,
    Session,
    Statement,
    Transaction,
)

__all__ = [
    "Account",
    "BankAccount",
    "CreditAccount",
    "FinancialInformation",
    "Institution",
    "Session",
    "Statement",
    "Transaction",
    "parse_ofx_date",
]
