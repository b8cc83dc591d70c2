"""Typed financial records projected from an OFX element tree.

Each record type has a ``from_element`` (or ``from_parent``) constructor that
returns ``None`` when a required field is missing or cannot be converted, so a
malformed transaction or account is skipped instead of failing the whole
document.

Leaf values are trimmed before conversion: indentation in real files reaches the
tree as content of the still-open leaf element.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from robust_ofx_parser.shared.logging import get_logger
from robust_ofx_parser.tree.element import OFXElement

from .dates import parse_ofx_date

logger = get_logger(__name__, component="finance_mapper")


def _text(element: OFXElement, *path: str, strip: bool = True) -> Optional[str]:
    found = element.lookup(*path)
    if found is None:
        return None
    return found.content.strip() if strip else found.content


def _date(element: OFXElement, *path: str, strip: bool = True) -> Optional[datetime]:
    return parse_ofx_date(_text(element, *path, strip=strip))


def _decimal(element: OFXElement, *path: str, strip: bool = True) -> Optional[Decimal]:
    value = _text(element, *path, strip=strip)
    if value is None:
        return None
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _int(element: OFXElement, *path: str, strip: bool = True) -> Optional[int]:
    value = _text(element, *path, strip=strip)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _to_json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_to_json_value(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Record:
    """Mixin providing JSON-friendly dictionaries for frozen dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            name: _to_json_value(getattr(self, name))
            for name in self.__dataclass_fields__  # type: ignore[attr-defined]
        }


@dataclass(frozen=True)
class Institution(_Record):
    """Financial institution identified in the sign-on response (``FI``)."""

    LABEL = "FI"

    name: str = ""
    identifier: str = ""

    @classmethod
    def from_parent(cls, parent: OFXElement, strip_values: bool = True) -> Optional["Institution"]:
        element = parent.lookup(cls.LABEL)
        if element is None:
            return None
        return cls(
            name=_text(element, "ORG", strip=strip_values) or "",
            identifier=_text(element, "FID", strip=strip_values) or "",
        )


@dataclass(frozen=True)
class Session(_Record):
    """Sign-on response (``SONRS``): server time and institution."""

    LABEL = "SONRS"

    date: datetime
    institution: Institution

    @classmethod
    def from_element(cls, element: OFXElement, strip_values: bool = True) -> Optional["Session"]:
        institution = Institution.from_parent(element, strip_values)
        date = _date(element, "DTSERVER", strip=strip_values)
        if institution is None or date is None:
            return None
        return cls(date=date, institution=institution)


@dataclass(frozen=True)
class Account(_Record):
    """Account listed in an account information response (``ACCTINFO``)."""

    LABEL = "ACCTINFO"

    identifier: str
    description: str = ""
    bank: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_element(cls, element: OFXElement, strip_values: bool = True) -> Optional["Account"]:
        identifier = _text(element, "ACCTID", strip=strip_values)
        if identifier is None:
            return None
        return cls(
            identifier=identifier,
            description=_text(element, "DESC", strip=strip_values) or "",
            bank=_text(element, "BANKID", strip=strip_values),
            type=_text(element, "ACCTTYPE", strip=strip_values),
        )


@dataclass(frozen=True)
class Transaction(_Record):
    """Single statement transaction (``STMTTRN``)."""

    LABEL = "STMTTRN"

    type: str
    date: datetime
    amount: Decimal
    identifier: str
    description: str
    payee: Optional[str] = None
    memo: Optional[str] = None
    category: Optional[int] = None
    check: Optional[int] = None

    @classmethod
    def from_element(cls, element: OFXElement, strip_values: bool = True) -> Optional["Transaction"]:
        """Map a ``STMTTRN`` element.

        ``TRNTYPE``, ``DTPOSTED``, ``TRNAMT``, ``FITID`` and ``NAME`` are required.
        ``SIC`` (merchant category code) and ``CHECKNUM`` are kept only when they
        are integers.
        """
        kind = _text(element, "TRNTYPE", strip=strip_values)
        date = _date(element, "DTPOSTED", strip=strip_values)
        amount = _decimal(element, "TRNAMT", strip=strip_values)
        identifier = _text(element, "FITID", strip=strip_values)
        description = _text(element, "NAME", strip=strip_values)
        if None in (kind, date, amount, identifier, description):
            return None
        return cls(
            type=kind,
            date=date,
            amount=amount,
            identifier=identifier,
            description=description,
            payee=_text(element, "PAYEE", strip=strip_values),
            memo=_text(element, "MEMO", strip=strip_values),
            category=_int(element, "SIC", strip=strip_values),
            check=_int(element, "CHECKNUM", strip=strip_values),
        )


@dataclass(frozen=True)
class Statement(_Record):
    """Transaction list (``BANKTRANLIST``) covering a date range."""

    LABEL = "BANKTRANLIST"

    start: datetime
    end: datetime
    transactions: List[Transaction] = field(default_factory=list)

    @classmethod
    def from_parent(cls, parent: OFXElement, strip_values: bool = True) -> Optional["Statement"]:
        element = parent.lookup(cls.LABEL)
        if element is None:
            return None
        start = _date(element, "DTSTART", strip=strip_values)
        end = _date(element, "DTEND", strip=strip_values)
        if start is None or end is None:
            return None
        return cls(
            start=start,
            end=end,
            transactions=_map_children(element, Transaction, strip_values),
        )


@dataclass(frozen=True)
class BankAccount(_Record):
    """Bank statement response (``STMTTRNRS``)."""

    LABEL = "STMTTRNRS"

    currency: str
    bank: str
    account: str
    type: str
    balance: Decimal
    date: datetime
    statement: Statement

    @classmethod
    def from_element(cls, element: OFXElement, strip_values: bool = True) -> Optional["BankAccount"]:
        statement_response = element.lookup("STMTRS")
        if statement_response is None:
            return None
        values = dict(
            currency=_text(statement_response, "CURDEF", strip=strip_values),
            bank=_text(statement_response, "BANKACCTFROM", "BANKID", strip=strip_values),
            account=_text(statement_response, "BANKACCTFROM", "ACCTID", strip=strip_values),
            type=_text(statement_response, "BANKACCTFROM", "ACCTTYPE", strip=strip_values),
            balance=_decimal(statement_response, "LEDGERBAL", "BALAMT", strip=strip_values),
            date=_date(statement_response, "LEDGERBAL", "DTASOF", strip=strip_values),
            statement=Statement.from_parent(statement_response, strip_values),
        )
        if any(value is None for value in values.values()):
            return None
        return cls(**values)


@dataclass(frozen=True)
class CreditAccount(_Record):
    """Credit card statement response (``CCSTMTTRNRS``)."""

    LABEL = "CCSTMTTRNRS"

    currency: str
    account: str
    balance: Decimal
    date: datetime
    statement: Statement

    @classmethod
    def from_element(cls, element: OFXElement, strip_values: bool = True) -> Optional["CreditAccount"]:
        statement_response = element.lookup("CCSTMTRS")
        if statement_response is None:
            return None
        values = dict(
            currency=_text(statement_response, "CURDEF", strip=strip_values),
            account=_text(statement_response, "CCACCTFROM", "ACCTID", strip=strip_values),
            balance=_decimal(statement_response, "LEDGERBAL", "BALAMT", strip=strip_values),
            date=_date(statement_response, "LEDGERBAL", "DTASOF", strip=strip_values),
            statement=Statement.from_parent(statement_response, strip_values),
        )
        if any(value is None for value in values.values()):
            return None
        return cls(**values)


StatementAccount = Union[BankAccount, CreditAccount]


@dataclass(frozen=True)
class FinancialInformation(_Record):
    """Everything extracted from one OFX document."""

    LABEL = "OFX"

    session: Session
    accounts: List[Account] = field(default_factory=list)
    bank_accounts: List[BankAccount] = field(default_factory=list)
    credit_accounts: List[CreditAccount] = field(default_factory=list)

    @classmethod
    def from_element(
        cls, element: OFXElement, strip_values: bool = True
    ) -> Optional["FinancialInformation"]:
        """Map a document root.

        The sign-on session is required. Missing message sets produce empty
        account lists.
        """
        sonrs = element.lookup("SIGNONMSGSRSV1", Session.LABEL)
        session = Session.from_element(sonrs, strip_values) if sonrs is not None else None
        if session is None:
            logger.debug("Document has no usable sign-on response")
            return None

        return cls(
            session=session,
            accounts=_map_container(element, "ACCTINFOTRNRS", Account, strip_values),
            bank_accounts=_map_container(element, "BANKMSGSRSV1", BankAccount, strip_values),
            credit_accounts=_map_container(
                element, "CREDITCARDMSGSRSV1", CreditAccount, strip_values
            ),
        )

    @classmethod
    def from_parent(
        cls, parent: OFXElement, strip_values: bool = True
    ) -> Optional["FinancialInformation"]:
        element = parent.lookup(cls.LABEL)
        if element is None:
            return None
        return cls.from_element(element, strip_values)

    @property
    def statement_accounts(self) -> List[StatementAccount]:
        """Bank accounts followed by credit accounts."""
        return [*self.bank_accounts, *self.credit_accounts]

    def iter_transactions(self) -> Iterator[Tuple[StatementAccount, Transaction]]:
        """Yield every transaction together with the account it belongs to."""
        for account in self.statement_accounts:
            for transaction in account.statement.transactions:
                yield account, transaction

    @property
    def transaction_count(self) -> int:
        return sum(1 for _ in self.iter_transactions())

    def summary(self) -> Dict[str, Any]:
        """Counts and identifiers suitable for a one-screen report."""
        return {
            "institution": self.session.institution.name,
            "server_date": self.session.date.isoformat(),
            "accounts": len(self.accounts),
            "bank_accounts": [
                {
                    "account": account.account,
                    "currency": account.currency,
                    "balance": str(account.balance),
                    "transactions": len(account.statement.transactions),
                }
                for account in self.bank_accounts
            ],
            "credit_accounts": [
                {
                    "account": account.account,
                    "currency": account.currency,
                    "balance": str(account.balance),
                    "transactions": len(account.statement.transactions),
                }
                for account in self.credit_accounts
            ],
            "transactions": self.transaction_count,
        }


def _map_children(parent: OFXElement, record_type: Any, strip_values: bool) -> List[Any]:
    records = []
    for child in parent.find_children(record_type.LABEL):
        record = record_type.from_element(child, strip_values)
        if record is None:
            logger.debug(
                "Skipping record with missing or invalid fields",
                extra={"label": record_type.LABEL},
            )
            continue
        records.append(record)
    return records


def _map_container(
    root: OFXElement, container: str, record_type: Any, strip_values: bool
) -> List[Any]:
    element = root.lookup(container)
    if element is None:
        return []
    return _map_children(element, record_type, strip_values)
