"""Tests for mapping element trees onto financial records."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from robust_ofx_parser.api import parse_string
from robust_ofx_parser.finance import (
    Account,
    BankAccount,
    CreditAccount,
    FinancialInformation,
    Institution,
    Session,
    Statement,
    Transaction,
)
from robust_ofx_parser.tree import OFXElement


@pytest.fixture
def information(sgml_statement) -> FinancialInformation:
    root = parse_string(sgml_statement).raise_for_status()
    result = FinancialInformation.from_element(root)
    assert result is not None
    return result


def transaction_element(**overrides) -> OFXElement:
    fields = {
        "TRNTYPE": "DEBIT",
        "DTPOSTED": "20170215",
        "TRNAMT": "-42.50",
        "FITID": "T1",
        "NAME": "Coffee",
    }
    fields.update(overrides)
    return OFXElement(
        "STMTTRN",
        children=[OFXElement(name, value) for name, value in fields.items() if value is not None],
    )


class TestFinancialInformation:
    """Test mapping of a complete statement."""

    def test_session(self, information):
        """Test the sign-on session and institution."""
        assert information.session.institution == Institution("Example Bank", "1234")
        assert information.session.date == datetime(2017, 3, 1, 17, 0, tzinfo=timezone.utc)

    def test_account_list(self, information):
        """Test the account information response."""
        assert information.accounts == [Account("111", "Checking")]

    def test_bank_account(self, information):
        """Test the bank statement."""
        account = information.bank_accounts[0]

        assert len(information.bank_accounts) == 1
        assert account.currency == "USD"
        assert account.bank == "021000021"
        assert account.account == "111"
        assert account.type == "CHECKING"
        assert account.balance == Decimal("1234.56")
        assert account.date == datetime(2017, 3, 1)
        assert account.statement.start == datetime(2017, 2, 1)
        assert account.statement.end == datetime(2017, 3, 1)

    def test_bank_transactions(self, information):
        """Test transactions including optional fields."""
        first, second = information.bank_accounts[0].statement.transactions

        assert first == Transaction(
            type="DEBIT",
            date=datetime(2017, 2, 15),
            amount=Decimal("-42.50"),
            identifier="T1",
            description="Café Central",
            memo="Lunch",
            category=5812,
        )
        assert second.type == "CHECK"
        assert second.check == 1001
        assert second.payee is None

    def test_credit_account(self, information):
        """Test the credit card statement."""
        account = information.credit_accounts[0]

        assert account.account == "4111"
        assert account.balance == Decimal("-250.00")
        assert [t.identifier for t in account.statement.transactions] == ["C1"]
        assert account.statement.transactions[0].amount == Decimal("15.00")

    def test_iter_transactions(self, information):
        """Test iteration over all statement transactions with their account."""
        pairs = list(information.iter_transactions())

        assert [t.identifier for _, t in pairs] == ["T1", "T2", "C1"]
        assert isinstance(pairs[0][0], BankAccount)
        assert isinstance(pairs[2][0], CreditAccount)
        assert information.transaction_count == 3

    def test_summary(self, information):
        """Test the one-screen summary."""
        summary = information.summary()

        assert summary["institution"] == "Example Bank"
        assert summary["accounts"] == 1
        assert summary["bank_accounts"][0]["balance"] == "1234.56"
        assert summary["credit_accounts"][0]["transactions"] == 1
        assert summary["transactions"] == 3

    def test_to_dict_is_json_friendly(self, information):
        """Test that dates and amounts are converted to strings."""
        data = information.to_dict()

        transaction = data["bank_accounts"][0]["statement"]["transactions"][0]
        assert transaction["amount"] == "-42.50"
        assert transaction["date"] == "2017-02-15T00:00:00"
        assert data["session"]["institution"]["name"] == "Example Bank"

    def test_from_parent(self, sgml_statement):
        """Test locating the OFX element below a wrapper element."""
        root = parse_string(sgml_statement).root
        wrapper = OFXElement("WRAPPER", children=[root])

        assert FinancialInformation.from_parent(wrapper) is not None
        assert FinancialInformation.from_parent(OFXElement("WRAPPER")) is None

    def test_missing_session(self):
        """Test that a document without sign-on data is not mapped."""
        root = parse_string("<OFX><BANKMSGSRSV1></BANKMSGSRSV1></OFX>").root

        assert FinancialInformation.from_element(root) is None

    def test_missing_message_sets(self):
        """Test that absent message sets give empty lists."""
        root = parse_string(
            "<OFX><SIGNONMSGSRSV1><SONRS><DTSERVER>20170301<FI><ORG>B</FI>"
            "</SONRS></SIGNONMSGSRSV1></OFX>"
        ).root

        information = FinancialInformation.from_element(root)

        assert information.accounts == []
        assert information.bank_accounts == []
        assert information.credit_accounts == []
        assert information.session.institution == Institution("B", "")


class TestTransaction:
    """Test mapping of single transactions."""

    @pytest.mark.parametrize("missing", ["TRNTYPE", "DTPOSTED", "TRNAMT", "FITID", "NAME"])
    def test_required_fields(self, missing):
        """Test that any missing required field skips the transaction."""
        assert Transaction.from_element(transaction_element(**{missing: None})) is None

    @pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", ""])
    def test_invalid_amount(self, amount):
        """Test that unusable amounts skip the transaction."""
        assert Transaction.from_element(transaction_element(TRNAMT=amount)) is None

    def test_invalid_date(self):
        """Test that an invalid posting date skips the transaction."""
        assert Transaction.from_element(transaction_element(DTPOSTED="soon")) is None

    def test_non_integer_optional_fields(self):
        """Test that non-numeric SIC and CHECKNUM are dropped."""
        transaction = Transaction.from_element(
            transaction_element(SIC="n/a", CHECKNUM="A12")
        )

        assert transaction.category is None
        assert transaction.check is None

    def test_values_stripped(self):
        """Test trimming of indentation residue."""
        transaction = Transaction.from_element(
            transaction_element(NAME="Coffee   ", TRNAMT=" -1.25 ")
        )

        assert transaction.description == "Coffee"
        assert transaction.amount == Decimal("-1.25")

    def test_values_kept_when_not_stripping(self):
        """Test that stripping can be disabled for text fields."""
        transaction = Transaction.from_element(
            transaction_element(NAME="Coffee   "), strip_values=False
        )

        assert transaction.description == "Coffee   "

    def test_invalid_transactions_skipped_in_statement(self):
        """Test that a bad transaction does not drop its siblings."""
        statement = OFXElement(
            "BANKTRANLIST",
            children=[
                OFXElement("DTSTART", "20170201"),
                OFXElement("DTEND", "20170301"),
                transaction_element(FITID="good"),
                transaction_element(TRNAMT="oops"),
            ],
        )

        result = Statement.from_parent(OFXElement("STMTRS", children=[statement]))

        assert [t.identifier for t in result.transactions] == ["good"]


class TestAccounts:
    """Test account level records."""

    def test_bank_account_requires_balance(self, sgml_statement):
        """Test that a statement without a ledger balance is skipped."""
        text = sgml_statement.replace("<BALAMT>1234.56", "<BALAMT>unknown")
        root = parse_string(text).root

        information = FinancialInformation.from_element(root)

        assert information.bank_accounts == []
        assert len(information.credit_accounts) == 1

    def test_credit_account_without_statement_response(self):
        """Test a CCSTMTTRNRS without CCSTMTRS."""
        assert CreditAccount.from_element(OFXElement("CCSTMTTRNRS")) is None

    def test_account_requires_identifier(self):
        """Test that ACCTINFO without ACCTID is skipped."""
        assert Account.from_element(OFXElement("ACCTINFO", children=[OFXElement("DESC", "x")])) is None

    def test_session_requires_institution(self):
        """Test that SONRS without FI is not a session."""
        sonrs = OFXElement("SONRS", children=[OFXElement("DTSERVER", "20170301")])

        assert Session.from_element(sonrs) is None
