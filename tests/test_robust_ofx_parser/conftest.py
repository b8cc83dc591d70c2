"""Shared fixtures: a realistic indented OFX 1.x SGML statement."""

import pytest

SGML_STATEMENT = """OFXHEADER:100
DATA:OFXSGML
VERSION:102
SECURITY:NONE
ENCODING:USASCII
CHARSET:1252
COMPRESSION:NONE
OLDFILEUID:NONE
NEWFILEUID:NONE

<OFX>
  <SIGNONMSGSRSV1>
    <SONRS>
      <STATUS>
        <CODE>0
        <SEVERITY>INFO
      </STATUS>
      <DTSERVER>20170301120000.000[-5:EST]
      <LANGUAGE>ENG
      <FI>
        <ORG>Example Bank
        <FID>1234
      </FI>
    </SONRS>
  </SIGNONMSGSRSV1>
  <ACCTINFOTRNRS>
    <ACCTINFO>
      <DESC>Checking
      <ACCTID>111
    </ACCTINFO>
  </ACCTINFOTRNRS>
  <BANKMSGSRSV1>
    <STMTTRNRS>
      <TRNUID>1
      <STMTRS>
        <CURDEF>USD
        <BANKACCTFROM>
          <BANKID>021000021
          <ACCTID>111
          <ACCTTYPE>CHECKING
        </BANKACCTFROM>
        <BANKTRANLIST>
          <DTSTART>20170201
          <DTEND>20170301
          <STMTTRN>
            <TRNTYPE>DEBIT
            <DTPOSTED>20170215
            <TRNAMT>-42.50
            <FITID>T1
            <NAME>Café Central
            <MEMO>Lunch
            <SIC>5812
          </STMTTRN>
          <STMTTRN>
            <TRNTYPE>CHECK
            <DTPOSTED>20170220
            <TRNAMT>-100.00
            <FITID>T2
            <NAME>Check 1001
            <CHECKNUM>1001
          </STMTTRN>
        </BANKTRANLIST>
        <LEDGERBAL>
          <BALAMT>1234.56
          <DTASOF>20170301
        </LEDGERBAL>
      </STMTRS>
    </STMTTRNRS>
  </BANKMSGSRSV1>
  <CREDITCARDMSGSRSV1>
    <CCSTMTTRNRS>
      <CCSTMTRS>
        <CURDEF>USD
        <CCACCTFROM>
          <ACCTID>4111
        </CCACCTFROM>
        <BANKTRANLIST>
          <DTSTART>20170201
          <DTEND>20170301
          <STMTTRN>
            <TRNTYPE>CREDIT
            <DTPOSTED>20170210
            <TRNAMT>15.00
            <FITID>C1
            <NAME>Refund
          </STMTTRN>
        </BANKTRANLIST>
        <LEDGERBAL>
          <BALAMT>-250.00
          <DTASOF>20170301
        </LEDGERBAL>
      </CCSTMTRS>
    </CCSTMTTRNRS>
  </CREDITCARDMSGSRSV1>
</OFX>
"""


@pytest.fixture
def sgml_statement() -> str:
    """Decoded statement text with LF line endings."""
    return SGML_STATEMENT


@pytest.fixture
def sgml_statement_bytes() -> bytes:
    """The statement as a Windows-1252 file with CRLF line endings."""
    return SGML_STATEMENT.replace("\n", "\r\n").encode("cp1252")


@pytest.fixture
def statement_file(tmp_path, sgml_statement_bytes):
    """The statement written to a temporary ``.ofx`` file."""
    path = tmp_path / "statement.ofx"
    path.write_bytes(sgml_statement_bytes)
    return path
