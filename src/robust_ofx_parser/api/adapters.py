"""Integration adapters for handing parsed OFX data to other libraries.

This module provides an adapter framework with two built-in adapters:

* ``lxml``: converts an OFX element tree into an ``lxml.etree`` element, which
  turns SGML-style OFX into well-formed XML, and back.
* ``pandas``: converts the transactions of a document into a DataFrame with one
  row per transaction, and back into transaction records.

Both target libraries are optional and imported only when an adapter is used.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type, Union

from robust_ofx_parser.finance import CreditAccount, FinancialInformation, Transaction
from robust_ofx_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from robust_ofx_parser.tree import OFXElement, ParseResult

TRANSACTION_COLUMNS = [
    "account_type",
    "account",
    "currency",
    "type",
    "date",
    "amount",
    "identifier",
    "description",
    "payee",
    "memo",
    "category",
    "check",
]


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # XML processing libraries (lxml)
    DATA_FRAME = auto()      # DataFrame libraries (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    supported_versions: List[str]
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Conversions never raise: failures are reported through a ConversionResult
    with ``success=False``.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, source: Any) -> ConversionResult:
        """Convert parsed OFX data to the target format."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target format data back to OFX objects."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message)
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        """Initialize the adapter registry."""
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Args:
            adapter_name: Name of the adapter
            correlation_id: Optional correlation ID

        Returns:
            Adapter instance if registered and its library is importable,
            None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata for every registered adapter whose library is importable."""
        with self._lock:
            adapter_classes = list(self._adapters.values())
        available = []
        for adapter_class in adapter_classes:
            instance = adapter_class()
            if instance.is_available():
                available.append(instance.metadata)
        return available


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance.

    Args:
        adapter_name: Name of the adapter, ``"lxml"`` or ``"pandas"``
        correlation_id: Optional correlation ID

    Returns:
        Adapter instance if available, None otherwise
    """
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Conversion between OFX element trees and lxml.etree elements"
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, source: Union[ParseResult, OFXElement]) -> ConversionResult:
        """Convert an element tree to an ``lxml.etree`` element.

        Element content is trimmed and becomes the XML element's text.

        Args:
            source: ParseResult or OFXElement to convert

        Returns:
            ConversionResult containing the lxml root element
        """
        start_time = time.perf_counter()
        from lxml import etree

        root = source.root if isinstance(source, ParseResult) else source
        if root is None:
            return self._create_error_result(
                "ParseResult has no root element", source, _elapsed_ms(start_time)
            )

        try:
            lxml_root = self._convert_element_to_lxml(root, etree)
        except ValueError as e:
            # lxml rejects names that are not valid XML names
            return self._create_error_result(
                f"Failed to convert to lxml: {e}", source, _elapsed_ms(start_time)
            )

        return ConversionResult(
            success=True,
            converted_data=lxml_root,
            original_data=source,
            conversion_time_ms=_elapsed_ms(start_time),
            metadata={
                "lxml_version": etree.LXML_VERSION,
                "element_count": sum(1 for _ in lxml_root.iter()),
            }
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an ``lxml.etree`` element to an OFX element tree.

        Args:
            target_data: lxml element

        Returns:
            ConversionResult containing a ParseResult
        """
        start_time = time.perf_counter()

        if not hasattr(target_data, "tag") or not isinstance(target_data.tag, str):
            return self._create_error_result(
                "Target data is not a valid lxml element",
                target_data,
                _elapsed_ms(start_time)
            )

        root = self._convert_lxml_to_element(target_data)
        parse_result = ParseResult(root=root, correlation_id=self.correlation_id)
        parse_result.performance.elements_created = root.element_count

        return ConversionResult(
            success=True,
            converted_data=parse_result,
            original_data=target_data,
            conversion_time_ms=_elapsed_ms(start_time),
            metadata={"original_tag": target_data.tag}
        )

    def to_xml_string(
        self, source: Union[ParseResult, OFXElement], pretty_print: bool = True
    ) -> Optional[str]:
        """Render an element tree as an XML string, or None if conversion fails."""
        from lxml import etree

        result = self.to_target(source)
        if not result.success:
            return None
        return etree.tostring(
            result.converted_data, encoding="unicode", pretty_print=pretty_print
        )

    def _convert_element_to_lxml(self, element: OFXElement, etree: Any) -> Any:
        """Convert OFXElement to lxml.etree.Element."""
        lxml_root = self._new_lxml_element(element, etree)
        stack = [(element, lxml_root)]
        while stack:
            current, lxml_element = stack.pop()
            for child in current.children:
                lxml_child = self._new_lxml_element(child, etree)
                lxml_element.append(lxml_child)
                stack.append((child, lxml_child))
        return lxml_root

    @staticmethod
    def _new_lxml_element(element: OFXElement, etree: Any) -> Any:
        lxml_element = etree.Element(element.name)
        text = element.content.strip()
        if text:
            lxml_element.text = text
        return lxml_element

    def _convert_lxml_to_element(self, lxml_element: Any) -> OFXElement:
        """Convert lxml.etree.Element to OFXElement, skipping comments and PIs."""
        root = OFXElement(lxml_element.tag, (lxml_element.text or "").strip())
        stack = [(lxml_element, root)]
        while stack:
            current, element = stack.pop()
            for lxml_child in current:
                if not isinstance(lxml_child.tag, str):
                    continue
                child = OFXElement(lxml_child.tag, (lxml_child.text or "").strip())
                element.children.append(child)
                stack.append((lxml_child, child))
        return root


class PandasAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with pandas DataFrame."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            supported_versions=["1.0+"],
            description="Conversion between statement transactions and pandas DataFrame"
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(
        self, source: Union[ParseResult, FinancialInformation]
    ) -> ConversionResult:
        """Convert the transactions of a document to a DataFrame.

        Args:
            source: ParseResult or already mapped FinancialInformation

        Returns:
            ConversionResult containing a DataFrame with one row per transaction;
            amounts stay ``Decimal`` values in an object column
        """
        start_time = time.perf_counter()
        import pandas as pd

        information = source
        if isinstance(source, ParseResult):
            if source.root is None:
                return self._create_error_result(
                    "ParseResult has no root element", source, _elapsed_ms(start_time)
                )
            information = FinancialInformation.from_element(source.root)
        if not isinstance(information, FinancialInformation):
            return self._create_error_result(
                "Document has no usable sign-on response", source, _elapsed_ms(start_time)
            )

        rows = self._extract_rows(information)
        df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)

        return ConversionResult(
            success=True,
            converted_data=df,
            original_data=source,
            conversion_time_ms=_elapsed_ms(start_time),
            metadata={
                "dataframe_shape": df.shape,
                "row_count": len(df),
                "columns": list(df.columns),
            }
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a transaction DataFrame back to Transaction records.

        Rows missing a required transaction field are skipped with a warning.

        Args:
            target_data: DataFrame shaped like the output of :meth:`to_target`

        Returns:
            ConversionResult containing a list of Transaction objects
        """
        start_time = time.perf_counter()
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame",
                target_data,
                _elapsed_ms(start_time)
            )

        transactions: List[Transaction] = []
        warnings: List[str] = []
        for index, row in target_data.iterrows():
            values = {
                column: (None if pd.isna(row.get(column)) else row.get(column))
                for column in TRANSACTION_COLUMNS
            }
            if any(
                values[column] is None
                for column in ("type", "date", "amount", "identifier", "description")
            ):
                warnings.append(f"Row {index} is missing required transaction fields")
                continue
            transactions.append(
                Transaction(
                    type=str(values["type"]),
                    date=pd.Timestamp(values["date"]).to_pydatetime(),
                    amount=Decimal(str(values["amount"])),
                    identifier=str(values["identifier"]),
                    description=str(values["description"]),
                    payee=values["payee"],
                    memo=values["memo"],
                    category=int(values["category"]) if values["category"] is not None else None,
                    check=int(values["check"]) if values["check"] is not None else None,
                )
            )

        return ConversionResult(
            success=True,
            converted_data=transactions,
            original_data=target_data,
            conversion_time_ms=_elapsed_ms(start_time),
            warnings=warnings,
            metadata={"row_count": len(target_data)}
        )

    def _extract_rows(self, information: FinancialInformation) -> List[Dict[str, Any]]:
        """Flatten accounts and transactions into DataFrame rows."""
        rows = []
        for account, transaction in information.iter_transactions():
            rows.append({
                "account_type": "credit" if isinstance(account, CreditAccount) else "bank",
                "account": account.account,
                "currency": account.currency,
                "type": transaction.type,
                "date": transaction.date,
                "amount": transaction.amount,
                "identifier": transaction.identifier,
                "description": transaction.description,
                "payee": transaction.payee,
                "memo": transaction.memo,
                "category": transaction.category,
                "check": transaction.check,
            })
        return rows


register_adapter(LxmlAdapter)
register_adapter(PandasAdapter)
