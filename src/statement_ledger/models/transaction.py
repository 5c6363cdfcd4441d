"""Transaction and extraction result models."""

from dataclasses import dataclass, field
from decimal import Decimal

from statement_ledger.models.category import DEFAULT_CATEGORY, CostType


@dataclass(frozen=True)
class TransactionRecord:
    """One ledger entry extracted from a statement.

    Attributes:
        id: Session-unique identifier assigned at normalization. Used only to
            target edits and deletes.
        date: Date as YYYY-MM-DD, or empty. Not validated.
        description: Free text, may be empty.
        debit: Money out, or None.
        credit: Money in, or None.
        balance: Running balance printed on the statement, or None.
        reference: External reference code, or None.
        category: One of the category vocabulary names.
        cost_type: Fixed or variable classification.
        source_file: Name of the file this record was extracted from.
    """

    id: str
    date: str = ""
    description: str = ""
    debit: Decimal | None = None
    credit: Decimal | None = None
    balance: Decimal | None = None
    reference: str | None = None
    category: str = DEFAULT_CATEGORY
    cost_type: CostType = CostType.VARIABLE
    source_file: str = ""

    @property
    def has_debit(self) -> bool:
        """Whether this record carries a positive debit."""
        return self.debit is not None and self.debit > 0

    def to_dict(self) -> dict[str, object]:
        """Export-facing view using the statement field names."""
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "debit": self.debit,
            "credit": self.credit,
            "balance": self.balance,
            "reference": self.reference,
            "category": self.category,
            "costType": self.cost_type.value,
        }

    def __repr__(self) -> str:
        return (
            f"TransactionRecord(id={self.id!r}, date={self.date!r}, "
            f"description={self.description[:30]!r}, "
            f"debit={self.debit}, credit={self.credit})"
        )


@dataclass
class ExtractionUsage:
    """Token usage of one extraction call."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class ExtractionResult:
    """Output of one successful extraction call.

    Attributes:
        transactions: Normalized records in model output order. Never empty.
        bank_name: Detected institution name, if any.
        period: Detected statement period description, if any.
        source: File name the text came from ("" for raw text).
        usage: Token usage of the call.
    """

    transactions: list[TransactionRecord]
    bank_name: str | None = None
    period: str | None = None
    source: str = ""
    usage: ExtractionUsage = field(default_factory=ExtractionUsage)
