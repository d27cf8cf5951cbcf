"""
Core Data Models for Shop Ledger

These models define the canonical schema for the five persisted collections.
They are designed to:
1. Enforce type safety at runtime
2. Accept the loosely typed values older data files contain
3. Serialize back to the camelCase JSON layout the files use

DESIGN DECISION: Attributes are snake_case in Python and camelCase on disk.
Every model uses the same alias generator, so `order.order_total` is stored
as `orderTotal` and either spelling is accepted on input.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def new_identifier() -> str:
    """Generate a record identifier."""
    return uuid4().hex


# =============================================================================
# FIELD TYPES - coercion for legacy values
# =============================================================================

def _coerce_money(value: Any) -> Any:
    # Form inputs were stored as strings, and empty inputs as ""
    if value is None:
        return Decimal("0")
    if isinstance(value, str) and not value.strip():
        return Decimal("0")
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


def money_to_json(value: Decimal) -> Union[int, float]:
    """Render a Decimal as a JSON number, integral values as int."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _coerce_identifier(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


def _coerce_reference(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return _coerce_identifier(value)


def _coerce_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _coerce_date(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        # Full ISO timestamps were sometimes stored where a date belongs
        if "T" in value:
            return value.split("T", 1)[0]
    return value


def _coerce_list(value: Any) -> Any:
    return [] if value is None else value


Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_money),
    Field(ge=0),
    PlainSerializer(money_to_json, return_type=Union[int, float], when_used="json"),
]

SignedAmount = Annotated[
    Decimal,
    PlainSerializer(money_to_json, return_type=Union[int, float], when_used="json"),
]

Identifier = Annotated[str, BeforeValidator(_coerce_identifier), Field(min_length=1)]
Reference = Annotated[Optional[str], BeforeValidator(_coerce_reference)]
Text = Annotated[str, BeforeValidator(_coerce_text)]
OptionalDate = Annotated[Optional[date], BeforeValidator(_coerce_date)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class VendorPaymentStatus(str, Enum):
    """
    Whether the business has paid the vendor for an expense line.

    Vendor-less expense lines are always PAID.
    """
    PAID = "paid"
    PENDING = "pending"


class FundType(str, Enum):
    """Direction of an owner fund movement."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def _coerce_status(value: Any) -> Any:
    if value is None or value == "":
        return VendorPaymentStatus.PAID
    return value


PaymentStatusField = Annotated[VendorPaymentStatus, BeforeValidator(_coerce_status)]


# =============================================================================
# BASE
# =============================================================================

class LedgerRecord(BaseModel):
    """Common configuration for every persisted record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_record(self) -> dict:
        """Convert to the JSON-ready dict written to storage."""
        return self.model_dump(mode="json", by_alias=True)


class TimestampedRecord(LedgerRecord):
    """A top-level record with its own identifier and timestamps."""

    id: Identifier = Field(
        default_factory=new_identifier,
        description="Unique record ID"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the record was created"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="Last update timestamp"
    )


# =============================================================================
# ORDERS
# =============================================================================

class ExpenseLine(LedgerRecord):
    """
    A cost incurred for one order.

    When vendor_id is set the line is vendor-tagged and mirrored by
    exactly one VendorTransaction.
    """

    id: Identifier = Field(
        default_factory=new_identifier,
        description="Unique within the owning order"
    )
    description: Text = ""
    amount: Money = Decimal("0")
    vendor_id: Reference = Field(
        default=None,
        description="Vendor this cost is owed to, if any"
    )
    vendor_name: Text = Field(
        default="",
        description="Vendor name at the time the vendor was assigned"
    )
    vendor_payment_status: PaymentStatusField = VendorPaymentStatus.PAID

    @property
    def has_vendor(self) -> bool:
        return bool(self.vendor_id)

    @property
    def is_paid(self) -> bool:
        """Vendor-less lines count as paid."""
        return not self.has_vendor or self.vendor_payment_status == VendorPaymentStatus.PAID

    @property
    def is_payable(self) -> bool:
        return self.has_vendor and self.vendor_payment_status != VendorPaymentStatus.PAID


class Payment(LedgerRecord):
    """A customer payment received against an order."""

    id: Identifier = Field(default_factory=new_identifier)
    date: OptionalDate = None
    amount: Money = Decimal("0")


class Order(TimestampedRecord):
    """A customer order with its embedded expense lines and payments."""

    customer_name: Text = ""
    customer_phone: Text = ""
    order_description: Text = ""
    order_date: OptionalDate = None

    order_total: Money = Decimal("0")
    received_delivery_charges: Money = Field(
        default=Decimal("0"),
        description="Delivery charges collected from the customer"
    )
    paid_delivery_charges: Money = Field(
        default=Decimal("0"),
        description="Delivery charges paid out by the business"
    )

    is_completed: bool = False

    expenses: Annotated[list[ExpenseLine], BeforeValidator(_coerce_list)] = Field(
        default_factory=list
    )
    payments: Annotated[list[Payment], BeforeValidator(_coerce_list)] = Field(
        default_factory=list
    )

    @model_validator(mode="after")
    def check_line_ids_unique(self) -> "Order":
        """Expense line and payment ids identify lines within the order."""
        for label, lines in (("expense line", self.expenses), ("payment", self.payments)):
            seen = set()
            for line in lines:
                if line.id in seen:
                    raise ValueError(f"Duplicate {label} id in order: {line.id}")
                seen.add(line.id)
        return self

    @property
    def vendor_expenses(self) -> list[ExpenseLine]:
        return [expense for expense in self.expenses if expense.has_vendor]


# =============================================================================
# VENDORS
# =============================================================================

class Vendor(TimestampedRecord):
    """Someone the business buys work or material from."""

    name: Text = Field(
        default="",
        description="Display name"
    )
    contact_number: Text = ""


class VendorTransaction(TimestampedRecord):
    """
    Derived ledger entry mirroring one vendor-tagged expense line.

    CRITICAL: These are regenerated from orders on every order save.
    Ids are not stable across saves; content is.
    """

    order_id: Identifier
    vendor_id: Identifier
    vendor_name: Text = ""
    expense_id: Reference = Field(
        default=None,
        description="Expense line this mirrors (missing on legacy records)"
    )
    expense_description: Text = ""
    amount: Money = Decimal("0")
    status: PaymentStatusField = VendorPaymentStatus.PAID

    def matches_structurally(self, expense: ExpenseLine) -> bool:
        """
        Legacy match on vendor, description and amount.

        KNOWN LIMITATION: two lines with the same vendor, description and
        amount are indistinguishable here.
        """
        return (
            expense.vendor_id == self.vendor_id
            and expense.description == self.expense_description
            and expense.amount == self.amount
        )

    def mirrors(self, expense: ExpenseLine) -> bool:
        """Whether this transaction is the ledger entry for the expense line."""
        if self.expense_id:
            return expense.id == self.expense_id
        return self.matches_structurally(expense)


# =============================================================================
# CASHBOOK
# =============================================================================

class GeneralExpense(TimestampedRecord):
    """A business expense not tied to any order. Always paid."""

    description: Text = ""
    amount: Money = Decimal("0")
    date: OptionalDate = None


class FundTransaction(TimestampedRecord):
    """Money the owner put into or took out of the business."""

    type: FundType
    description: Text = ""
    amount: Money = Decimal("0")
    date: OptionalDate = None
