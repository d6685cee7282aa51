"""Pydantic schemas for extracted pay stub data.

All schemas use extra='forbid' so a misspelled field is an error rather than
silently ignored, and frozen=True because parse output is never mutated.
Money is Decimal throughout.
"""

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


ZERO = Decimal("0.00")

ContributionType = Literal[
    "Roth 401k",
    "401k Match",
    "After-tax 401k",
    "HSA Employee",
    "HSA Employer",
    "Crypto",
]

# Contribution types deducted from the paycheck (employee side)
EMPLOYEE_DEDUCTED_TYPES = ("Roth 401k", "After-tax 401k", "HSA Employee")

PayDateSource = Literal["check_date", "period_end", "processing_date"]
TaxStrategyName = Literal["granular", "consolidated"]


class TaxAmount(BaseModel):
    """Current-period and year-to-date value of one line item."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    cur: Decimal = Field(default=ZERO, ge=0, description="Current pay period amount")
    ytd: Decimal = Field(default=ZERO, ge=0, description="Year-to-date amount")


class Reconciliation(BaseModel):
    """Arithmetic cross-check of one pay stub.

    residual = gross - taxes - employee-side investments - ESPP - net
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    invested_employee_side: Decimal = Field(..., description="Roth + after-tax 401k + HSA employee")
    espp: Decimal = Field(..., ge=0, description="Absolute ESPP withholding")
    residual: Decimal = Field(..., description="Unexplained difference; ~0 when extraction is complete")
    tolerance: Decimal = Field(..., ge=0)
    balanced: bool = Field(..., description="True when |residual| < tolerance")


class PaystubRecord(BaseModel):
    """Structured record extracted from one pay stub document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pay_date: date = Field(..., description="Canonical key for correlating records and contributions")
    pay_date_source: PayDateSource = Field(default="check_date")
    period_begin: Optional[date] = None
    period_end: Optional[date] = None
    check_number: Optional[str] = None

    gross: TaxAmount = Field(default_factory=TaxAmount)
    net: TaxAmount = Field(default_factory=TaxAmount)

    tax_federal: Optional[TaxAmount] = None
    tax_state: Optional[TaxAmount] = None
    tax_city: Optional[TaxAmount] = None
    tax_social_security: Optional[TaxAmount] = None
    tax_medicare: Optional[TaxAmount] = None
    tax_disability: Optional[TaxAmount] = None
    tax_fli: Optional[TaxAmount] = Field(default=None, description="Family leave insurance")

    taxes_cur: Decimal = Field(default=ZERO, ge=0)
    taxes_ytd: Decimal = Field(default=ZERO, ge=0)
    tax_strategy: TaxStrategyName = Field(
        default="granular",
        description="Whether totals came from per-category lines or the consolidated line",
    )

    after_tax_401k_cur: Optional[Decimal] = None
    espp_cur: Optional[Decimal] = None

    raw_text: str = Field(default="", description="Normalized input, kept for audit and re-parse")
    file_id: Optional[str] = None

    reconciliation: Optional[Reconciliation] = None


class Contribution(BaseModel):
    """One investment contribution detected on a pay stub."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pay_date: date
    type: ContributionType
    employee: Decimal = Field(default=ZERO, ge=0)
    employer: Decimal = Field(default=ZERO, ge=0)
    file_id: Optional[str] = None

    @model_validator(mode="after")
    def check_one_side(self) -> "Contribution":
        """Extracted contributions credit exactly one side."""
        if self.type != "Crypto" and self.employee > 0 and self.employer > 0:
            raise ValueError(
                f"{self.type}: employee ({self.employee}) and employer ({self.employer}) "
                "cannot both be set"
            )
        return self

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


class ParseResult(BaseModel):
    """Everything extracted from one document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    record: PaystubRecord
    contributions: List[Contribution] = Field(default_factory=list)
    reconciliation: Reconciliation
    warnings: List[str] = Field(default_factory=list)
