"""Pydantic models for payment verification and lesson entitlements."""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

REFERENCE_PATTERN = r"^[A-Za-z0-9-]+$"
LESSON_ID_PATTERN = r"^[A-Za-z0-9-]+$"
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")

DEFAULT_LESSON_LEVELS = ("beginner", "intermediate", "advanced")


def level_of(lesson_id: str) -> str:
    """Level prefix of a lesson id, e.g. 'intermediate-7' -> 'intermediate'."""
    return lesson_id.split("-", 1)[0].lower()


class CamelModel(BaseModel):
    """Base for models exchanged with the web client in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentVerificationRequest(BaseModel):
    """One verification attempt as claimed by the client."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    reference: str = Field(..., min_length=1, max_length=200, pattern=REFERENCE_PATTERN)
    lesson_id: str = Field(..., alias="lessonId", min_length=1, max_length=100, pattern=LESSON_ID_PATTERN)
    email: str = Field(..., min_length=1, max_length=254)
    amount_minor_units: StrictInt = Field(..., alias="amount", gt=0)

    @field_validator("lesson_id")
    @classmethod
    def check_level_prefix(cls, v: str, info: ValidationInfo) -> str:
        levels = (info.context or {}).get("levels") or DEFAULT_LESSON_LEVELS
        level, sep, rest = v.partition("-")
        if not sep or not rest.isdigit() or level.lower() not in levels:
            raise ValueError(f"must look like '<level>-<number>' with level one of {', '.join(levels)}")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_REGEX.match(v):
            raise ValueError("must be a valid email address")
        return v


class GatewayVerificationResult(BaseModel):
    """Normalized answer of the payment provider for one reference."""
    status: str
    amount_minor_units: int
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata_lesson_id: Optional[str] = None
    transaction_timestamp: Optional[datetime] = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict)


class PurchaseRecord(CamelModel):
    """One successfully reconciled payment, as stored in the ledger."""
    reference: str
    user_email: str
    user_id: Optional[str] = None
    lesson_id: str
    amount_minor_units: int
    currency: str
    payment_status: str
    transaction_timestamp: Optional[datetime] = None
    recorded_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def level(self) -> str:
        return level_of(self.lesson_id)


class ReconciliationOutcome(BaseModel):
    """Accepted verification: the ledger record and whether it already existed."""
    purchase: PurchaseRecord
    already_recorded: bool = False


class Identity(BaseModel):
    """Caller identity as supplied by the session system."""
    email: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def normalized_email(self) -> Optional[str]:
        return self.email.strip().lower() if self.email else None


class VerifyPaymentResponse(CamelModel):
    """Response model for payment verification."""
    success: bool
    message: str
    lesson_id: str
    email: str
    reference: str
    purchase: Optional[PurchaseRecord] = None


class PurchasesQuery(CamelModel):
    user_email: Optional[str] = None


class PurchasedLesson(BaseModel):
    lesson_id: str


class PurchasesResponse(BaseModel):
    data: List[PurchasedLesson]


class AccessQuery(CamelModel):
    """Entitlement question for one level or one lesson."""
    user_email: Optional[str] = None
    level: Optional[str] = None
    lesson_id: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one_target(self):
        if bool(self.level) == bool(self.lesson_id):
            raise ValueError("exactly one of 'level' or 'lessonId' must be given")
        return self


class AccessResponse(CamelModel):
    has_access: bool
    is_admin: bool
    purchased_levels: List[str]


class LevelPrice(CamelModel):
    level: str
    amount_minor_units: int
    currency: str
    free: bool


class PricingResponse(BaseModel):
    data: List[LevelPrice]
