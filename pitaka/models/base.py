from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

from pitaka.db.store import new_id

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_money(value: Any) -> Decimal:
    """Quantize to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# Decimal in Python and in the store, a JSON number on the wire
Money = Annotated[
    Decimal,
    AfterValidator(to_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class DocumentModel(BaseModel):
    """A document stored under the owner's namespace."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        from_attributes=True
    )

    def to_document(self) -> dict:
        """Fields as written to the store (the id lives in the path)."""
        return self.model_dump(mode="python", exclude={"id"})
