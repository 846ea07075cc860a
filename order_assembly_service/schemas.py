"""Data models for orders flowing through the assembly pipeline."""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

from .errors import Details, StageError, http_status_for

Quantity = Union[StrictInt, StrictFloat]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp.

    Raises:
        ValueError: If ``value`` is not a valid point in time.
    """
    return datetime.fromisoformat(value.strip())


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Render an instant as UTC ISO 8601 with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_assembly_id() -> str:
    return str(uuid.uuid4())


class Credential(BaseModel):
    """An API key record.

    Attributes:
        key (str): The secret presented in the ``x-api-key`` header.
        name (str): Display name of the client.
        created_at (datetime): When the key was issued.
        expires_at (datetime | None): Instant after which the key is rejected; never if None.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    name: str
    created_at: datetime
    expires_at: Optional[datetime] = None

    @field_validator("created_at", "expires_at")
    def ensure_aware(cls, v):
        """Treat naive datetimes as UTC so comparisons with the clock are well defined."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


class OrderLinePayload(BaseModel):
    """Inbound line item as sent on the wire, checked strictly."""

    sku: StrictStr = Field(..., min_length=1)
    quantity: Quantity

    @field_validator("quantity")
    def validate_quantity(cls, v):
        if (isinstance(v, float) and not math.isfinite(v)) or not v > 0:
            raise ValueError("quantity must be a finite number greater than 0")
        return v


class OrderPayload(BaseModel):
    """Inbound order document. Extra keys are ignored."""

    order_id: StrictStr = Field(..., min_length=1)
    customer_id: StrictStr = Field(..., min_length=1)
    items: list[OrderLinePayload] = Field(..., min_length=1)
    order_ts: StrictStr = Field(..., min_length=1)

    @field_validator("order_ts")
    def validate_order_ts(cls, v):
        try:
            parse_timestamp(v)
        except ValueError as e:
            raise ValueError(f"unparseable timestamp: {e}") from e
        return v


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: str
    quantity: Quantity


class OrderRequest(BaseModel):
    """A validated order. ``order_ts`` keeps the caller's original text."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    customer_id: str
    items: tuple[LineItem, ...]
    order_ts: str

    @property
    def ordered_at(self) -> datetime:
        return parse_timestamp(self.order_ts)

    @classmethod
    def from_payload(cls, payload: OrderPayload) -> "OrderRequest":
        return cls(
            order_id=payload.order_id,
            customer_id=payload.customer_id,
            items=tuple(LineItem(sku=i.sku, quantity=i.quantity) for i in payload.items),
            order_ts=payload.order_ts,
        )


class EnrichedLineItem(BaseModel):
    """A line item together with the catalog metadata found for its SKU."""

    model_config = ConfigDict(frozen=True)

    sku: str
    quantity: Quantity
    metadata: Any

    @classmethod
    def from_item(cls, item: LineItem, metadata: Any) -> "EnrichedLineItem":
        return cls(sku=item.sku, quantity=item.quantity, metadata=metadata)


class AssembledOrder(BaseModel):
    """The message body handed to the queue.

    Attributes:
        order_id (str): Caller's order identifier.
        customer_id (str): Caller's customer identifier.
        items (tuple[EnrichedLineItem, ...]): Enriched items in request order.
        order_ts (str): Order timestamp as received.
        assembled_ts (str): UTC instant at which the order was assembled.
        assembly_id (str): Fresh UUID, unique per pipeline run.
    """

    model_config = ConfigDict(frozen=True)

    order_id: str
    customer_id: str
    items: tuple[EnrichedLineItem, ...]
    order_ts: str
    assembled_ts: str = Field(default_factory=utc_timestamp)
    assembly_id: str = Field(default_factory=new_assembly_id)

    def message_attributes(self) -> dict[str, str]:
        return {"order_id": self.order_id, "customer_id": self.customer_id}


class PublishReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: str


class PipelineSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    assembly_id: str
    publish_receipt: PublishReceipt

    @property
    def http_status(self) -> int:
        return 200

    def to_response(self) -> dict:
        return {
            "success": True,
            "order_id": self.order_id,
            "assembly_id": self.assembly_id,
            "message": "Order assembled and published successfully",
            "sqs_message_id": self.publish_receipt.message_id,
        }


class PipelineFailure(BaseModel):
    """Terminal failure of one pipeline run.

    Attributes:
        stage (str): The stage whose transition failed.
        http_status (int): Status the failure is rendered with.
        message (str): Short description, rendered as ``error``.
        details (str | list[str]): Cause, or every validation violation.
    """

    model_config = ConfigDict(frozen=True)

    stage: str
    http_status: int
    message: str
    details: Details

    @classmethod
    def from_error(cls, stage: str, error: StageError) -> "PipelineFailure":
        return cls(
            stage=stage,
            http_status=http_status_for(error.kind),
            message=error.message,
            details=error.details,
        )

    def to_response(self) -> dict:
        return {"error": self.message, "details": self.details}


PipelineResult = Union[PipelineSuccess, PipelineFailure]
