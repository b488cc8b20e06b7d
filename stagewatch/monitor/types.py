"""Domain types for the notification subsystem."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(StrEnum):
    """Why a delivery attempt failed."""

    DELIVERY_TRANSPORT_ERROR = "DeliveryTransportError"
    # Only produced when webhook.strict_status is enabled.
    DELIVERY_HTTP_STATUS_ERROR = "DeliveryHttpStatusError"


class NotificationMessage(BaseModel):
    """Rendered chat message ready for delivery."""

    text: str
    fields: dict[str, str] = Field(default_factory=dict)


class DeliveryResult(BaseModel):
    """Outcome of exactly one delivery attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    succeeded: bool
    response_body: str | None = None
    error: ErrorKind | None = None
    error_detail: str | None = None
    status: int | None = None
    elapsed_secs: float = 0.0
    exception: BaseException | None = Field(default=None, exclude=True, repr=False)
