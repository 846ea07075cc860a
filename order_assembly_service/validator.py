"""Structural and semantic checks of inbound order documents."""

import json
from typing import Any, Union

from pydantic import ValidationError

from .errors import ValidationFailure
from .logger import logger
from .result import Result
from .schemas import OrderPayload, OrderRequest

ORDER_ID_MESSAGE = "order_id is required and must be a string"
CUSTOMER_ID_MESSAGE = "customer_id is required and must be a string"
ITEMS_MESSAGE = "items is required and must be a non-empty array"
ORDER_TS_REQUIRED_MESSAGE = "order_ts is required and must be a valid ISO 8601 timestamp"
ORDER_TS_INVALID_MESSAGE = "order_ts must be a valid ISO 8601 timestamp"


def _sku_message(index: int) -> str:
    return f"items[{index}].sku is required and must be a string"


def _quantity_message(index: int) -> str:
    return f"items[{index}].quantity must be a number greater than 0"


def _messages_for(error: dict) -> list[str]:
    """Translate one pydantic error into the wire messages it stands for."""
    loc = error["loc"]
    field = loc[0]
    if field == "order_id":
        return [ORDER_ID_MESSAGE]
    if field == "customer_id":
        return [CUSTOMER_ID_MESSAGE]
    if field == "order_ts":
        if error["type"] == "value_error":
            return [ORDER_TS_INVALID_MESSAGE]
        return [ORDER_TS_REQUIRED_MESSAGE]
    if field == "items":
        if len(loc) == 1:
            return [ITEMS_MESSAGE]
        index = loc[1]
        if len(loc) == 2:
            # the item itself is not an object
            return [_sku_message(index), _quantity_message(index)]
        if loc[2] == "sku":
            return [_sku_message(index)]
        return [_quantity_message(index)]
    return [f"{field} is invalid"]


def collect_errors(exc: ValidationError) -> list[str]:
    """Every violation in ``exc`` as wire messages, deduplicated, first-seen order kept."""
    messages: list[str] = []
    for error in exc.errors():
        for message in _messages_for(error):
            if message not in messages:
                messages.append(message)
    return messages


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a valid JSON value")


class PayloadValidator:
    """Turns a raw request body into an ``OrderRequest``.

    Validation is exhaustive: every violation in the document is reported in
    one ``ValidationFailure``. A body that cannot be decoded into a JSON object
    is reported as malformed input instead.
    """

    def validate(self, raw: Union[bytes, str, dict, Any]) -> Result[OrderRequest, ValidationFailure]:
        document = raw
        if isinstance(raw, (bytes, bytearray, str)):
            parsed = self._decode(raw)
            if parsed.is_err:
                return parsed
            document = parsed.value

        if not isinstance(document, dict):
            logger.warning(f"Rejected non-object payload of type {type(document).__name__}")
            return Result.err(ValidationFailure.malformed("Request body must be a JSON object"))

        try:
            payload = OrderPayload.model_validate(document)
        except ValidationError as e:
            errors = collect_errors(e)
            logger.warning(f"Order payload failed validation with {len(errors)} error(s): {errors}")
            return Result.err(ValidationFailure.invalid(errors))

        return Result.ok(OrderRequest.from_payload(payload))

    @staticmethod
    def _decode(raw: Union[bytes, bytearray, str]) -> Result[Any, ValidationFailure]:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning(f"Request body is not UTF-8: {e}")
                return Result.err(ValidationFailure.malformed(f"Request body is not valid UTF-8: {e}"))
        if not raw.strip():
            return Result.ok({})
        try:
            return Result.ok(json.loads(raw, parse_constant=_reject_constant))
        except ValueError as e:
            logger.warning(f"Failed to parse request body: {e}")
            return Result.err(ValidationFailure.malformed(f"Request body is not valid JSON: {e}"))
