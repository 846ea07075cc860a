"""Order assembly pipeline.

A run moves through a fixed sequence of stages::

    RECEIVED -> AUTHENTICATED -> VALIDATED -> ENRICHED -> ASSEMBLED -> PUBLISHED -> RESPONDED

Each transition either succeeds or jumps straight to RESPONDED with a
``PipelineFailure`` naming the stage that could not be reached. Stages return
``Result`` values; the only exceptions handled here are unanticipated ones,
which become an internal error.
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Union

from .enrichment import CatalogEnrichmentClient
from .errors import InternalError, StageError
from .logger import logger
from .publisher import KafkaQueueTransport, QueuePublisher
from .registry import ApiKeyRegistry
from .schemas import (
    AssembledOrder,
    EnrichedLineItem,
    OrderRequest,
    PipelineFailure,
    PipelineResult,
    PipelineSuccess,
    new_assembly_id,
    utc_timestamp,
)
from .settings import Settings
from .validator import PayloadValidator


class PipelineStage(str, Enum):
    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    VALIDATED = "validated"
    ENRICHED = "enriched"
    ASSEMBLED = "assembled"
    PUBLISHED = "published"
    RESPONDED = "responded"


class AssemblyPipeline:
    """Runs one order submission through authentication, validation,
    enrichment, assembly and publication.

    The pipeline keeps no state between runs, so one instance serves any
    number of concurrent requests.
    """

    def __init__(
        self,
        registry: ApiKeyRegistry,
        validator: PayloadValidator,
        enricher: CatalogEnrichmentClient,
        publisher: QueuePublisher,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Callable[[], str] = new_assembly_id,
    ):
        self.registry = registry
        self.validator = validator
        self.enricher = enricher
        self.publisher = publisher
        self._clock = clock
        self._id_factory = id_factory

    def assemble(self, order: OrderRequest, items: list[EnrichedLineItem]) -> AssembledOrder:
        """Stamp an enriched order with the assembly time and a fresh assembly id."""
        return AssembledOrder(
            order_id=order.order_id,
            customer_id=order.customer_id,
            items=tuple(items),
            order_ts=order.order_ts,
            assembled_ts=utc_timestamp(self._clock() if self._clock else None),
            assembly_id=self._id_factory(),
        )

    async def run(self, api_key: Optional[str], body: Union[bytes, str, dict]) -> PipelineResult:
        """Process one submission.

        Args:
            api_key: Value of the caller's ``x-api-key`` header, if any
            body: Raw request body, or an already decoded document

        Returns:
            PipelineSuccess or PipelineFailure; never raises for ordinary failures.
        """
        target = PipelineStage.AUTHENTICATED
        try:
            authenticated = self.registry.authenticate(api_key)
            if authenticated.is_err:
                return self._fail(target, authenticated.error)
            credential = authenticated.value

            target = PipelineStage.VALIDATED
            validated = self.validator.validate(body)
            if validated.is_err:
                return self._fail(target, validated.error)
            order = validated.value
            run_logger = logger.bind(order_id=order.order_id, client=credential.name)
            run_logger.info(f"Received order {order.order_id} with {len(order.items)} item(s)")

            target = PipelineStage.ENRICHED
            enriched = await self.enricher.enrich(order.items)
            if enriched.is_err:
                return self._fail(target, enriched.error)

            target = PipelineStage.ASSEMBLED
            assembled = self.assemble(order, enriched.value)
            run_logger.debug(f"Assembled order {order.order_id} as {assembled.assembly_id}")

            target = PipelineStage.PUBLISHED
            published = await asyncio.to_thread(self.publisher.publish, assembled)
            if published.is_err:
                return self._fail(target, published.error)

            run_logger.info(f"Order {order.order_id} published as {assembled.assembly_id}")
            return PipelineSuccess(
                order_id=order.order_id,
                assembly_id=assembled.assembly_id,
                publish_receipt=published.value,
            )
        except Exception as e:
            logger.exception(f"Unexpected error before reaching stage {target.value}: {e}")
            return self._fail(target, InternalError(cause=str(e)))

    @staticmethod
    def _fail(stage: PipelineStage, error: StageError) -> PipelineFailure:
        failure = PipelineFailure.from_error(stage.value, error)
        logger.warning(f"Pipeline failed at {stage.value} with {failure.http_status}: {failure.message}")
        return failure

    async def aclose(self) -> None:
        """Release the catalog client and flush the queue producer."""
        await self.enricher.aclose()
        await asyncio.to_thread(self.publisher.close)


def build_pipeline(settings: Settings) -> AssemblyPipeline:
    """Wire a pipeline from settings."""
    logger.info(f"Card Catalog Service URL: {settings.catalog_base_url}")
    logger.info(f"Kafka bootstrap servers: {settings.kafka_bootstrap_servers} | topic: {settings.queue_topic}")
    return AssemblyPipeline(
        registry=ApiKeyRegistry.from_settings(settings.api_keys_file),
        validator=PayloadValidator(),
        enricher=CatalogEnrichmentClient(
            settings.catalog_base_url,
            timeout=settings.catalog_timeout,
            max_concurrency=settings.catalog_max_concurrency,
        ),
        publisher=QueuePublisher(
            KafkaQueueTransport(
                settings.kafka_bootstrap_servers,
                topic=settings.queue_topic,
                timeout=settings.publish_timeout,
                client_id=settings.service_name,
            )
        ),
    )
