import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from netcheck.application.services.job_manager import JobManager
from netcheck.domain.entities.workflow_item import WorkflowItem
from netcheck.domain.ports.command_catalog_port import CommandCatalogPort, UnknownCheckError
from netcheck.domain.services.summary_builder import build_summary
from netcheck.domain.value_objects.check_id import check_id_value
from netcheck.domain.value_objects.diagnostics_settings import (
    DEFAULT_CONCURRENCY,
    clamp_concurrency,
)
from netcheck.domain.value_objects.invocation import CommandInput
from netcheck.domain.value_objects.job_status import WorkflowStatus
from netcheck.domain.value_objects.summary import (
    DEFAULT_WARNING_VOCABULARY,
    LayerDefinition,
    OverviewSummary,
    WarningVocabulary,
)
from netcheck.infrastructure.catalog.layers import DEFAULT_LAYERS

ItemCallback = Callable[[int, WorkflowItem], None]


@dataclass
class BatchResult:
    items: list[WorkflowItem]
    summary: OverviewSummary


class RunDiagnosticsBatch:
    """Run an ordered list of checks with a bounded pool of workers.

    Workers pull the next index from one shared cursor, so at most
    ``concurrency`` jobs run at once and checks start in list order.
    """

    def __init__(
        self,
        job_manager: JobManager,
        catalog: CommandCatalogPort,
        layers: Sequence[LayerDefinition] = DEFAULT_LAYERS,
        vocabulary: WarningVocabulary = DEFAULT_WARNING_VOCABULARY,
    ) -> None:
        self.job_manager = job_manager
        self.catalog = catalog
        self.layers = layers
        self.vocabulary = vocabulary

    async def execute(
        self,
        check_ids: Sequence[str],
        *,
        count: int = 4,
        timeout_seconds: int = 10,
        concurrency: int = DEFAULT_CONCURRENCY,
        target: str | None = None,
        on_item: ItemCallback | None = None,
    ) -> BatchResult:
        """Run the checks and summarize them against the layer topology.

        Args:
            check_ids: Checks to run, in start order.
            count: Probe count for checks that support it.
            timeout_seconds: Per-check timeout.
            concurrency: Worker count, clamped to 1..8 and to the number of checks.
            target: Overrides the default target of checks that require one.
            on_item: Called with (index, item) whenever an item changes state.
        """
        items = [self._initial_item(str(check_id_value(check_id))) for check_id in check_ids]
        total = len(items)
        if total == 0:
            return BatchResult(items=[], summary=self._summarize(items))

        workers = min(clamp_concurrency(concurrency), total)
        logger.info("Running {} checks with {} workers", total, workers)

        def update(index: int, item: WorkflowItem) -> None:
            items[index] = item
            if on_item is not None:
                on_item(index, item)

        cursor = iter(range(total))

        async def worker() -> None:
            for index in cursor:
                if items[index].status != WorkflowStatus.PENDING:
                    continue
                await self._run_one(index, items[index], update, count, timeout_seconds, target)

        await asyncio.gather(*(worker() for _ in range(workers)))

        summary = self._summarize(items)
        logger.info(
            "Batch finished: {} completed, {} failed, {} warnings",
            summary.completed,
            summary.failed,
            summary.warnings,
        )
        return BatchResult(items=items, summary=summary)

    def _initial_item(self, check_id: str) -> WorkflowItem:
        try:
            definition = self.catalog.get(check_id)
        except UnknownCheckError as e:
            return WorkflowItem.failed(check_id, check_id, str(e))
        return WorkflowItem.pending(definition.id, definition.title, definition.category)

    async def _run_one(
        self,
        index: int,
        item: WorkflowItem,
        update: ItemCallback,
        count: int,
        timeout_seconds: int,
        target: str | None,
    ) -> None:
        update(
            index,
            item.model_copy(
                update={"status": WorkflowStatus.RUNNING, "started_at": datetime.now(UTC)}
            ),
        )

        try:
            definition = self.catalog.get(item.check_id)
            command_input = CommandInput(
                target=(
                    target
                    if target and definition.requires_target
                    else definition.default_target
                ),
                count=count,
                timeout_seconds=timeout_seconds,
            )
            snapshot = self.job_manager.create_job(definition.id, command_input)
            final = await self.job_manager.wait(snapshot.id)
        except Exception as e:
            logger.warning("Check {} could not run: {}", item.check_id, e)
            update(index, WorkflowItem.failed(item.check_id, item.title, str(e), item.category))
            return

        if final is None:
            message = f"Job for {item.check_id} disappeared before it finished."
            update(index, WorkflowItem.failed(item.check_id, item.title, message, item.category))
            return

        update(index, WorkflowItem.from_job(final, item.category))

    def _summarize(self, items: Sequence[WorkflowItem]) -> OverviewSummary:
        return build_summary(items, self.layers, self.vocabulary)
