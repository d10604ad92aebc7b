"""
File Lifecycle Sagas

Replacing or removing a file touches three stores without a transaction.
The steps always run in this order:

    DELETE_EMBEDDINGS -> DELETE_FILE -> ADD_EMBEDDINGS -> ADD_FILE

and the first failing step stops the sequence. The vector index and the
id-mapping store never reference content that a surviving file record no
longer describes. If a run stops between DELETE_FILE and ADD_FILE the file
is absent from every store until the request is repeated; a caller can
resume a replace from the failed step with ``start_at``.

Nothing here retries.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import Field

from .file_sync import FileSync
from .vector_sync import VectorSync
from ..vault.models import EmbeddingBatch, FileRecord, VaultFile, VaultModel

logger = logging.getLogger("vault.saga")


# ---------------------------------------------------------------------
# Steps & Outcomes
# ---------------------------------------------------------------------

class SyncStep(str, Enum):
    DELETE_EMBEDDINGS = "delete_embeddings"
    DELETE_FILE = "delete_file"
    ADD_EMBEDDINGS = "add_embeddings"
    ADD_FILE = "add_file"


REPLACE_STEPS: Sequence[SyncStep] = (
    SyncStep.DELETE_EMBEDDINGS,
    SyncStep.DELETE_FILE,
    SyncStep.ADD_EMBEDDINGS,
    SyncStep.ADD_FILE,
)

REMOVE_STEPS: Sequence[SyncStep] = (
    SyncStep.DELETE_EMBEDDINGS,
    SyncStep.DELETE_FILE,
)

STEP_ERRORS = {
    SyncStep.DELETE_EMBEDDINGS: "Failed to delete file embeddings",
    SyncStep.DELETE_FILE: "Failed to delete file",
    SyncStep.ADD_EMBEDDINGS: "Failed to add file embeddings",
    SyncStep.ADD_FILE: "Failed to add file",
}


class StepOutcome(VaultModel):
    step: SyncStep
    ok: bool
    detail: Optional[str] = None


class SagaResult(VaultModel):
    """Outcome of one saga run for one file."""

    path: str
    steps: List[StepOutcome] = Field(default_factory=list)
    failed_step: Optional[SyncStep] = None
    batch: Optional[EmbeddingBatch] = None

    @property
    def ok(self) -> bool:
        return self.failed_step is None

    @property
    def error(self) -> Optional[str]:
        return STEP_ERRORS[self.failed_step] if self.failed_step else None


class BulkRemoveResult(VaultModel):
    removed: List[str] = Field(default_factory=list)
    failure: Optional[SagaResult] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


# ---------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------

class VaultSync:
    """
    Runs file lifecycle sagas for one tenant.
    """

    def __init__(self, vectors: VectorSync, files: FileSync) -> None:
        self.vectors = vectors
        self.files = files

    async def _run_step(
        self,
        step: SyncStep,
        file: VaultFile,
        result: SagaResult,
    ) -> bool:
        record = file.to_record()
        detail: Optional[str] = None

        if step is SyncStep.DELETE_EMBEDDINGS:
            ok = await self.vectors.delete_embeddings(record)
        elif step is SyncStep.DELETE_FILE:
            ok = await self.files.delete_file(record)
        elif step is SyncStep.ADD_EMBEDDINGS:
            batch = await self.vectors.add_embeddings(record, file.content)
            ok = batch is not None
            if batch is not None:
                result.batch = batch
                detail = f"{len(batch.records)} of {len(batch.outcomes)} chunks inserted"
        else:
            ok = await self.files.add_file(record)

        result.steps.append(StepOutcome(step=step, ok=ok, detail=detail))
        if not ok:
            result.failed_step = step
            logger.error(
                "Step %s failed for %s (tenant %s)",
                step.value,
                file.path,
                self.vectors.tenant_key,
            )
        return ok

    async def _run(
        self,
        steps: Sequence[SyncStep],
        file: VaultFile,
    ) -> SagaResult:
        result = SagaResult(path=file.path)
        for step in steps:
            if not await self._run_step(step, file, result):
                break
        return result

    async def replace_file(
        self,
        file: VaultFile,
        start_at: SyncStep = SyncStep.DELETE_EMBEDDINGS,
    ) -> SagaResult:
        """
        Re-index a file and store its record.

        Parameters
        ----------
        file : VaultFile
            File metadata and full content.

        start_at : SyncStep
            First step to run, to resume a run that failed at that step.
        """
        steps = REPLACE_STEPS[REPLACE_STEPS.index(start_at):]
        logger.info(
            "Replacing file %s from step %s (tenant %s)",
            file.path,
            start_at.value,
            self.vectors.tenant_key,
        )
        return await self._run(steps, file)

    async def remove_file(self, file: FileRecord) -> SagaResult:
        """Delete a file's embeddings, then its record."""
        if not isinstance(file, VaultFile):
            file = VaultFile(**file.model_dump())

        logger.info("Removing file %s (tenant %s)", file.path, self.vectors.tenant_key)
        return await self._run(REMOVE_STEPS, file)

    async def remove_all_files(self) -> BulkRemoveResult:
        """
        Remove every file of the tenant, one at a time.

        Stops at the first failing file. Files removed before it stay
        removed.
        """
        result = BulkRemoveResult()

        for record in await self.files.get_files():
            outcome = await self.remove_file(record)
            if not outcome.ok:
                result.failure = outcome
                logger.error(
                    "Bulk removal aborted at %s after %d files (tenant %s)",
                    record.path,
                    len(result.removed),
                    self.vectors.tenant_key,
                )
                return result
            result.removed.append(record.path)

        logger.info(
            "Removed %d files (tenant %s)",
            len(result.removed),
            self.vectors.tenant_key,
        )
        return result
