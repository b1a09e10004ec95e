"""Ingestion pipeline state models.

Defines the state machine for one submitted URL.  Like every model in this
package the state is frozen; each transition produces a new
:class:`IngestionState` via ``model_copy(update={...})``.

    FETCHING → EXTRACTING → EMBEDDING → UPSERTING → DONE
         \\__________\\___________\\__________\\______→ FAILED(stage, error)

The orchestrator (``services/ingestion_service.py``) never skips a stage
and never continues after FAILED.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from profmatch.models.instructor import InstructorRecord
from profmatch.utils.errors import ProfMatchError


class IngestionStage(str, Enum):  # noqa: UP042
    """Stages of the ingestion pipeline, in execution order."""

    FETCHING = "FETCHING"
    EXTRACTING = "EXTRACTING"
    EMBEDDING = "EMBEDDING"
    UPSERTING = "UPSERTING"
    DONE = "DONE"
    FAILED = "FAILED"


_NEXT_STAGE: dict[IngestionStage, IngestionStage] = {
    IngestionStage.FETCHING: IngestionStage.EXTRACTING,
    IngestionStage.EXTRACTING: IngestionStage.EMBEDDING,
    IngestionStage.EMBEDDING: IngestionStage.UPSERTING,
    IngestionStage.UPSERTING: IngestionStage.DONE,
}


class StageFailure(BaseModel):
    """Serializable summary of the error that ended an ingestion run."""

    model_config = ConfigDict(frozen=True)

    error_type: str
    message: str
    provider: str | None = None
    retryable: bool = False
    user_correctable: bool = False

    @classmethod
    def from_error(cls, exc: ProfMatchError) -> StageFailure:
        return cls(
            error_type=type(exc).__name__,
            message=exc.message,
            provider=exc.provider_name,
            retryable=exc.retryable,
            user_correctable=exc.user_correctable,
        )


class IngestionState(BaseModel):
    """Snapshot of one URL's progress through the ingestion pipeline."""

    model_config = ConfigDict(frozen=True)

    url: str
    stage: IngestionStage = IngestionStage.FETCHING
    # Stages entered so far, in order; used to prove nothing was skipped.
    visited: list[IngestionStage] = Field(
        default_factory=lambda: [IngestionStage.FETCHING]
    )
    record: InstructorRecord | None = None
    failed_stage: IngestionStage | None = None
    error: StageFailure | None = None
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in (IngestionStage.DONE, IngestionStage.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.stage == IngestionStage.DONE

    def advance(self, **updates: object) -> IngestionState:
        """Move to the next stage, carrying any field *updates* along."""
        if self.is_terminal:
            raise ValueError(f"cannot advance from terminal stage {self.stage.value}")
        nxt = _NEXT_STAGE[self.stage]
        update: dict[str, object] = {"stage": nxt, "visited": [*self.visited, nxt], **updates}
        if nxt == IngestionStage.DONE:
            update["completed_at"] = datetime.now(tz=timezone.utc)  # noqa: UP017
        return self.model_copy(update=update)

    def fail(self, exc: ProfMatchError) -> IngestionState:
        """Terminate in FAILED, remembering which stage broke and why."""
        if self.is_terminal:
            raise ValueError(f"cannot fail from terminal stage {self.stage.value}")
        return self.model_copy(
            update={
                "stage": IngestionStage.FAILED,
                "visited": [*self.visited, IngestionStage.FAILED],
                "failed_stage": self.stage,
                "error": StageFailure.from_error(exc),
                "completed_at": datetime.now(tz=timezone.utc),  # noqa: UP017
            }
        )
