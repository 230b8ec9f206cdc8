"""Pydantic models for sync results."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ReconcileState(str, Enum):
    """Stage reached by one binding run."""

    NOT_STARTED = "NotStarted"
    LOADING = "Loading"
    FILTERING = "Filtering"
    DIFFING = "Diffing"
    APPLYING = "Applying"
    COMPLETED = "Completed"
    FAILED = "Failed"


class BindingSyncOutcome(BaseModel):
    """Result of reconciling a single calendar binding."""

    success: bool = Field(..., description="Whether the binding run completed")
    binding_id: str = Field(..., description="Calendar binding ID")
    binding_name: Optional[str] = Field(default=None, description="Binding display name")
    state: ReconcileState = Field(
        default=ReconcileState.NOT_STARTED, description="Final state of the run"
    )
    skipped: bool = Field(default=False, description="Binding was disabled and not synced")
    events_created: int = Field(default=0, description="Copies created")
    events_updated: int = Field(default=0, description="Copies updated")
    events_deleted: int = Field(default=0, description="Orphaned or duplicate copies deleted")
    events_unchanged: int = Field(default=0, description="Copies already up to date")
    events_failed: int = Field(default=0, description="Per-event operations that failed")
    events_excluded: int = Field(default=0, description="Source events filtered out")
    events_eligible: int = Field(default=0, description="Source events eligible for sync")
    error_message: Optional[str] = Field(default=None, description="Error message if failed")
    started_at: Optional[datetime] = Field(default=None, description="When the run started")
    completed_at: Optional[datetime] = Field(default=None, description="When the run finished")

    @property
    def events_synced(self) -> int:
        """Copies written to the target (creates + updates)."""
        return self.events_created + self.events_updated

    @property
    def total_changes(self) -> int:
        """Total number of changes made."""
        return self.events_created + self.events_updated + self.events_deleted


class CalendarsSyncResult(BaseModel):
    """Summary of one run across all enabled bindings."""

    total_calendars_processed: int = Field(default=0, description="Bindings processed")
    successful_syncs: int = Field(default=0, description="Bindings that completed")
    failed_syncs: int = Field(default=0, description="Bindings that failed")
    total_events_copied: int = Field(default=0, description="Creates + updates across bindings")
    errors: List[str] = Field(default_factory=list, description="One entry per failed binding")
    outcomes: List[BindingSyncOutcome] = Field(
        default_factory=list, description="Per-binding outcomes in processing order"
    )
    cancelled: bool = Field(default=False, description="Run was cancelled before finishing")

    @property
    def is_success(self) -> bool:
        """Whether every processed binding succeeded."""
        return self.failed_syncs == 0

    def add_outcome(self, outcome: BindingSyncOutcome) -> None:
        """Fold one binding outcome into the summary counters."""
        self.outcomes.append(outcome)
        self.total_calendars_processed += 1
        if outcome.success:
            self.successful_syncs += 1
            self.total_events_copied += outcome.events_synced
        else:
            self.failed_syncs += 1
            name = outcome.binding_name or outcome.binding_id
            self.errors.append(f"Binding {name}: {outcome.error_message or 'Unknown error'}")
