"""
Run metadata — the per-stage audit record of one generation run.

``RunMetadata`` is the **only** Pydantic model in the system that is NOT
frozen: its ``status``, ``rows_processed``, ``error_message`` and
``finished_at`` fields are updated while a pipeline stage executes.

Records are kept in memory and logged; the only thing persisted between runs
is the sponsor snapshot cache.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"fetch", "merge", "avatars", "render"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed", "skipped"})


class RunMetadata(BaseModel):
    """Pipeline stage execution record.

    Attributes:
        run_slug: UUID4 string shared by every stage of one run.
        pipeline_stage: Which stage produced this record.
        status: Current execution status.
        render_name: Render pass name, for ``render`` stages.
        config_snapshot: ``AppConfig.model_dump()`` at run start time.
        rows_processed: Sponsorships handled by the stage.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the stage began.
        finished_at: UTC datetime when the stage completed or failed.
    """

    # Not frozen: status, rows_processed, etc. are updated during execution
    model_config = ConfigDict(frozen=False)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    render_name: Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v
