"""
Abstract base class for all pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` (and the shared ``run_slug``) at construction.
  2. ``await run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, awaits ``_execute()``,
     and logs the final status.
  4. ``_execute()`` is the stage-specific implementation (overridden by
     subclasses). It returns the stage output, which ``run()`` stores on
     ``self.output``; ``_count()`` turns it into ``rows_processed``.

This design ensures:
  - Every stage is auditable (``self.history`` keeps each run record).
  - Status transitions (started → success/failed) are consistent.
  - Error handling is centralized — stages never swallow exceptions.
  - Config is always available to every stage.

Usage::

    class MyStage(PipelineStage):
        stage_name = "merge"

        async def _execute(self, run: RunMetadata, **kwargs) -> list[Sponsorship]:
            return kwargs["sponsorships"]

    stage = MyStage(config=app_config)
    run = await stage.run(sponsorships=ships)
    merged = stage.output
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import uuid4

from sponsorwall.config import AppConfig
from sponsorwall.models.meta import RunMetadata
from sponsorwall.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for all pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``async _execute(run, **kwargs) -> Any``.

    Attributes:
        stage_name: String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
        run_slug: Identifier shared by every stage of one generation run.
        output: Return value of the last successful ``_execute()``.
        history: Every ``RunMetadata`` this stage produced, oldest first.
    """

    stage_name: str  # Override in subclass

    def __init__(self, config: AppConfig, run_slug: Optional[str] = None) -> None:
        self.config = config
        self.run_slug = run_slug or str(uuid4())
        self.output: Any = None
        self.history: list[RunMetadata] = []

    async def run(self, **kwargs: Any) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``,
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=self.run_slug,
            pipeline_stage=self.stage_name,
            render_name=kwargs.get("render_name"),
            config_snapshot=self.config.model_dump(
                include={"name", "renderer", "width", "formats", "providers", "output_dir"}
            ),
            started_at=utcnow(),
        )
        self.history.append(run)
        logger.debug("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

        try:
            self.output = await self._execute(run=run, **kwargs)
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            raise

        run.status = "success"
        run.rows_processed = self._count(self.output)
        run.finished_at = utcnow()
        logger.debug(
            "Stage [%s] completed | rows=%d | run_slug=%s",
            self.stage_name, run.rows_processed, run.run_slug,
        )
        return run

    @abstractmethod
    async def _execute(self, run: RunMetadata, **kwargs: Any) -> Any:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            The stage output.
        """
        ...

    def _count(self, output: Any) -> int:
        try:
            return len(output)
        except TypeError:
            return 0
