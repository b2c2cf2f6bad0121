"""Pipeline runner: execute tasks in order, stop on the first failure."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .context import BuildContext
from .errors import BuildError
from .tasks import BuildTask

logger = logging.getLogger(__name__)


class BuildRunner:
    """Run a fixed sequence of build tasks against a shared context."""

    def __init__(self, tasks: Sequence[BuildTask]) -> None:
        self.tasks = tuple(tasks)

    def run(self, context: BuildContext) -> None:
        """Execute every task in order.

        The first failure aborts the run. Errors are re-raised as BuildError
        tagged with the failing stage; completed tasks are not rolled back.
        """
        started = time.perf_counter()
        for task in self.tasks:
            logger.info("Running task '%s'", task.name)
            task_started = time.perf_counter()
            try:
                task.run(context)
            except BuildError as exc:
                if exc.stage is None:
                    exc.stage = task.name
                logger.error("Build failed in '%s': %s", task.name, exc.message)
                raise
            except Exception as exc:
                logger.error("Build failed in '%s': %s", task.name, exc)
                raise BuildError(str(exc), stage=task.name) from exc
            logger.debug("Task '%s' finished in %.3fs", task.name, time.perf_counter() - task_started)

        logger.info("Completed %d task(s) in %.3fs", len(self.tasks), time.perf_counter() - started)

    def __repr__(self) -> str:
        return f"BuildRunner(tasks={[t.name for t in self.tasks]})"
