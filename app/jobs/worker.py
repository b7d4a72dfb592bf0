"""
Generic job runner.

Reads the desired job name from CLI args or the WORKER_JOB environment
variable and runs it to completion.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from app.config import settings
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.jobs.seed_job import run_seed_job

logger = get_logger(__name__)

JobCoroutine = Callable[[], Awaitable[Any]]

JOB_REGISTRY: dict[str, JobCoroutine] = {
    "seed": run_seed_job,
}


def _resolve_job_name() -> str:
    """Pick the target job from CLI args or WORKER_JOB env variable."""
    if len(sys.argv) > 1:
        return sys.argv[1].strip().lower()
    return os.getenv("WORKER_JOB", "seed").strip().lower()


async def run_worker(job_name: str | None = None) -> Any:
    """Run the requested job."""
    name = (job_name or _resolve_job_name()).strip().lower()
    if name not in JOB_REGISTRY:
        raise ValueError(
            f"Unknown worker job '{name}'. "
            f"Available jobs: {', '.join(sorted(JOB_REGISTRY.keys()))}"
        )

    logger.info("Starting job", job=name)
    return await JOB_REGISTRY[name]()


def main() -> None:
    """CLI entrypoint."""
    setup_logging(log_level=settings.LOG_LEVEL)
    asyncio.run(run_worker(_resolve_job_name()))


if __name__ == "__main__":
    main()
