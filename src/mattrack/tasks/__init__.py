"""
Task runtime utilities for scheduled sync jobs.

The job stages themselves live in mattrack.tasks.jobs, which imports the
sync services; import it directly.
"""

from mattrack.tasks.batching import run_in_batches
from mattrack.tasks.runtime import (
    StageContext,
    StageDefinition,
    StageRegistry,
    StageResult,
    execute_stage,
)

__all__ = [
    "StageContext",
    "StageDefinition",
    "StageRegistry",
    "StageResult",
    "execute_stage",
    "run_in_batches",
]
