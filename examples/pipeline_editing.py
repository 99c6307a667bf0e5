"""
Example: editing a pipeline configuration with undo, rollback and replay.

Run with ``python examples/pipeline_editing.py``. Set the log level to
DEBUG to see every recorded, undone and replayed change.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from replayproxy import create

logger = logging.getLogger(__name__)


@dataclass
class StepConfig:
    name: str
    enabled: bool = True
    params: dict = field(default_factory=dict)


@dataclass
class PipelineConfig:
    num_workers: int = 4
    output_dir: str = "/tmp"
    steps: List[StepConfig] = field(default_factory=list)


def build_default() -> PipelineConfig:
    return PipelineConfig(steps=[StepConfig("load"), StepConfig("normalize")])


async def main() -> None:
    config = build_default()
    pipeline = create(config)

    pipeline.num_workers = 8
    saved = pipeline.breakpoint()

    pipeline.steps.append(StepConfig("segment", params={"threshold": 0.5}))
    pipeline.steps[2].params["threshold"] = 0.7
    pipeline.steps[1].enabled = False
    logger.info(f"Edited: {config}")

    pipeline.undo()
    logger.info(f"After undo: {config}")

    # Preview the edits on a fresh default, one step every 200 ms
    preview = build_default()
    await pipeline.replay(preview, 200)
    logger.info(f"Replayed preview: {preview}")

    pipeline.rollback(saved)
    logger.info(f"Rolled back to saved point: {config}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
