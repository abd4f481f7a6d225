"""
Loads the bundled sample problems into the diagnostic_steps table.
Re-running it updates existing rows in place.

Usage:
    python -m device_diagnostics.scripts.db_seed_problems
"""

import logging
from dataclasses import asdict

from sqlmodel import Session, select

from device_diagnostics.data.sample_problems import SAMPLE_PROBLEMS
from device_diagnostics.infrastructure.database.connection import engine, init_db
from device_diagnostics.infrastructure.database.tables import StepDBModel

logger = logging.getLogger(__name__)


def seed_problems(bind=engine) -> int:
    """Upserts every sample step. Returns the number of steps written."""
    init_db(bind)
    written = 0

    with Session(bind) as session:
        logger.info(f"Found {len(SAMPLE_PROBLEMS)} problems to seed.")

        for problem_id, problem in SAMPLE_PROBLEMS.items():
            logger.info(f"Processing problem: {problem_id}")

            for step in problem.steps:
                step_data = asdict(step)

                # Upsert logic: update existing records or insert new ones.
                statement = select(StepDBModel).where(StepDBModel.step_id == step.id)
                existing = session.exec(statement).first()

                if existing:
                    existing.problem_id = step.problem_id
                    existing.device_id = step.device_id
                    existing.step_number = step.step_number
                    existing.step_data = step_data
                    session.add(existing)
                else:
                    session.add(
                        StepDBModel(
                            step_id=step.id,
                            problem_id=step.problem_id,
                            device_id=step.device_id,
                            step_number=step.step_number,
                            step_data=step_data,
                        )
                    )
                written += 1

        session.commit()

    logger.info(f"Seeding complete, {written} steps written.")
    return written


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_problems()
