from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..domain.models import Problem, Step
from ..infrastructure.database.tables import StepDBModel
from ..infrastructure.database.connection import engine as default_engine
from ..data.sample_problems import SAMPLE_PROBLEMS

_step_adapter = TypeAdapter(Step)


# The Interface
class StepCatalog(ABC):
    """
    Read-only access to authored steps.
    The engine only ever sees this interface, so the storage behind it
    (Memory -> SQL -> API) can change without touching the engine.
    """

    @abstractmethod
    def get_steps(self, device_id: str, problem_id: str) -> List[Step]:
        """
        Returns the active steps of a problem ordered by step_number.
        Returns an empty list for unknown problems.
        """
        pass

    def get_step(self, device_id: str, problem_id: str, step_id: str) -> Optional[Step]:
        return next(
            (s for s in self.get_steps(device_id, problem_id) if s.id == step_id),
            None,
        )

    def get_first_step(self, device_id: str, problem_id: str) -> Optional[Step]:
        steps = self.get_steps(device_id, problem_id)
        return steps[0] if steps else None

    def get_next_step(
        self, device_id: str, problem_id: str, step_number: int
    ) -> Optional[Step]:
        """The step with the next-higher step_number, if any."""
        return next(
            (s for s in self.get_steps(device_id, problem_id) if s.step_number > step_number),
            None,
        )

    def count_steps(self, device_id: str, problem_id: str) -> int:
        return len(self.get_steps(device_id, problem_id))


class StaticStepCatalog(StepCatalog):
    """
    Serves problems held in memory (the bundled samples by default).
    """

    def __init__(self, problems: Optional[Iterable[Problem]] = None):
        if problems is None:
            problems = SAMPLE_PROBLEMS.values()
        # Index for O(1) lookup
        self._index: Dict[Tuple[str, str], List[Step]] = {
            (p.device_id, p.id): list(p.steps) for p in problems
        }

    def get_steps(self, device_id: str, problem_id: str) -> List[Step]:
        return list(self._index.get((device_id, problem_id), []))


class SQLStepCatalog(StepCatalog):
    """
    Reads from the 'diagnostic_steps' table (JSON step definitions).
    Inactive steps are not part of the procedure.
    """

    def __init__(self, engine: Engine = default_engine):
        self.engine = engine

    def get_steps(self, device_id: str, problem_id: str) -> List[Step]:
        with Session(self.engine) as db:
            statement = (
                select(StepDBModel)
                .where(StepDBModel.device_id == device_id)
                .where(StepDBModel.problem_id == problem_id)
                .where(StepDBModel.is_active == True)  # noqa: E712
                .order_by(StepDBModel.step_number)
            )
            rows = db.exec(statement).all()

            # Deserialize JSON -> Domain dataclass
            return [_step_adapter.validate_python(row.step_data) for row in rows]
