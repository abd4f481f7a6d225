"""Tests for device_diagnostics.domain.models: authored step invariants."""

from __future__ import annotations

import pytest

from device_diagnostics.domain.models import Problem, Step

from tests.conftest import DEVICE_ID, PROBLEM_ID, make_step


# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------

class TestStep:
    def test_action_type_is_required(self):
        with pytest.raises(TypeError):
            Step(id="s1", problem_id=PROBLEM_ID, device_id=DEVICE_ID,
                 step_number=1, instruction="Press power")

    def test_unknown_action_type_rejected(self):
        with pytest.raises(ValueError):
            make_step("s1", 1, action_type="dance")

    @pytest.mark.parametrize("action_type", ["button_press", "input", "custom"])
    def test_known_action_types_accepted(self, action_type):
        assert make_step("s1", 1, action_type=action_type).action_type == action_type

    def test_blank_instruction_rejected(self):
        with pytest.raises(ValueError):
            make_step("s1", 1, instruction="  ")

    def test_step_number_must_be_positive(self):
        with pytest.raises(ValueError):
            make_step("s1", 0)

    def test_negative_estimated_time_rejected(self):
        with pytest.raises(ValueError):
            make_step("s1", 1, estimated_time=-1)


# ---------------------------------------------------------------------------
# Problem
# ---------------------------------------------------------------------------

class TestProblem:
    def test_steps_sorted_by_number(self):
        problem = Problem(id=PROBLEM_ID, device_id=DEVICE_ID, title="t",
                          steps=[make_step("b", 2), make_step("a", 1)])
        assert [s.id for s in problem.steps] == ["a", "b"]

    def test_duplicate_step_numbers_rejected(self):
        with pytest.raises(ValueError):
            Problem(id=PROBLEM_ID, device_id=DEVICE_ID, title="t",
                    steps=[make_step("a", 1), make_step("b", 1)])

    def test_duplicate_step_ids_rejected(self):
        with pytest.raises(ValueError):
            Problem(id=PROBLEM_ID, device_id=DEVICE_ID, title="t",
                    steps=[make_step("a", 1), make_step("a", 2)])
