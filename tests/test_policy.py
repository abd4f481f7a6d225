"""Tests for device_diagnostics.execution.policy: FailurePolicyResolver."""

from __future__ import annotations

import pytest

from device_diagnostics.domain.models import FailureAction, ValidationRule
from device_diagnostics.execution.policy import FailurePolicyResolver
from device_diagnostics.execution.schemas.verdicts import ControlKind, Verdict
from device_diagnostics.state.models import DiagnosticSession

from tests.conftest import DEVICE_ID, PROBLEM_ID, make_step


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _session(error_steps=None):
    return DiagnosticSession(
        session_id="sess-1",
        device_id=DEVICE_ID,
        problem_id=PROBLEM_ID,
        current_step_id="s1",
        total_steps=3,
        error_steps=list(error_steps or []),
    )


def _failed(reason="nope", rule=None):
    return Verdict(passed=False, reason=reason, failed_rule=rule)


# ---------------------------------------------------------------------------
# Default policy: capped retry
# ---------------------------------------------------------------------------

class TestDefaultPolicy:
    def test_retry_when_nothing_authored(self):
        control = FailurePolicyResolver().resolve(make_step("s1", 1), _failed(), _session())
        assert control.kind == ControlKind.RETRY
        assert control.error is None

    def test_retry_until_budget_spent(self):
        resolver = FailurePolicyResolver(max_attempts=3)
        step = make_step("s1", 1)
        assert resolver.resolve(step, _failed(), _session(["s1", "s1"])).kind == ControlKind.RETRY

    def test_abort_after_max_attempts(self):
        resolver = FailurePolicyResolver(max_attempts=3)
        control = resolver.resolve(make_step("s1", 1), _failed(), _session(["s1"] * 3))
        assert control.kind == ControlKind.ABORT
        assert control.error == "MaxRetriesExceeded"

    def test_only_failures_on_this_step_count(self):
        resolver = FailurePolicyResolver(max_attempts=1)
        control = resolver.resolve(make_step("s1", 1), _failed(), _session(["s2", "s2"]))
        assert control.kind == ControlKind.RETRY

    def test_budget_is_configurable(self):
        resolver = FailurePolicyResolver(max_attempts=1)
        control = resolver.resolve(make_step("s1", 1), _failed(), _session(["s1"]))
        assert control.kind == ControlKind.ABORT


# ---------------------------------------------------------------------------
# Authored failure actions
# ---------------------------------------------------------------------------

class TestAuthoredActions:
    def test_first_match_wins(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="never", action="abort"),
            FailureAction(condition="always", action="skip", message="moving on"),
            FailureAction(condition="always", action="restart"),
        ])
        control = FailurePolicyResolver().resolve(step, _failed(), _session())
        assert control.kind == ControlKind.SKIP
        assert control.message == "moving on"

    def test_no_match_falls_back_to_retry(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="attempts >= 2", action="skip"),
        ])
        resolver = FailurePolicyResolver()
        assert resolver.resolve(step, _failed(), _session()).kind == ControlKind.RETRY
        assert resolver.resolve(step, _failed(), _session(["s1"])).kind == ControlKind.SKIP

    def test_condition_on_reason(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="reason == timeout", action="abort"),
        ])
        resolver = FailurePolicyResolver()
        assert resolver.resolve(step, _failed("timeout"), _session()).kind == ControlKind.ABORT
        assert resolver.resolve(step, _failed("other"), _session()).kind == ControlKind.RETRY

    def test_condition_on_failed_rule_type(self):
        rule = ValidationRule(type="pattern", value="x")
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="rule == pattern", action="restart"),
        ])
        control = FailurePolicyResolver().resolve(step, _failed(rule=rule), _session())
        assert control.kind == ControlKind.RESTART

    def test_condition_on_submitted_action(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="action == cancel", action="abort"),
        ])
        control = FailurePolicyResolver().resolve(step, _failed(), _session(), "cancel")
        assert control.kind == ControlKind.ABORT
        assert control.error is None

    def test_branch_carries_target(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="always", action="branch", target="s3"),
        ])
        control = FailurePolicyResolver().resolve(step, _failed(), _session())
        assert control.kind == ControlKind.BRANCH
        assert control.target_step_id == "s3"

    def test_authored_retry_is_capped_too(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="always", action="retry"),
        ])
        control = FailurePolicyResolver(max_attempts=3).resolve(
            step, _failed(), _session(["s1"] * 3)
        )
        assert control.kind == ControlKind.ABORT

    def test_skip_is_not_capped(self):
        step = make_step("s1", 1, failure_actions=[
            FailureAction(condition="always", action="skip"),
        ])
        control = FailurePolicyResolver(max_attempts=1).resolve(
            step, _failed(), _session(["s1"] * 5)
        )
        assert control.kind == ControlKind.SKIP


# ---------------------------------------------------------------------------
# FailureAction authoring invariants
# ---------------------------------------------------------------------------

class TestFailureActionModel:
    def test_branch_requires_target(self):
        with pytest.raises(ValueError):
            FailureAction(condition="always", action="branch")

    def test_target_dropped_for_non_branch(self):
        action = FailureAction(condition="always", action="retry", target="s3")
        assert action.target is None
