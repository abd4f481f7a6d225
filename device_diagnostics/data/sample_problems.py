from device_diagnostics.domain.models import (
    FailureAction,
    NextStepCondition,
    Problem,
    Step,
    ValidationRule,
)

DEVICE_ID = "openbox_t2"
PROBLEM_ID = "no_signal"

# ==============================================================================
# STEP DEFINITIONS
# ==============================================================================

# --- STEP 1: POWER ---
step_01 = Step(
    id="step_01_power",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=1,
    title="Check the power",
    instruction="Press the POWER button on the remote and watch the front panel LED.",
    action_type="button_press",
    required_action="power",
    success_condition="action == power",
    hint="The LED turns from red to green when the receiver wakes up.",
    estimated_time=15,
)

# --- STEP 2: INPUT SOURCE ---
step_02 = Step(
    id="step_02_source",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=2,
    title="Select the input",
    instruction="Press SOURCE on the TV remote and pick the HDMI port the receiver is plugged into.",
    action_type="selection",
    validation_rules=[
        ValidationRule(type="required", message="Tell us which input you selected."),
        ValidationRule(
            type="pattern",
            value=r"^(?i:hdmi)\s?[1-4]$",
            message="Pick one of HDMI 1 to HDMI 4.",
        ),
    ],
    failure_actions=[
        FailureAction(condition="attempts >= 2", action="skip",
                      message="Let's check the cable instead."),
    ],
    estimated_time=30,
)

# --- STEP 3: CABLE ---
step_03 = Step(
    id="step_03_cable",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=3,
    title="Check the antenna cable",
    instruction="Make sure the antenna cable is firmly connected to the ANT IN port. Is there a picture now?",
    action_type="check",
    next_step_conditions=[
        NextStepCondition(condition="action == yes", next_step_id="step_06_done"),
        NextStepCondition(condition="action == no", next_step_id="step_04_scan"),
    ],
    warning_text="Unplug the receiver before touching the antenna connector.",
    estimated_time=60,
)

# --- STEP 4: CHANNEL SCAN ---
step_04 = Step(
    id="step_04_scan",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=4,
    title="Rescan channels",
    instruction="Open MENU > Installation > Auto Scan and enter the number of channels found.",
    action_type="input",
    validation_rules=[
        ValidationRule(type="required", message="Enter the number of channels found."),
        ValidationRule(type="pattern", value=r"^\d+$", message="Enter a number."),
    ],
    success_condition="value > 0",
    next_step_conditions=[
        NextStepCondition(condition="always", next_step_id="step_06_done"),
    ],
    failure_actions=[
        FailureAction(condition="reason == 'success condition not met'", action="branch",
                      target="step_05_reset", message="No channels found, let's reset."),
    ],
    estimated_time=180,
)

# --- STEP 5: FACTORY RESET ---
step_05 = Step(
    id="step_05_reset",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=5,
    title="Factory reset",
    instruction="Open MENU > System > Factory Reset, enter PIN 0000 and confirm.",
    action_type="confirmation",
    required_action="confirm",
    success_condition="action == confirm",
    failure_actions=[
        FailureAction(condition="action == cancel", action="abort",
                      message="Please contact support."),
    ],
    estimated_time=120,
)

# --- STEP 6: DONE ---
step_06 = Step(
    id="step_06_done",
    problem_id=PROBLEM_ID,
    device_id=DEVICE_ID,
    step_number=6,
    title="Picture restored",
    instruction="Confirm that the picture is back.",
    action_type="confirmation",
    success_text="Great, your receiver is working again!",
    estimated_time=5,
)

# ==============================================================================
# PROBLEM DEFINITION
# ==============================================================================

no_signal = Problem(
    id=PROBLEM_ID,
    device_id=DEVICE_ID,
    title="No signal on screen",
    steps=[step_01, step_02, step_03, step_04, step_05, step_06],
)

SAMPLE_PROBLEMS = {
    no_signal.id: no_signal,
}
