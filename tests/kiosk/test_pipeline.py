import io
import unittest

from fakes import FakeProbe, FakeRunner

from kiosk_provisioner.config_store import ConfigSnapshot, default_values
from kiosk_provisioner.context import ExecutionContext
from kiosk_provisioner.errors import CommandError, StepError
from kiosk_provisioner.pipeline import Policy, run_pipeline
from kiosk_provisioner.progress import ProgressTracker


class RecordingStep:
    def __init__(self, step_id, log, policy=Policy.FATAL, error=None):
        self.step_id = step_id
        self.label = f"Step {step_id}"
        self.policy = policy
        self.log = log
        self.error = error

    def run(self, ctx, config):
        self.log.append(self.step_id)
        if self.error is not None:
            raise self.error


class TestRunPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = ExecutionContext(
            dry_run=True, runner=FakeRunner(), probe=FakeProbe(), progress_stream=io.StringIO()
        )
        self.config = ConfigSnapshot(values=default_values())
        self.log = []

    def run_steps(self, steps):
        return run_pipeline(ctx=self.ctx, config=self.config, steps=steps, progress=ProgressTracker(self.ctx))

    def test_runs_in_order(self) -> None:
        steps = [RecordingStep(s, self.log) for s in ("a", "b", "c")]
        result = self.run_steps(steps)
        self.assertEqual(self.log, ["a", "b", "c"])
        self.assertEqual(result.ran_steps, ["a", "b", "c"])
        self.assertEqual(result.degraded, [])
        self.assertEqual(self.ctx.step_index, 3)

    def test_best_effort_failure_continues(self) -> None:
        steps = [
            RecordingStep("a", self.log),
            RecordingStep("b", self.log, Policy.BEST_EFFORT, CommandError(["a2enmod"], 1, "nope")),
            RecordingStep("c", self.log),
        ]
        with self.assertLogs("kiosk_provisioner", level="WARNING"):
            result = self.run_steps(steps)
        self.assertEqual(self.log, ["a", "b", "c"])
        self.assertEqual(result.degraded, ["b"])

    def test_fatal_failure_stops_the_run(self) -> None:
        steps = [
            RecordingStep("a", self.log),
            RecordingStep("b", self.log, Policy.FATAL, CommandError(["useradd"], 9, "exists")),
            RecordingStep("c", self.log),
        ]
        with self.assertLogs("kiosk_provisioner", level="ERROR"):
            with self.assertRaises(StepError) as cm:
                self.run_steps(steps)
        self.assertEqual(cm.exception.step_id, "b")
        self.assertIsInstance(cm.exception.__cause__, CommandError)
        self.assertEqual(self.log, ["a", "b"])

    def test_empty_pipeline_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.run_steps([])
