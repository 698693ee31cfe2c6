import io
import unittest

from fakes import FakeProbe, FakeRunner

from kiosk_provisioner.context import ExecutionContext
from kiosk_provisioner.progress import ProgressTracker, render_progress


class TestRenderProgress(unittest.TestCase):
    def test_half(self) -> None:
        self.assertEqual(render_progress(5, 10, "x"), "[" + "#" * 25 + " " * 25 + "]  50% x")

    def test_ends(self) -> None:
        self.assertEqual(render_progress(0, 4, "start"), "[" + " " * 50 + "]   0% start")
        self.assertEqual(render_progress(4, 4, "done"), "[" + "#" * 50 + "] 100% done")

    def test_width(self) -> None:
        self.assertEqual(render_progress(1, 3, "a", width=10), "[###       ]  33% a")

    def test_zero_total(self) -> None:
        with self.assertRaises(ValueError):
            render_progress(0, 0, "x")


class TestProgressTracker(unittest.TestCase):
    def make(self):
        out = io.StringIO()
        ctx = ExecutionContext(dry_run=True, runner=FakeRunner(), probe=FakeProbe(), progress_stream=out)
        return ctx, out, ProgressTracker(ctx)

    def test_monotonic_and_redrawn_in_place(self) -> None:
        ctx, out, tracker = self.make()
        tracker.init(3)
        lines = [tracker.advance(label) for label in ("one", "two", "three")]

        percents = [int(line.split("]")[1].split("%")[0]) for line in lines]
        self.assertEqual(percents, [33, 66, 100])
        self.assertEqual(ctx.step_index, 3)

        text = out.getvalue()
        self.assertEqual(text.count("\r"), 3)
        self.assertTrue(text.endswith("\n"))
        self.assertEqual(text.count("\n"), 1)

    def test_shorter_label_covers_previous(self) -> None:
        _, out, tracker = self.make()
        tracker.init(2)
        first = tracker.advance("a long label")
        tracker.advance("x")
        second_write = out.getvalue().split("\r")[2]
        self.assertGreaterEqual(len(second_write.rstrip("\n")), len(first))

    def test_init_requires_a_step(self) -> None:
        _, _, tracker = self.make()
        with self.assertRaises(ValueError):
            tracker.init(0)

    def test_cannot_advance_past_total(self) -> None:
        _, _, tracker = self.make()
        tracker.init(1)
        tracker.advance("only")
        with self.assertRaises(RuntimeError):
            tracker.advance("extra")
