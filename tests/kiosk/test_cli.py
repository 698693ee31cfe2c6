import os
import tempfile
import unittest
from pathlib import Path

from kiosk_provisioner.main import EXIT_FAILED, EXIT_OK, EXIT_USAGE, main


class TestMain(unittest.TestCase):
    def test_dry_run_succeeds_and_creates_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertLogs("kiosk_provisioner", level="INFO") as cm:
                rc = main(["--dry-run", "--root", td, "--config", "/etc/k.conf"])

            self.assertEqual(rc, EXIT_OK)
            self.assertEqual(os.listdir(td), [])
            self.assertTrue(any("Kiosk setup completed successfully" in line for line in cm.output))

    def test_dry_run_reads_existing_config(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            conf = Path(td) / "etc/k.conf"
            conf.parent.mkdir(parents=True)
            conf.write_text('KIOSK_USER="lobby"\n', encoding="utf-8")

            with self.assertLogs("kiosk_provisioner", level="INFO") as cm:
                rc = main(["--dry-run", "--root", td, "--config", "/etc/k.conf"])

            self.assertEqual(rc, EXIT_OK)
            self.assertTrue(any("useradd -m -s /bin/bash lobby" in line for line in cm.output))

    def test_malformed_override_is_a_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as cm:
            main(["--dry-run", "--set", "BAD"])
        self.assertEqual(cm.exception.code, EXIT_USAGE)

    def test_unknown_override_key_is_a_usage_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertLogs("kiosk_provisioner", level="ERROR"):
                rc = main(["--dry-run", "--root", td, "--set", "NOPE=1"])
            self.assertEqual(rc, EXIT_USAGE)

    def test_bad_override_in_a_real_run_changes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertLogs("kiosk_provisioner", level="ERROR"):
                rc = main(["--root", td, "--set", "NOPE=1"])
            self.assertEqual(rc, EXIT_USAGE)
            self.assertEqual(os.listdir(td), [])

    @unittest.skipIf(os.geteuid() == 0, "needs an unprivileged user")
    def test_real_run_without_root_fails(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertLogs("kiosk_provisioner", level="ERROR") as cm:
                rc = main(["--root", td])
            self.assertEqual(rc, EXIT_FAILED)
            self.assertTrue(any("must be run as root" in line for line in cm.output))
            self.assertEqual(os.listdir(td), [])
