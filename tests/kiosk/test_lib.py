import os
import tempfile
import unittest
from pathlib import Path

from kiosk_provisioner.errors import CommandError
from kiosk_provisioner.lib.command import fmt_argv, run_cmd
from kiosk_provisioner.lib.probe import SystemProbe


class TestRunCmd(unittest.TestCase):
    def test_captures_output(self) -> None:
        res = run_cmd(["sh", "-c", "echo hello"])
        self.assertEqual(res.returncode, 0)
        self.assertEqual(res.stdout.strip(), "hello")

    def test_nonzero_exit(self) -> None:
        res = run_cmd(["sh", "-c", "echo oops >&2; exit 3"], check=False)
        self.assertEqual(res.returncode, 3)
        with self.assertRaises(CommandError) as cm:
            run_cmd(["sh", "-c", "echo oops >&2; exit 3"])
        self.assertEqual(cm.exception.returncode, 3)
        self.assertIn("oops", cm.exception.stderr)

    def test_missing_command(self) -> None:
        res = run_cmd(["definitely-not-a-kiosk-command"], check=False)
        self.assertEqual(res.returncode, 127)
        with self.assertRaises(CommandError):
            run_cmd(["definitely-not-a-kiosk-command"])

    def test_env_is_merged(self) -> None:
        res = run_cmd(["sh", "-c", 'echo "$DEBIAN_FRONTEND"'], env={"DEBIAN_FRONTEND": "noninteractive"})
        self.assertEqual(res.stdout.strip(), "noninteractive")

    def test_stdin_is_closed(self) -> None:
        res = run_cmd(["sh", "-c", "read answer || echo eof"], timeout=10)
        self.assertEqual(res.stdout.strip(), "eof")

    def test_fmt_argv(self) -> None:
        self.assertEqual(fmt_argv(["sh", "-c", "a2enmod php*"]), "sh -c 'a2enmod php*'")


class TestSystemProbeInTarget(unittest.TestCase):
    def test_users_come_from_target_passwd(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            passwd = Path(td) / "etc/passwd"
            passwd.parent.mkdir(parents=True)
            passwd.write_text("root:x:0:0::/root:/bin/bash\nkiosk:x:1000:1000::/home/kiosk:/bin/bash\n")

            probe = SystemProbe(td)
            self.assertTrue(probe.user_exists("kiosk"))
            self.assertFalse(probe.user_exists("kios"))

    def test_no_passwd_means_no_users(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertFalse(SystemProbe(td).user_exists("root"))

    def test_commands_come_from_target_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            tool = Path(td) / "usr/sbin/a2enmod"
            tool.parent.mkdir(parents=True)
            tool.write_text("#!/bin/sh\n")
            os.chmod(tool, 0o755)

            probe = SystemProbe(td)
            self.assertTrue(probe.command_exists("a2enmod"))
            self.assertFalse(probe.command_exists("sh"))
