import io
import json
import logging
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from tests import _bootstrap  # noqa: F401
from varpp import main

_SOURCE = "#ifdef A\na();\n#endif\nb();\n"


class CliTests(unittest.TestCase):
    def _run_main(self, argv: list[str], *, stdin_text: str = "") -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(argv, stdin=io.StringIO(stdin_text))
        return code, stdout.getvalue(), stderr.getvalue()

    def _run_file(self, extra: list[str], source: str = _SOURCE) -> tuple[int, str, str, str]:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "main.c"
            path.write_text(source, encoding="utf-8")
            code, stdout, stderr = self._run_main([str(path), *extra])
        return code, stdout, stderr, str(path)

    def test_main_prints_every_configuration(self) -> None:
        code, stdout, stderr, _ = self._run_file([])
        self.assertEqual(code, 0)
        self.assertEqual(stderr, "")
        self.assertEqual(
            stdout,
            "// configuration: <baseline>\n\n\n\nb();\n"
            "// configuration: A\n\na();\n\nb();\n",
        )

    def test_main_list_configs(self) -> None:
        code, stdout, stderr, _ = self._run_file(["--list-configs"])
        self.assertEqual(code, 0)
        self.assertEqual(stderr, "")
        self.assertEqual(stdout, "<baseline>\nA\n")

    def test_main_list_configs_json(self) -> None:
        code, stdout, _, _ = self._run_file(["--list-configs", "--format", "json"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(stdout), ["", "A"])

    def test_main_selected_configuration(self) -> None:
        code, stdout, _, _ = self._run_file(["-c", "A"])
        self.assertEqual(code, 0)
        self.assertEqual(stdout, "// configuration: A\n\na();\n\nb();\n")

    def test_main_baseline_only(self) -> None:
        code, stdout, _, _ = self._run_file(["--config", ""])
        self.assertEqual(code, 0)
        self.assertEqual(stdout, "// configuration: <baseline>\n\n\n\nb();\n")

    def test_main_json_output(self) -> None:
        code, stdout, _, path = self._run_file(["--format", "json", "-j", "2"])
        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(stdout),
            {
                "filename": path,
                "configurations": {"": "\n\n\nb();\n", "A": "\na();\n\nb();\n"},
            },
        )

    def test_main_dump_processed(self) -> None:
        source = "#define N 3\nint a[N]; // sized\n"
        code, stdout, _, _ = self._run_file(["--dump-processed"], source)
        self.assertEqual(code, 0)
        self.assertEqual(stdout, "\nint a[3];\n")

    def test_main_no_macros(self) -> None:
        source = "#define N 3\nint a[N];\n"
        code, stdout, _, _ = self._run_file(["--dump-processed", "--no-macros"], source)
        self.assertEqual(code, 0)
        self.assertEqual(stdout, "\nint a[N];\n")

    def test_main_reads_stdin(self) -> None:
        code, stdout, stderr = self._run_main(["-", "--list-configs"], stdin_text=_SOURCE)
        self.assertEqual(code, 0)
        self.assertEqual(stderr, "")
        self.assertEqual(stdout, "<baseline>\nA\n")

    def test_main_invalid_configuration(self) -> None:
        code, stdout, stderr, path = self._run_file(["-c", "A;;B"])
        self.assertEqual(code, 1)
        self.assertEqual(stdout, "")
        self.assertEqual(stderr, f"{path}: config: Invalid configuration key: 'A;;B'\n")

    def test_main_invalid_configuration_json(self) -> None:
        code, _, stderr, path = self._run_file(["-c", "A B", "--diag-format", "json"])
        self.assertEqual(code, 1)
        payload = json.loads(stderr)
        self.assertEqual(payload["stage"], "config")
        self.assertEqual(payload["filename"], path)
        self.assertEqual(payload["code"], "VARPP-CFG-0101")
        self.assertNotIn("line", payload)

    def test_main_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code, stdout, stderr = self._run_main([str(Path(tmp) / "missing.c")])
        self.assertEqual(code, 1)
        self.assertEqual(stdout, "")
        self.assertIn("varpp: I/O error:", stderr)

    def test_main_invalid_jobs(self) -> None:
        code, _, stderr, _ = self._run_file(["-j", "0"])
        self.assertEqual(code, 2)
        self.assertIn("varpp: error: Invalid job count: 0", stderr)

    def test_main_requires_input(self) -> None:
        code, _, stderr = self._run_main([])
        self.assertEqual(code, 2)
        self.assertIn("usage:", stderr)

    def test_main_debug_logging(self) -> None:
        code, _, stderr, _ = self._run_file(["--list-configs", "--log-level", "DEBUG"])
        self.assertEqual(code, 0)
        self.assertIn("DEBUG:varpp.conditionals: found 2 configuration(s)", stderr)

    def test_main_leaves_root_logging_alone(self) -> None:
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        code, _, _, _ = self._run_file(["--list-configs", "--log-level", "INFO"])
        self.assertEqual(code, 0)
        self.assertEqual(root.handlers, handlers)
        self.assertEqual(root.level, level)
        self.assertEqual(len(logging.getLogger("varpp").handlers), 1)


if __name__ == "__main__":
    unittest.main()
