import unittest

from tests import _bootstrap  # noqa: F401
from varpp.normalize import (
    expand_tabs,
    join_continuations,
    normalize,
    remove_space_near_newline,
    replace_if_defined,
    trim_leading_spaces,
)


class NormalizeStepTests(unittest.TestCase):
    def test_expand_tabs(self) -> None:
        self.assertEqual(expand_tabs("a\tb\t\tc"), "a b  c")

    def test_trim_leading_spaces_only_at_buffer_start(self) -> None:
        self.assertEqual(trim_leading_spaces("   a\n  b"), "a\n  b")

    def test_remove_space_near_newline(self) -> None:
        self.assertEqual(remove_space_near_newline("a \n b\nc"), "a\nb\nc")

    def test_remove_space_near_newline_keeps_inner_spaces(self) -> None:
        self.assertEqual(remove_space_near_newline("int x = 1;\n"), "int x = 1;\n")


class JoinContinuationTests(unittest.TestCase):
    def test_join_after_space(self) -> None:
        source = "#define X(a) \\\n(a)\nint y;\n"
        self.assertEqual(join_continuations(source), "#define X(a) (a)\n\nint y;\n")

    def test_join_inserts_space(self) -> None:
        self.assertEqual(join_continuations("a\\\nb\n"), "a b\n\n")

    def test_join_without_trailing_newline_keeps_line_count(self) -> None:
        self.assertEqual(join_continuations("a\\\nb"), "a b\n")

    def test_multiple_joins(self) -> None:
        self.assertEqual(join_continuations("a\\\nb\\\nc\n"), "a b c\n\n\n")

    def test_text_without_continuations_is_unchanged(self) -> None:
        self.assertEqual(join_continuations("a\nb\n"), "a\nb\n")


class IfDefinedTests(unittest.TestCase):
    def test_if_defined_becomes_ifdef(self) -> None:
        source = "#if defined(FOO)\nx\n#endif\n"
        self.assertEqual(replace_if_defined(source), "#ifdef FOO\nx\n#endif\n")

    def test_if_defined_with_inner_spaces(self) -> None:
        self.assertEqual(replace_if_defined("#if defined( FOO )\n"), "#ifdef FOO\n")

    def test_if_defined_at_end_of_text(self) -> None:
        self.assertEqual(replace_if_defined("#if defined(FOO)"), "#ifdef FOO")

    def test_compound_condition_is_left_alone(self) -> None:
        source = "#if defined(FOO) && defined(BAR)\n"
        self.assertEqual(replace_if_defined(source), source)

    def test_elif_defined_is_left_alone(self) -> None:
        source = "#elif defined(FOO)\n"
        self.assertEqual(replace_if_defined(source), source)


class NormalizeTests(unittest.TestCase):
    def test_normalize_pipeline(self) -> None:
        source = "\t  int a;\n#if defined(X) \nint b; \\\n int c;\n"
        self.assertEqual(normalize(source), "int a;\n#ifdef X\nint b; int c;\n\n")

    def test_normalize_keeps_line_count(self) -> None:
        source = "a \\\n b \\\n c\nd\n"
        self.assertEqual(normalize(source).count("\n"), source.count("\n"))


if __name__ == "__main__":
    unittest.main()
