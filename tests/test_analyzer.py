"""Unit tests for guidelint.lib.analyzer and the collectors behind it."""

from __future__ import annotations

import libcst as cst
import pytest

from guidelint.lib import config
from guidelint.lib.analyzer import SourceAnalyzer, parse_suppressions


LOGGER_NAMES = ["logger", "log", "logging"]


def _analyzer(source: str, filepath: str = "test.py") -> SourceAnalyzer:
    """Create a SourceAnalyzer from source code."""
    return SourceAnalyzer(source, filepath)


class TestSourceAnalyzerBasics:
    """File-level queries and template variables."""

    def test_line_count(self):
        assert _analyzer("a = 1\nb = 2\n").line_count() == 2

    def test_source_line_in_range(self):
        assert _analyzer("a = 1   \nb = 2\n").source_line(1) == "a = 1"

    def test_source_line_out_of_range(self):
        """Line 0 and lines past the end return ''."""
        analyzer = _analyzer("a = 1\n")
        assert analyzer.source_line(0) == ""
        assert analyzer.source_line(5) == ""

    def test_line_of_module_statement(self):
        """line_of resolves positions for nodes of analyzer.module."""
        analyzer = _analyzer("import os\n\nimport sys\n")
        assert analyzer.line_of(analyzer.module.body[1]) == 3

    def test_line_of_foreign_node(self):
        """A node that is not part of the tree has no position."""
        analyzer = _analyzer("import os\n")
        assert analyzer.line_of(cst.Name("x")) == 0

    def test_build_variables(self):
        variables = _analyzer("x = 1\n", "pkg/mod.py").build_variables({"extra": 1})
        assert variables["filename"] == "mod.py"
        assert variables["module_name"] == "mod"
        assert variables["directory"] == "pkg"
        assert variables["line_count"] == 1
        assert variables["extra"] == 1

    def test_syntax_error_raises(self):
        """Unparseable source raises LibCST's parser error."""
        with pytest.raises(cst.ParserSyntaxError):
            _analyzer("def broken(:\n")

    def test_violation_carries_source_line(self):
        analyzer = _analyzer("try:\n    x = 1\nexcept:\n    x = 2\n")
        found = analyzer.bare_excepts()
        assert found[0]["source"] == "except:"


class TestStripAffixCalls:
    """Tests for the strip_prefix_suffix query."""

    def test_multi_character_literal(self):
        found = _analyzer('name = filename.rstrip(".py")\n').strip_affix_calls(2, [])
        assert len(found) == 1
        assert found[0]["method"] == "rstrip"
        assert found[0]["value"] == ".py"
        assert found[0]["replacement"] == "removesuffix"

    def test_lstrip_suggests_removeprefix(self):
        found = _analyzer('x = s.lstrip("v1.")\n').strip_affix_calls(2, [])
        assert found[0]["replacement"] == "removeprefix"

    def test_no_argument_and_single_character_pass(self):
        source = 'a = s.strip()\nb = s.lstrip("x")\nc = s.rstrip("/")\n'
        assert _analyzer(source).strip_affix_calls(2, []) == []

    def test_whitespace_set_passes(self):
        assert _analyzer('a = s.strip(" \\t\\n")\n').strip_affix_calls(2, []) == []

    def test_allowed_values(self):
        assert _analyzer('a = s.strip("\\"\'")\n').strip_affix_calls(2, ["\"'"]) == []

    def test_non_literal_argument_passes(self):
        assert _analyzer("a = s.rstrip(suffix)\n").strip_affix_calls(2, []) == []


class TestQualifiedNameUses:
    """Tests for qualified-name matching."""

    NAMES = {"typing.List": "list", "typing.Optional": "X | None"}

    def test_from_import_use(self):
        source = "from typing import List\n\ndef f(x: List[int]) -> None:\n    pass\n"
        found = _analyzer(source).qualified_name_uses(self.NAMES)
        assert len(found) == 1
        assert found[0]["line"] == 3
        assert found[0]["name"] == "typing.List"
        assert found[0]["replacement"] == "list"

    def test_import_statement_itself_not_reported(self):
        assert _analyzer("from typing import List\n").qualified_name_uses(self.NAMES) == []

    def test_module_attribute_use(self):
        source = "import typing\n\nx: typing.Optional[int] = None\n"
        found = _analyzer(source).qualified_name_uses(self.NAMES)
        assert [v["name"] for v in found] == ["typing.Optional"]

    def test_aliased_import(self):
        source = "from typing import List as L\n\ny: L[int] = []\n"
        found = _analyzer(source).qualified_name_uses(self.NAMES)
        assert [v["name"] for v in found] == ["typing.List"]

    def test_local_name_not_confused(self):
        source = "class List:\n    pass\n\nx: List = List()\n"
        assert _analyzer(source).qualified_name_uses(self.NAMES) == []


class TestUnannotatedFunctions:
    """Tests for the function_annotations query."""

    def test_missing_parameter(self):
        found = _analyzer("def f(a, b: int) -> int:\n    return b\n").unannotated_functions(True, ["self"])
        assert found[0]["function_name"] == "f"
        assert found[0]["missing"] == "a"

    def test_missing_return(self):
        found = _analyzer("def f(a: int):\n    return a\n").unannotated_functions(True, ["self"])
        assert found[0]["missing"] == "return"

    def test_return_not_required(self):
        assert _analyzer("def f(a: int):\n    return a\n").unannotated_functions(False, []) == []

    def test_self_exempt_in_methods(self):
        source = "class C:\n    def m(self, x: int) -> None:\n        pass\n"
        assert _analyzer(source).unannotated_functions(True, ["self", "cls"]) == []

    def test_self_not_exempt_outside_class(self):
        found = _analyzer("def f(self) -> None:\n    pass\n").unannotated_functions(True, ["self"])
        assert found[0]["missing"] == "self"

    def test_private_functions_skipped(self):
        assert _analyzer("def _helper(a):\n    return a\n").unannotated_functions(True, []) == []

    def test_dunder_methods_checked(self):
        source = "class C:\n    def __eq__(self, other):\n        return True\n"
        found = _analyzer(source).unannotated_functions(True, ["self"])
        assert found[0]["function_name"] == "__eq__"
        assert found[0]["missing"] == "other, return"

    def test_star_parameters(self):
        found = _analyzer("def f(*args, **kwargs) -> None:\n    pass\n").unannotated_functions(True, [])
        assert found[0]["missing"] == "*args, **kwargs"


class TestEagerLogFormatting:
    """Tests for the lazy_log_formatting query."""

    METHODS = ["debug", "info", "warning", "error", "exception", "log"]

    def _kinds(self, source: str) -> list[str]:
        return [v["kind"] for v in _analyzer(source).eager_log_formatting(self.METHODS, LOGGER_NAMES)]

    def test_f_string(self):
        assert self._kinds('logger.info(f"loading {path}")\n') == ["f-string"]

    def test_percent_formatting(self):
        assert self._kinds('logger.info("loading %s" % path)\n') == ["%-formatting"]

    def test_str_format(self):
        assert self._kinds('logger.info("loading {}".format(path))\n') == ["str.format"]

    def test_concatenation(self):
        assert self._kinds('logger.info("loading " + path)\n') == ["concatenation"]

    def test_lazy_arguments_pass(self):
        assert self._kinds('logger.info("loading %s", path)\n') == []

    def test_log_method_message_is_second_argument(self):
        assert self._kinds('logger.log(logging.INFO, f"x={x}")\n') == ["f-string"]

    def test_attribute_receiver(self):
        assert self._kinds('self.log.warning(f"x={x}")\n') == ["f-string"]

    def test_non_logger_receiver_ignored(self):
        assert self._kinds('cache.info(f"x={x}")\n') == []

    def test_name_merely_containing_log_ignored(self):
        assert self._kinds('catalog.info(f"{name}")\n') == []
        assert self._kinds('dialog.warning(f"{name}")\n') == []

    @pytest.mark.parametrize("receiver", ["self._logger", "LOGGER", "audit_log", "logging"])
    def test_logger_name_variants(self, receiver):
        assert self._kinds(f'{receiver}.info(f"x={{x}}")\n') == ["f-string"]

    def test_star_arguments_ignored(self):
        assert self._kinds("logger.info(*parts)\n") == []


class TestPrintCalls:
    """Tests for the print_calls query."""

    def test_print_in_function(self):
        found = _analyzer("def f() -> None:\n    print('x')\n").print_calls(True, [])
        assert [v["line"] for v in found] == [2]

    def test_print_in_main_guard_allowed(self):
        source = 'if __name__ == "__main__":\n    print("x")\n'
        assert _analyzer(source).print_calls(True, []) == []

    def test_reversed_main_guard(self):
        source = 'if "__main__" == __name__:\n    print("x")\n'
        assert _analyzer(source).print_calls(True, []) == []

    def test_main_guard_not_allowed(self):
        source = 'if __name__ == "__main__":\n    print("x")\n'
        assert len(_analyzer(source).print_calls(False, [])) == 1

    def test_exempt_file(self):
        assert _analyzer("print('x')\n", "pkg/__main__.py").print_calls(True, ["__main__.py"]) == []

    def test_other_if_block_not_exempt(self):
        source = "if DEBUG:\n    print('x')\n"
        assert len(_analyzer(source).print_calls(True, [])) == 1

    def test_else_branch_of_main_guard_not_exempt(self):
        source = (
            'if __name__ == "__main__":\n    print("run")\n'
            'else:\n    print("imported")\n'
        )
        assert [v["line"] for v in _analyzer(source).print_calls(True, [])] == [4]

    def test_elif_branch_of_main_guard_not_exempt(self):
        source = (
            'if __name__ == "__main__":\n    print("run")\n'
            'elif DEBUG:\n    print("debug")\n'
        )
        assert [v["line"] for v in _analyzer(source).print_calls(True, [])] == [4]

    def test_nested_block_inside_main_guard_allowed(self):
        source = (
            'if __name__ == "__main__":\n'
            '    for arg in args:\n        print(arg)\n'
        )
        assert _analyzer(source).print_calls(True, []) == []

    def test_one_line_main_guard_allowed(self):
        source = 'if __name__ == "__main__": print("x")\n'
        assert _analyzer(source).print_calls(True, []) == []


class TestExceptionQueries:
    """Tests for bare excepts, swallowed exceptions and handler checks."""

    def test_bare_except(self):
        source = "try:\n    x = 1\nexcept:\n    x = 2\n"
        assert [v["line"] for v in _analyzer(source).bare_excepts()] == [3]

    def test_typed_except_passes(self):
        source = "try:\n    x = 1\nexcept Exception:\n    x = 2\n"
        assert _analyzer(source).bare_excepts() == []

    def test_swallowed_pass(self):
        source = "try:\n    x = 1\nexcept ValueError:\n    pass\n"
        found = _analyzer(source).swallowed_exceptions()
        assert found[0]["exception"] == "ValueError"

    def test_swallowed_ellipsis_and_continue(self):
        source = (
            "for i in range(3):\n"
            "    try:\n        x = 1\n    except KeyError:\n        continue\n"
            "try:\n    x = 1\nexcept OSError:\n    ...\n"
        )
        assert len(_analyzer(source).swallowed_exceptions()) == 2

    def test_swallowed_bare_except_names_base_exception(self):
        source = "try:\n    x = 1\nexcept:\n    pass\n"
        assert _analyzer(source).swallowed_exceptions()[0]["exception"] == "BaseException"

    def test_swallowed_tuple(self):
        source = "try:\n    x = 1\nexcept (KeyError, IndexError):\n    pass\n"
        assert "IndexError" in _analyzer(source).swallowed_exceptions()[0]["exception"]

    def test_handled_exception_passes(self):
        source = "try:\n    x = 1\nexcept ValueError:\n    x = 0\n"
        assert _analyzer(source).swallowed_exceptions() == []

    def test_raise_without_from(self):
        source = "try:\n    x = 1\nexcept ValueError:\n    raise ConfigError('bad')\n"
        found = _analyzer(source).raises_without_from()
        assert found[0]["line"] == 4
        assert found[0]["exception"] == "ConfigError"

    def test_raise_from_passes(self):
        source = "try:\n    x = 1\nexcept ValueError as exc:\n    raise ConfigError('bad') from exc\n"
        assert _analyzer(source).raises_without_from() == []

    def test_reraise_passes(self):
        source = (
            "try:\n    x = 1\nexcept ValueError:\n    raise\n"
            "try:\n    x = 1\nexcept ValueError as exc:\n    raise exc\n"
        )
        assert _analyzer(source).raises_without_from() == []

    def test_raise_outside_handler_passes(self):
        assert _analyzer("raise ValueError('x')\n").raises_without_from() == []

    def test_nested_function_resets_handler_state(self):
        source = (
            "try:\n    x = 1\nexcept ValueError:\n"
            "    def later():\n        raise KeyError('k')\n"
            "    handlers.append(later)\n"
        )
        assert _analyzer(source).raises_without_from() == []

    def test_error_log_in_handler(self):
        source = "try:\n    x = 1\nexcept OSError as exc:\n    logger.error('failed: %s', exc)\n"
        found = _analyzer(source).error_logs_in_handlers(LOGGER_NAMES)
        assert found[0]["receiver"] == "logger"

    def test_error_log_with_exc_info_passes(self):
        source = "try:\n    x = 1\nexcept OSError:\n    logger.error('failed', exc_info=True)\n"
        assert _analyzer(source).error_logs_in_handlers(LOGGER_NAMES) == []

    def test_exception_method_passes(self):
        source = "try:\n    x = 1\nexcept OSError:\n    logger.exception('failed')\n"
        assert _analyzer(source).error_logs_in_handlers(LOGGER_NAMES) == []

    def test_error_log_outside_handler_passes(self):
        assert _analyzer("logger.error('failed')\n").error_logs_in_handlers(LOGGER_NAMES) == []

    def test_attribute_logger_receiver(self):
        source = "try:\n    x = 1\nexcept OSError:\n    self.logger.error('failed')\n"
        assert _analyzer(source).error_logs_in_handlers(LOGGER_NAMES)[0]["receiver"] == "self.logger"

    def test_non_logger_receiver_in_handler_passes(self):
        source = "try:\n    x = 1\nexcept OSError:\n    dialog.error('failed')\n"
        assert _analyzer(source).error_logs_in_handlers(LOGGER_NAMES) == []


class TestOpenWithoutEncoding:
    """Tests for the open_without_encoding query."""

    PATH_METHODS = ["read_text", "write_text"]

    def _calls(self, source: str) -> list[str]:
        return [v["call"] for v in _analyzer(source).open_without_encoding(self.PATH_METHODS)]

    def test_text_open_without_encoding(self):
        assert self._calls("fh = open('f.txt')\n") == ["open"]

    def test_text_mode_without_encoding(self):
        assert self._calls("fh = open('f.txt', 'w')\n") == ["open"]

    def test_binary_mode_passes(self):
        assert self._calls("fh = open('f', 'rb')\ng = open('f', mode='wb')\n") == []

    def test_encoding_keyword_passes(self):
        assert self._calls("fh = open('f', 'w', encoding='utf-8')\n") == []

    def test_positional_encoding_passes(self):
        assert self._calls("fh = open('f', 'r', -1, 'utf-8')\n") == []

    def test_non_literal_mode_passes(self):
        assert self._calls("fh = open('f', mode)\n") == []

    def test_star_arguments_pass(self):
        assert self._calls("fh = open(*args)\n") == []

    def test_path_methods(self):
        source = (
            "a = p.read_text()\n"
            "b = p.read_text('utf-8')\n"
            "p.write_text(data)\n"
            "p.write_text(data, encoding='utf-8')\n"
        )
        assert self._calls(source) == ["read_text", "write_text"]


class TestJsonStringRoundTrips:
    """Tests for the json_string_round_trip query."""

    def test_write_dumps(self):
        source = "import json\nfh.write(json.dumps(data))\n"
        found = _analyzer(source).json_string_round_trips()
        assert found[0]["replacement"] == "json.dump(obj, fh)"

    def test_loads_read(self):
        source = "import json\ndata = json.loads(fh.read())\n"
        found = _analyzer(source).json_string_round_trips()
        assert found[0]["replacement"] == "json.load(fh)"

    def test_from_import(self):
        source = "from json import dumps\nfh.write(dumps(data))\n"
        assert len(_analyzer(source).json_string_round_trips()) == 1

    def test_loads_of_string_passes(self):
        source = "import json\ndata = json.loads(text)\n"
        assert _analyzer(source).json_string_round_trips() == []


class TestMutableDefaults:
    """Tests for the mutable_defaults query."""

    def test_literals_and_constructors(self):
        source = (
            "import collections\n"
            "def f(a=[], b={}, c=set(), *, d=collections.defaultdict(list)):\n"
            "    pass\n"
        )
        found = _analyzer(source).mutable_defaults(config.get_list("check_defaults.mutable_calls"))
        assert [v["param_name"] for v in found] == ["a", "b", "c", "d"]
        assert {v["function_name"] for v in found} == {"f"}

    def test_immutable_defaults_pass(self):
        source = "def f(a=None, b=(), c=frozenset(), d='x', e=0):\n    pass\n"
        assert _analyzer(source).mutable_defaults(["list", "dict", "set"]) == []


class TestNamingViolations:
    """Tests for the naming query with the configured patterns."""

    def _found(self, source: str) -> list[tuple[str, str]]:
        found = _analyzer(source).naming_violations(
            config.get_str("check_defaults.function_pattern"),
            config.get_str("check_defaults.class_pattern"),
            config.get_list("check_defaults.ignore_names"),
            config.get_list("check_defaults.ignore_prefixes"),
        )
        return [(v["kind"], v["name"]) for v in found]

    def test_bad_function_and_class(self):
        source = "def BadName():\n    pass\n\nclass bad_name:\n    pass\n"
        assert self._found(source) == [("function", "BadName"), ("class", "bad_name")]

    def test_conventional_names_pass(self):
        source = (
            "class _Private:\n"
            "    def __init__(self):\n        pass\n"
            "    def _helper(self):\n        pass\n"
            "def snake_case_2():\n    pass\n"
        )
        assert self._found(source) == []

    def test_ignored_names_and_prefixes(self):
        source = (
            "class T:\n"
            "    def setUp(self):\n        pass\n"
            "    def visit_Name(self, node):\n        pass\n"
        )
        assert self._found(source) == []


class TestImportQueries:
    """Tests for wildcard and relative import queries."""

    def test_wildcard(self):
        assert [v["module"] for v in _analyzer("from os.path import *\n").wildcard_imports()] == ["os.path"]

    def test_explicit_import_passes(self):
        assert _analyzer("from os.path import join\n").wildcard_imports() == []

    def test_relative(self):
        source = "from . import a\nfrom ..pkg.mod import b\nfrom pkg import c\n"
        found = _analyzer(source).relative_imports()
        assert [v["module"] for v in found] == [".", "..pkg.mod"]


class TestParseSuppressions:
    """Tests for inline suppression comments."""

    def test_ignore_everything(self):
        assert parse_suppressions(["x = 1  # guidelint: ignore"]) == {1: {"*"}}

    def test_ignore_named_rules(self):
        result = parse_suppressions(["", "x = 1  # guidelint: ignore[no-print, raise-from]"])
        assert result == {2: {"no-print", "raise-from"}}

    def test_compact_spelling(self):
        assert parse_suppressions(["x  #guidelint:ignore[a]"]) == {1: {"a"}}

    def test_empty_brackets_mean_everything(self):
        assert parse_suppressions(["x  # guidelint: ignore[]"]) == {1: {"*"}}

    def test_unrelated_comments(self):
        assert parse_suppressions(["x = 1  # noqa", "y = 2"]) == {}

    def test_marker_inside_string_ignored(self):
        assert parse_suppressions(["x = '# guidelint: ignore'; print(x)"]) == {}

    def test_marker_inside_docstring_ignored(self):
        lines = ['"""Usage:', "    print(x)  # guidelint: ignore", '"""', "print(y)"]
        assert parse_suppressions(lines) == {}

    def test_comment_after_string_containing_hash(self):
        assert parse_suppressions(["x = '#'  # guidelint: ignore[no-print]"]) == {1: {"no-print"}}

    def test_untokenizable_tail_keeps_earlier_comments(self):
        lines = ["x = 1  # guidelint: ignore", "y = '''unterminated"]
        assert parse_suppressions(lines) == {1: {"*"}}
