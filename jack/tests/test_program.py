import itertools
import json
from os import walk
from pathlib import Path, PurePath
from typing import Callable, Generator

import pytest
from click.testing import CliRunner

import jack

_TestFunc = Callable[[], None]
_CURDIR = PurePath(__file__).parent


def _generate_valid_program_test(path: PurePath) -> _TestFunc:
    def test() -> None:
        runner = CliRunner()
        result = runner.invoke(jack.main, [str(path), "--dump-ast"])
        assert result.exit_code == 0, result.output
        unit = jack.analyze_file(str(path))
        if unit.klass is None:
            assert result.output == ""
        else:
            assert json.loads(result.output)["name"] == unit.klass.name

    return test


def _generate_invalid_program_test(path: PurePath) -> _TestFunc:
    def test() -> None:
        runner = CliRunner()
        result = runner.invoke(jack.main, [str(path)])
        assert result.exit_code == 1
        assert str(path) in result.output
        with pytest.raises(jack.JackError):
            jack.analyze_file(str(path))

    return test


def _generate_program_tests(
    kind: str, generate: Callable[[PurePath], _TestFunc]
) -> Generator[tuple[str, _TestFunc], None, None]:
    for (dirpath, _, filenames) in walk(_CURDIR / "cases" / kind):
        for filename in filter(lambda f: PurePath(f).suffix == ".jack", filenames):
            yield (
                f"{kind}_{filename}",
                generate(PurePath(dirpath) / filename),
            )


_TEST_FUNCS = itertools.chain(
    _generate_program_tests("invalid", _generate_invalid_program_test),
    _generate_program_tests("valid", _generate_valid_program_test),
)


@pytest.mark.parametrize("name,test_func", sorted(_TEST_FUNCS))
def test_all(name: str, test_func: _TestFunc) -> None:
    test_func()


def test_directory_continues_past_failures() -> None:
    runner = CliRunner()
    result = runner.invoke(
        jack.main, [str(_CURDIR / "cases" / "invalid"), str(_CURDIR / "cases" / "valid")]
    )
    assert result.exit_code == 1
    for name in ("duplicate_field", "missing_brace", "two_classes"):
        assert f"{name}.jack" in result.output


def test_tokens_are_dumped_as_json_lines() -> None:
    runner = CliRunner()
    result = runner.invoke(jack.main, [str(_CURDIR / "cases" / "valid" / "Main.jack"), "--tokens"])
    assert result.exit_code == 0, result.output
    first = json.loads(result.output.splitlines()[0])
    assert first["kind"] == "keyword"
    assert first["lexeme"] == "class"
    assert first["position"] == {"line": 2, "column": 0}


def test_find_sources_lists_jack_files_in_order() -> None:
    sources = jack.find_sources(_CURDIR / "cases" / "valid")
    assert [p.name for p in sources] == [
        "Counter.jack",
        "Empty.jack",
        "Main.jack",
        "Square.jack",
    ]


_DUPLICATE_FIELD = "class B { field int x; field int x; }"


def test_deep_nesting_does_not_stop_the_run(tmp_path: Path) -> None:
    depth = 1000
    nested = "(" * depth + "1" + ")" * depth
    (tmp_path / "A.jack").write_text(
        f"class A {{ function int f() {{ return {nested}; }} }}", encoding="utf-8"
    )
    (tmp_path / "B.jack").write_text(_DUPLICATE_FIELD, encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(jack.main, [str(tmp_path)])
    assert result.exit_code == 1
    assert "A.jack):[1:" in result.output
    assert "Syntax error: nesting too deep" in result.output
    assert "Identifier 'x' has already been declared" in result.output


def test_undecodable_source_does_not_stop_the_run(tmp_path: Path) -> None:
    (tmp_path / "A.jack").write_bytes(b"class A { \xff }")
    (tmp_path / "B.jack").write_text(_DUPLICATE_FIELD, encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(jack.main, [str(tmp_path)])
    assert result.exit_code == 1
    assert f"({tmp_path / 'A.jack'}): Error: cannot read source:" in result.output
    assert "Identifier 'x' has already been declared" in result.output
    with pytest.raises(jack.JackError):
        jack.analyze_file(tmp_path / "A.jack")
