import io
import json
from pathlib import Path

import pytest

from json_cleanroom import __version__
from json_cleanroom.cli import build_parser, load_text_or_file, main, option_overrides


def _run(capsys, argv):
    code = main(argv)
    out = capsys.readouterr().out
    return code, json.loads(out)


def test_valid_input_exit_zero(capsys) -> None:
    code, payload = _run(capsys, ["--input", '{"a": 1}'])
    assert code == 0
    assert payload["valid"] is True
    assert payload["data"] == {"a": 1}


def test_invalid_input_exit_one(capsys) -> None:
    code, payload = _run(capsys, ["--input", '{"a": [1,'])
    assert code == 1
    assert payload["likely_truncated"] is True
    assert payload["errors"][0]["code"] == "parse_error"


def test_out_of_range_number_exit_one(capsys) -> None:
    code, payload = _run(capsys, ["--input", '{"x": 1e400}'])
    assert code == 1
    assert payload["errors"][0]["code"] == "parse_error"


def test_input_from_file_with_schema(tmp_path: Path, capsys) -> None:
    (tmp_path / "reply.txt").write_text("Here:\n```json\n{\"name\": 3}\n```")
    (tmp_path / "schema.json").write_text(json.dumps({"properties": {"name": {"type": "string"}}}))
    code, payload = _run(
        capsys,
        ["--input", str(tmp_path / "reply.txt"), "--schema", str(tmp_path / "schema.json")],
    )
    assert code == 1
    assert payload["errors"][0]["path"] == "$.name"
    assert payload["info"]["source"] == "code_fence"


def test_input_from_stdin(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("[1, 2]"))
    code, payload = _run(capsys, ["--input", "-"])
    assert code == 0
    assert payload["data"] == [1, 2]


def test_no_repair_flag(capsys) -> None:
    code, payload = _run(capsys, ["--input", "{'a': 1}", "--no-repair"])
    assert code == 1
    assert payload["errors"][0]["detail"]["repair_enabled"] is False


def test_expectations_file(tmp_path: Path, capsys) -> None:
    (tmp_path / "rules.yaml").write_text("- path: a\n  type: integer\n")
    code, payload = _run(
        capsys,
        ["--input", '{"a": "x"}', "--expectations", str(tmp_path / "rules.yaml")],
    )
    assert code == 1
    assert payload["errors"][0]["code"] == "type_mismatch"


def test_options_file_and_override(tmp_path: Path, capsys) -> None:
    (tmp_path / "options.json").write_text(json.dumps({"allow_bare_top_level_scalars": False}))
    code, _ = _run(capsys, ["--input", "7", "--options", str(tmp_path / "options.json")])
    assert code == 1
    code, payload = _run(
        capsys,
        ["--input", "7", "--options", str(tmp_path / "options.json"), "--allow-scalars"],
    )
    assert code == 0
    assert payload["data"] == 7


def test_missing_document_exit_two(tmp_path: Path, capsys) -> None:
    code = main(["--input", "{}", "--schema", str(tmp_path / "nope.json")])
    captured = capsys.readouterr()
    assert code == 2
    assert "nope.json" in captured.err


def test_invalid_override_exit_two(capsys) -> None:
    code = main(["--input", "{}", "--max-repairs", "-1"])
    assert code == 2
    assert "invalid option value" in capsys.readouterr().err


def test_output_formatting(capsys) -> None:
    main(["--input", '{"a": "é"}', "--indent", "0", "--ensure-ascii"])
    out = capsys.readouterr().out
    assert "\\u00e9" in out


def test_option_overrides_mapping() -> None:
    args = build_parser().parse_args(
        ["--input", "x", "--strict", "--no-constants", "--max-repairs", "3", "--normalize-curly-quotes", "never"]
    )
    assert option_overrides(args) == {
        "strict": True,
        "replace_constants": False,
        "replace_nans_infinities": False,
        "max_total_repairs": 3,
        "normalize_curly_quotes": "never",
    }
    assert option_overrides(build_parser().parse_args(["--input", "x"])) == {}


def test_load_text_or_file_falls_back_to_literal(tmp_path: Path) -> None:
    assert load_text_or_file('{"a": 1}') == '{"a": 1}'
    target = tmp_path / "in.txt"
    target.write_text("content")
    assert load_text_or_file(str(target)) == "content"


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out
