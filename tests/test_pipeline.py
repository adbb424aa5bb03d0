from __future__ import annotations

from pathlib import Path

import pytest

import screengen


def _make_generate_config(
    schema: Path,
    output_dir: Path,
    *,
    declarations: frozenset[str] = frozenset(),
    policy: screengen.UnlabeledArgumentPolicy = screengen.UnlabeledArgumentPolicy.POSITIONAL,
) -> screengen.GenerateConfig:
    return screengen.GenerateConfig(
        schema=schema,
        output_dir=output_dir,
        declarations=declarations,
        imports=screengen.DEFAULT_IMPORTS,
        unlabeled_arguments=policy,
    )


def test_t_01_build_write_config_maps_generate_config_fields(
    fixture_schema: Path, tmp_path: Path
) -> None:
    config = _make_generate_config(
        fixture_schema,
        tmp_path,
        policy=screengen.UnlabeledArgumentPolicy.LABELED,
    )
    schema = screengen.load_schema(fixture_schema)

    write_config = screengen.build_write_config(config, schema)

    assert write_config.schema_name == "screens_minimal.xml"
    assert write_config.schema_version == "1"
    assert write_config.unlabeled_arguments is screengen.UnlabeledArgumentPolicy.LABELED
    assert write_config.imports == ("SwiftUI", "ScreenMacros")


def test_t_02_run_generate_writes_successful_declarations_only(
    fixture_schema: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    output_dir = tmp_path / "Generated"

    summary = screengen.run_generate(_make_generate_config(fixture_schema, output_dir))
    captured = capsys.readouterr()

    assert sorted(p.name for p in output_dir.iterdir()) == [
        "ScreenID+Screens.swift",
        "SheetID+Screens.swift",
    ]
    assert summary.counts.failed == 1
    assert f"Parsing: {fixture_schema}" in captured.out
    assert "  Expanded: 2 of 3 declarations" in captured.out
    assert "error[notAnEnum] NotAnEnum:" in captured.err
    assert "warning[unusedMappingKeys] ScreenID.search:" in captured.err


def test_t_03_run_generate_output_matches_expected_dispatcher(
    fixture_schema: Path, tmp_path: Path
) -> None:
    config = _make_generate_config(
        fixture_schema, tmp_path, declarations=frozenset({"SheetID"})
    )

    screengen.run_generate(config)

    text = (tmp_path / "SheetID+Screens.swift").read_text(encoding="utf-8")
    assert text.endswith(
        "import SwiftUI\n"
        "import ScreenMacros\n"
        "\n"
        "extension SheetID: View, ScreenMacros.Screens {\n"
        "    @MainActor @ViewBuilder\n"
        "    var body: some View {\n"
        "        switch self {\n"
        "        case .compose(draft: let initialDraft):\n"
        "            Editor.ComposeView<Draft>(draft: initialDraft)\n"
        "        }\n"
        "    }\n"
        "}\n"
    )


def test_t_04_run_generate_is_byte_identical_across_runs(
    fixture_schema: Path, tmp_path: Path
) -> None:
    first_dir = tmp_path / "first"
    second_dir = tmp_path / "second"

    screengen.run_generate(_make_generate_config(fixture_schema, first_dir))
    screengen.run_generate(_make_generate_config(fixture_schema, second_dir))

    for path in first_dir.iterdir():
        assert path.read_bytes() == (second_dir / path.name).read_bytes()


def test_t_05_run_generate_rejects_unknown_declaration(
    fixture_schema: Path, tmp_path: Path
) -> None:
    config = _make_generate_config(
        fixture_schema, tmp_path / "out", declarations=frozenset({"Missing"})
    )

    with pytest.raises(screengen.SchemaError):
        screengen.run_generate(config)

    assert not (tmp_path / "out").exists()


def test_t_06_run_generate_executes_stages_in_linear_order(
    fixture_schema: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config = _make_generate_config(fixture_schema, tmp_path)
    calls: list[str] = []
    schema = screengen.Schema(version="1", declarations=())

    monkeypatch.setattr(
        screengen, "load_schema", lambda _path: calls.append("load_schema") or schema
    )
    monkeypatch.setattr(
        screengen,
        "select_declarations",
        lambda _schema, _names: calls.append("select_declarations") or (),
    )
    monkeypatch.setattr(
        screengen,
        "expand_declarations",
        lambda _decls, _policy: calls.append("expand_declarations") or (),
    )
    monkeypatch.setattr(
        screengen,
        "print_diagnostics",
        lambda _diagnostics: calls.append("print_diagnostics"),
    )
    monkeypatch.setattr(
        screengen,
        "write_extensions",
        lambda output_dir, _cfg, _exts: calls.append("write_extensions")
        or screengen.PackageWriteResult(output_dir=output_dir, files=()),
    )
    monkeypatch.setattr(
        screengen,
        "print_generation_summary",
        lambda _summary: calls.append("print_generation_summary"),
    )

    screengen.run_generate(config)

    assert calls == [
        "load_schema",
        "select_declarations",
        "expand_declarations",
        "print_diagnostics",
        "write_extensions",
        "print_generation_summary",
    ]


def test_t_07_main_prints_config_error_with_hint_and_exits_1(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        screengen.main([])

    output = capsys.readouterr().out
    assert exc_info.value.code == 1
    assert "Config error [MISSING_SCHEMA]:" in output
    assert "Hint:" in output


def test_t_08_main_exits_1_when_any_declaration_fails(
    fixture_schema: Path, tmp_path: Path
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        screengen.main(
            ["--schema", str(fixture_schema), "--output-dir", str(tmp_path)]
        )

    assert exc_info.value.code == 1
    assert (tmp_path / "ScreenID+Screens.swift").is_file()


def test_t_09_main_returns_normally_on_clean_generation(
    fixture_schema: Path, tmp_path: Path
) -> None:
    screengen.main(
        [
            "--schema",
            str(fixture_schema),
            "--output-dir",
            str(tmp_path),
            "--decl",
            "ScreenID",
            "SheetID",
        ]
    )

    assert len(list(tmp_path.glob("*.swift"))) == 2


@pytest.mark.parametrize(
    ("schema_text", "expected_prefix"),
    [
        ("<schema>", "Error:"),
        ('<schema><declaration name="A" access="open"/></schema>', "Schema error:"),
    ],
)
def test_t_10_main_reports_schema_failures(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    schema_text: str,
    expected_prefix: str,
) -> None:
    schema = tmp_path / "bad.xml"
    schema.write_text(schema_text, encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        screengen.main(["--schema", str(schema), "--output-dir", str(tmp_path / "o")])

    assert exc_info.value.code == 1
    assert capsys.readouterr().out.splitlines()[-1].startswith(expected_prefix)


def test_t_11_main_reports_unsupported_argument_and_writes_siblings(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    schema = tmp_path / "screens.xml"
    schema.write_text(
        '<schema version="1">'
        '<declaration name="Good"><case name="home"/></declaration>'
        '<declaration name="Broken"><case name="detail">'
        '<attribute name="Screen"><arg>makeView()</arg></attribute>'
        "</case></declaration>"
        '<declaration name="BadMapping"><case name="detail">'
        '<attribute name="Screen"><arg>DetailView.self</arg><arg>makeMapping()</arg></attribute>'
        "</case></declaration>"
        "</schema>",
        encoding="utf-8",
    )
    output_dir = tmp_path / "Generated"

    with pytest.raises(SystemExit) as exc_info:
        screengen.main(["--schema", str(schema), "--output-dir", str(output_dir)])

    captured = capsys.readouterr()
    assert exc_info.value.code == 1
    assert sorted(p.name for p in output_dir.iterdir()) == ["Good+Screens.swift"]
    assert "error[invalidScreenAttribute] Broken.detail:" in captured.err
    assert "error[invalidMappingArgument] BadMapping.detail:" in captured.err
