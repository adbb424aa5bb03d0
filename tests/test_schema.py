from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

import screengen


def test_load_schema_reads_fixture(fixture_schema: Path) -> None:
    schema = screengen.load_schema(fixture_schema)

    assert schema.version == "1"
    assert [d.name for d in schema.declarations] == ["ScreenID", "SheetID", "NotAnEnum"]

    screen = schema.declarations[0]
    assert screen.is_enum
    assert screen.access == "public"
    assert [c.name for c in screen.cases] == [
        "home",
        "detail",
        "preview",
        "profile",
        "search",
        "settings",
        "about",
    ]
    assert schema.declarations[2].is_enum is False


def test_parse_declaration_reads_parameters_and_attributes(
    make_schema_root: Callable[..., ET.Element],
) -> None:
    root = make_schema_root(
        '<declaration kind="enum" name="SheetID">'
        '<case name="compose">'
        '<attribute name="Screen"><arg>ComposeView.self</arg><arg>["draft": "_"]</arg></attribute>'
        '<param label="draft" name="initialDraft" type="Draft"/>'
        '<param type="Bool"/>'
        "</case>"
        "</declaration>"
    )

    decl = screengen.parse_schema(root).declarations[0]
    case = decl.cases[0]

    assert decl.access is None
    assert case.parameters == (
        screengen.ParameterSlot(label="draft", name="initialDraft", type_text="Draft"),
        screengen.ParameterSlot(label=None, name=None, type_text="Bool"),
    )
    assert case.attributes[0].name == "Screen"
    assert [a.text for a in case.attributes[0].arguments] == [
        "ComposeView.self",
        '["draft": "_"]',
    ]


def test_parse_case_group_splits_elements_and_shares_attributes(
    make_schema_root: Callable[..., ET.Element],
) -> None:
    root = make_schema_root(
        '<declaration name="ScreenID">'
        '<case><attribute name="Screen"><arg>Shared.self</arg></attribute>'
        '<element name="a"><param label="id" type="Int"/></element>'
        '<element name="b"/></case>'
        "</declaration>"
    )

    cases = screengen.parse_schema(root).declarations[0].cases

    assert [c.name for c in cases] == ["a", "b"]
    assert cases[0].attributes == cases[1].attributes
    assert len(cases[0].parameters) == 1
    assert cases[1].parameters == ()


def test_parse_parameter_treats_blank_label_and_name_as_absent() -> None:
    slot = screengen.parse_parameter(ET.fromstring('<param label="  " name=" " type="Int"/>'))

    assert slot == screengen.ParameterSlot(label=None, name=None, type_text="Int")


def test_parse_attribute_keeps_unsupported_arguments_opaque(
    make_schema_root: Callable[..., ET.Element],
) -> None:
    root = make_schema_root(
        '<declaration name="ScreenID"><case name="a">'
        '<attribute name="Screen"><arg>MyView.</arg><arg>makeMapping()</arg></attribute>'
        "</case></declaration>"
    )

    attribute = screengen.parse_schema(root).declarations[0].cases[0].attributes[0]

    assert attribute.arguments == (
        screengen.UnparsedExpr(text="MyView."),
        screengen.UnparsedExpr(text="makeMapping()"),
    )


def test_declaration_kind_defaults_to_enum(
    make_schema_root: Callable[..., ET.Element],
) -> None:
    root = make_schema_root('<declaration name="ScreenID"/>')

    assert screengen.parse_schema(root).declarations[0].kind == "enum"


def test_extract_schema_version_defaults_when_absent() -> None:
    assert screengen.extract_schema_version(ET.fromstring("<schema/>")) == "unversioned"
    assert screengen.extract_schema_version(ET.fromstring('<schema version="2"/>')) == "2"


@pytest.mark.parametrize(
    "inner_xml",
    [
        '<declaration kind="enum"/>',
        '<declaration name="Screen-ID"/>',
        '<declaration name="ScreenID" access="open"/>',
        '<declaration name="ScreenID"/><declaration name="ScreenID"/>',
        '<declaration name="ScreenID"><case/></declaration>',
        '<declaration name="ScreenID"><case name="a"><param label="id"/></case></declaration>',
        '<declaration name="ScreenID"><case name="x"><element name="a"/></case></declaration>',
        '<declaration name="ScreenID"><case name="a">'
        '<attribute name="Screen"><arg>  </arg></attribute></case></declaration>',
    ],
)
def test_parse_schema_rejects_invalid_documents(
    make_schema_root: Callable[..., ET.Element],
    inner_xml: str,
) -> None:
    with pytest.raises(screengen.SchemaError):
        screengen.parse_schema(make_schema_root(inner_xml))


def test_parse_schema_requires_schema_root() -> None:
    with pytest.raises(screengen.SchemaError):
        screengen.parse_schema(ET.fromstring("<registry/>"))


def test_load_schema_propagates_xml_parse_errors(tmp_path: Path) -> None:
    broken = tmp_path / "broken.xml"
    broken.write_text("<schema>", encoding="utf-8")

    with pytest.raises(ET.ParseError):
        screengen.load_schema(broken)


def test_select_declarations_filters_and_rejects_unknown(fixture_schema: Path) -> None:
    schema = screengen.load_schema(fixture_schema)

    assert screengen.select_declarations(schema, frozenset()) == schema.declarations
    selected = screengen.select_declarations(schema, frozenset({"SheetID"}))
    assert [d.name for d in selected] == ["SheetID"]

    with pytest.raises(screengen.SchemaError, match="Missing"):
        screengen.select_declarations(schema, frozenset({"Missing"}))


@pytest.mark.parametrize(
    ("slots", "expected"),
    [
        ((), "home"),
        ((screengen.ParameterSlot("id", None, "Int"),), "home(id: Int)"),
        ((screengen.ParameterSlot(None, None, "Int"),), "home(Int)"),
        ((screengen.ParameterSlot("for", "owner", "User"),), "home(for owner: User)"),
    ],
)
def test_format_case_signature(
    slots: tuple[screengen.ParameterSlot, ...], expected: str
) -> None:
    case = screengen.CaseDecl(name="home", parameters=slots, attributes=())
    assert screengen.format_case_signature(case) == expected
