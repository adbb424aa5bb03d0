import argparse
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import screengen  # noqa: E402


FIXTURE_SCHEMA = GENERATOR_DIR / "tests" / "fixtures" / "screens_minimal.xml"


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    schema = tmp_path / "Screens.xml"
    schema.write_text('<schema version="1" />\n', encoding="utf-8")

    output_dir = tmp_path / "out"
    return {
        "schema": schema,
        "output_dir": output_dir,
    }


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing"


@pytest.fixture
def fixture_schema() -> Path:
    return FIXTURE_SCHEMA


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "schema": existing_paths["schema"],
            "output_dir": existing_paths["output_dir"],
            "decl": None,
            "imports": None,
            "unlabeled_arguments": None,
            "list_declarations": False,
            "info": None,
            "filter": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_schema_root() -> Callable[..., ET.Element]:
    def _make_schema_root(inner_xml: str, version: str = "1") -> ET.Element:
        return ET.fromstring(f'<schema version="{version}">{inner_xml}</schema>')

    return _make_schema_root


@pytest.fixture
def make_slot() -> Callable[..., screengen.ParameterSlot]:
    def _make_slot(
        label: str | None = None,
        name: str | None = None,
        type_text: str = "Int",
    ) -> screengen.ParameterSlot:
        return screengen.ParameterSlot(label=label, name=name, type_text=type_text)

    return _make_slot


@pytest.fixture
def make_screen_attribute() -> Callable[..., screengen.AttributeDecl]:
    def _make_screen_attribute(
        *arguments: str, name: str = "Screen"
    ) -> screengen.AttributeDecl:
        return screengen.AttributeDecl(
            name=name,
            arguments=tuple(screengen.parse_attribute_argument(arg) for arg in arguments),
        )

    return _make_screen_attribute


@pytest.fixture
def make_case() -> Callable[..., screengen.CaseDecl]:
    def _make_case(
        name: str,
        parameters: tuple[screengen.ParameterSlot, ...] = (),
        attributes: tuple[screengen.AttributeDecl, ...] = (),
    ) -> screengen.CaseDecl:
        return screengen.CaseDecl(
            name=name, parameters=parameters, attributes=attributes
        )

    return _make_case


@pytest.fixture
def make_decl() -> Callable[..., screengen.DeclarationSchema]:
    def _make_decl(
        cases: tuple[screengen.CaseDecl, ...] = (),
        *,
        name: str = "ScreenID",
        kind: str = "enum",
        access: str | None = None,
    ) -> screengen.DeclarationSchema:
        return screengen.DeclarationSchema(
            name=name, kind=kind, access=access, cases=cases
        )

    return _make_decl
