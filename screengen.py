"""SwiftUI screen dispatcher generator.

Generates `View` conformances for screen enums described in an XML schema.
Every enum case becomes one arm of a `switch self` inside a generated `body`
that instantiates the view named after the case (or the view given by the
case's `@Screen` attribute).

Usage:
    python screengen.py --schema Screens.xml --output-dir Sources/Generated
"""

import argparse
import re
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple

DEFAULT_OUTPUT_DIR = Path("Generated")
DEFAULT_IMPORTS: tuple[str, ...] = ("SwiftUI", "ScreenMacros")


# ===--- CLI config contracts ---=== #


class UnlabeledArgumentPolicy(str, Enum):
    """How an unlabeled associated value is passed to the view initializer.

    POSITIONAL passes it without a label (`Preview(param0)`). LABELED uses the
    synthesized binding name as the label (`Preview(param0: param0)`), which
    was the behavior of earlier releases. An explicit mapping entry for the
    synthesized name always wins over the policy.
    """

    POSITIONAL = "positional"
    LABELED = "labeled"


DEFAULT_UNLABELED_POLICY = UnlabeledArgumentPolicy.POSITIONAL


@dataclass(frozen=True)
class GenerateConfig:
    schema: Path
    output_dir: Path
    declarations: frozenset[str]
    imports: tuple[str, ...]
    unlabeled_arguments: UnlabeledArgumentPolicy


@dataclass(frozen=True)
class DiscoveryConfig:
    command: str
    filter_text: str | None
    info_declaration: str | None
    schema: Path
    unlabeled_arguments: UnlabeledArgumentPolicy


VALID_ERROR_CODES = {
    "MISSING_SCHEMA",
    "PATH_NOT_FOUND",
    "INVALID_DECLARATION_NAME",
    "INVALID_IMPORT_NAME",
    "CONFLICT_GENERATE_DISCOVERY",
    "FILTER_WITHOUT_LIST",
}
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_declaration_name(name: str) -> str:
    if _IDENTIFIER_RE.match(name):
        return name
    raise ConfigError(
        "INVALID_DECLARATION_NAME",
        f"Invalid declaration name: {name}",
        "Declaration names are Swift identifiers (for example ScreenID).",
    )


def validate_import_name(name: str) -> str:
    if _IDENTIFIER_RE.match(name):
        return name
    raise ConfigError(
        "INVALID_IMPORT_NAME",
        f"Invalid module name for --imports: {name}",
        "Pass plain Swift module names, for example --imports SwiftUI ScreenMacros.",
    )


def validate_path_exists(path: Path, flag: str, suggestion: str | None = None) -> Path:
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate SwiftUI screen dispatchers from a screen schema"
    )

    parser.add_argument("--schema", type=Path, default=None)
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--decl", action="append", nargs="+", default=None)
    parser.add_argument("--imports", nargs="+", default=None)
    parser.add_argument(
        "--unlabeled-arguments",
        choices=[policy.value for policy in UnlabeledArgumentPolicy],
        default=None,
    )

    discovery_group = parser.add_mutually_exclusive_group()
    discovery_group.add_argument(
        "--list-declarations", action="store_true", default=False
    )
    discovery_group.add_argument("--info", type=str, default=None)

    parser.add_argument("--filter", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def normalize_declaration_names(raw_names: object) -> tuple[str, ...]:
    if raw_names is None:
        return tuple()
    if not isinstance(raw_names, list):
        raise ConfigError(
            "INVALID_DECLARATION_NAME",
            f"Invalid --decl value type: {type(raw_names).__name__}",
            "Pass declaration names as --decl ScreenID.",
        )

    normalized: list[str] = []
    for entry in raw_names:
        if isinstance(entry, str):
            normalized.append(entry)
            continue
        if isinstance(entry, list):
            for name in entry:
                if not isinstance(name, str):
                    raise ConfigError(
                        "INVALID_DECLARATION_NAME",
                        f"Invalid declaration name type: {type(name).__name__}",
                        "Pass declaration names as --decl ScreenID.",
                    )
                normalized.append(name)
            continue
        raise ConfigError(
            "INVALID_DECLARATION_NAME",
            f"Invalid --decl entry type: {type(entry).__name__}",
            "Pass declaration names as --decl ScreenID.",
        )

    return tuple(normalized)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    raw_declarations = normalize_declaration_names(args.decl)
    has_generate_input = bool(raw_declarations or args.imports is not None)
    has_discovery_command = bool(args.list_declarations or args.info)

    if args.filter and not args.list_declarations:
        raise ConfigError(
            "FILTER_WITHOUT_LIST",
            "--filter requires --list-declarations.",
            "Add --list-declarations or remove --filter.",
        )

    if has_generate_input and has_discovery_command:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with discovery flags.",
            "Choose either generate mode or one discovery command.",
        )

    if args.schema is None:
        raise ConfigError(
            "MISSING_SCHEMA",
            "A screen schema is required: pass --schema.",
            "Point --schema at the XML file describing your screen enums.",
        )
    schema = validate_path_exists(args.schema, "--schema")

    policy = (
        UnlabeledArgumentPolicy(args.unlabeled_arguments)
        if args.unlabeled_arguments is not None
        else DEFAULT_UNLABELED_POLICY
    )

    if has_discovery_command:
        command = "list-declarations" if args.list_declarations else "info"
        info_declaration = (
            validate_declaration_name(args.info) if args.info is not None else None
        )
        return DiscoveryConfig(
            command=command,
            filter_text=args.filter,
            info_declaration=info_declaration,
            schema=schema,
            unlabeled_arguments=policy,
        )

    declarations = frozenset(
        validate_declaration_name(name) for name in raw_declarations
    )
    imports = (
        tuple(validate_import_name(name) for name in args.imports)
        if args.imports is not None
        else DEFAULT_IMPORTS
    )

    return GenerateConfig(
        schema=schema,
        output_dir=args.output_dir,
        declarations=declarations,
        imports=imports,
        unlabeled_arguments=policy,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Constants ---=== #

SCREENS_ATTRIBUTE_NAME = "Screens"
SCREEN_ATTRIBUTE_NAME = "Screen"
SCREENS_CONFORMANCES: tuple[str, ...] = ("View", "ScreenMacros.Screens")

ACCESS_LEVELS: tuple[str, ...] = ("public", "internal", "fileprivate", "private")

# Binding names for unlabeled associated values: param0, param1, ...
UNLABELED_PARAMETER_PREFIX = "param"

# Mapping value that strips the label from an initializer argument.
UNLABELED_ARGUMENT_LABEL = "_"

_INDENT = "    "


# ===--- Diagnostics ---=== #

DIAGNOSTIC_DOMAIN = "ScreenMacros"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

NOT_AN_ENUM = "notAnEnum"
INVALID_SCREEN_ATTRIBUTE = "invalidScreenAttribute"
INVALID_MAPPING_ARGUMENT = "invalidMappingArgument"
UNSUPPORTED_TYPE_EXPRESSION = "unsupportedTypeExpression"
UNUSED_MAPPING_KEYS = "unusedMappingKeys"

ERROR_MESSAGES: dict[str, str] = {
    NOT_AN_ENUM: "@Screens can only be applied to an enum",
    INVALID_SCREEN_ATTRIBUTE: (
        "@Screen expects a View type and/or a parameter mapping "
        '(e.g., @Screen(MyView.self), @Screen(["id": "detailId"]), '
        '@Screen(MyView.self, ["id": "detailId"]))'
    ),
    INVALID_MAPPING_ARGUMENT: (
        "@Screen's second argument must be a dictionary literal "
        '(e.g., ["id": "detailId"])'
    ),
    UNSUPPORTED_TYPE_EXPRESSION: (
        "@Screen's View type expression is not supported. "
        "Use simple types, module-qualified types, or generic types "
        "(e.g., MyView.self, Module.MyView.self, GenericView<Int>.self)"
    ),
}


@dataclass(frozen=True)
class DiagnosticAnchor:
    """Where a diagnostic points: a declaration, optionally one of its cases."""

    declaration: str
    case: str | None = None

    def __str__(self) -> str:
        if self.case is None:
            return self.declaration
        return f"{self.declaration}.{self.case}"


@dataclass(frozen=True)
class Diagnostic:
    """One error or warning produced while expanding a declaration.

    Attributes:
        severity: SEVERITY_ERROR or SEVERITY_WARNING.
        diagnostic_id: Stable identifier, e.g. "unusedMappingKeys".
        message: User-facing message text.
        anchor: Declaration (and case) the diagnostic is attached to.
    """

    severity: str
    diagnostic_id: str
    message: str
    anchor: DiagnosticAnchor

    @property
    def message_id(self) -> str:
        return f"{DIAGNOSTIC_DOMAIN}.{self.diagnostic_id}"


class ScreenMacroError(Exception):
    """Fatal expansion error. Aborts generation for the whole declaration."""

    def __init__(self, diagnostic_id: str):
        if diagnostic_id not in ERROR_MESSAGES:
            raise ValueError(f"Unknown screen macro error: {diagnostic_id}")
        super().__init__(ERROR_MESSAGES[diagnostic_id])
        self.diagnostic_id = diagnostic_id
        self.message = ERROR_MESSAGES[diagnostic_id]

    def to_diagnostic(self, anchor: DiagnosticAnchor) -> Diagnostic:
        return Diagnostic(
            severity=SEVERITY_ERROR,
            diagnostic_id=self.diagnostic_id,
            message=self.message,
            anchor=anchor,
        )


def unused_mapping_keys_warning(
    keys: list[str], case_name: str, anchor: DiagnosticAnchor
) -> Diagnostic:
    key_list = ", ".join(f'"{key}"' for key in keys)
    return Diagnostic(
        severity=SEVERITY_WARNING,
        diagnostic_id=UNUSED_MAPPING_KEYS,
        message=(
            f"Mapping keys [{key_list}] do not match any parameter labels "
            f"in case '{case_name}' and will be ignored"
        ),
        anchor=anchor,
    )


def format_diagnostic(diagnostic: Diagnostic) -> str:
    return (
        f"{diagnostic.severity}[{diagnostic.diagnostic_id}] "
        f"{diagnostic.anchor}: {diagnostic.message}"
    )


# ===--- Attribute expression trees ---=== #


@dataclass(frozen=True)
class Expr:
    """Base class for attribute argument expressions.

    `text` is the trimmed source text the node was parsed from.
    """

    text: str


@dataclass(frozen=True)
class DeclReference(Expr):
    name: str


@dataclass(frozen=True)
class MemberAccess(Expr):
    # base is None for implicit member expressions such as `.home`.
    base: Expr | None
    member: str


@dataclass(frozen=True)
class GenericSpecialization(Expr):
    base: Expr
    arguments: tuple[str, ...]


@dataclass(frozen=True)
class StringLiteral(Expr):
    """A single-line string literal.

    `value` is the raw content between the quotes, escapes not decoded.
    """

    value: str
    interpolated: bool = False

    @property
    def leading_segment(self) -> str | None:
        """Literal text before the first interpolation.

        None when the literal opens with an interpolation: `"\\(x)id"` has no
        leading segment, `"id\\(x)"` has "id".
        """
        offset = _interpolation_offset(self.value)
        if offset < 0:
            return self.value
        if offset == 0:
            return None
        return self.value[:offset]


def _interpolation_offset(content: str) -> int:
    index = 0
    while index < len(content):
        if content[index] == "\\":
            if content.startswith("(", index + 1):
                return index
            index += 2
            continue
        index += 1
    return -1


@dataclass(frozen=True)
class NumberLiteral(Expr):
    pass


@dataclass(frozen=True)
class KeywordLiteral(Expr):
    pass


@dataclass(frozen=True)
class DictionaryLiteral(Expr):
    elements: tuple[tuple[Expr, Expr], ...]


@dataclass(frozen=True)
class ArrayLiteral(Expr):
    elements: tuple[Expr, ...]


@dataclass(frozen=True)
class TupleExpr(Expr):
    elements: tuple[Expr, ...]


@dataclass(frozen=True)
class ClosureExpr(Expr):
    pass


@dataclass(frozen=True)
class FunctionTypeExpr(Expr):
    pass


@dataclass(frozen=True)
class TypePrefixExpr(Expr):
    """`any P` or `some P`."""

    keyword: str
    operand: str


@dataclass(frozen=True)
class UnparsedExpr(Expr):
    """Argument text outside the supported grammar (calls, operators, ...)."""


# ===--- Schema model ---=== #


class SchemaError(ValueError):
    """The screen schema (or an attribute argument in it) is malformed."""


@dataclass(frozen=True)
class ParameterSlot:
    """One associated value slot of a case: `label name: Type`."""

    label: str | None
    name: str | None
    type_text: str


@dataclass(frozen=True)
class AttributeDecl:
    name: str
    arguments: tuple[Expr, ...]


@dataclass(frozen=True)
class CaseDecl:
    name: str
    parameters: tuple[ParameterSlot, ...]
    attributes: tuple[AttributeDecl, ...]


@dataclass(frozen=True)
class DeclarationSchema:
    """A declaration the `@Screens` attribute was applied to.

    Attributes:
        name: Type name, e.g. "ScreenID".
        kind: Declaration kind as written ("enum", "struct", ...).
        access: Explicit access modifier, or None for the implicit default.
        cases: Enum cases in declaration order.
    """

    name: str
    kind: str
    access: str | None
    cases: tuple[CaseDecl, ...]

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"


@dataclass(frozen=True)
class Schema:
    version: str
    declarations: tuple[DeclarationSchema, ...]


# ===--- Expression parsing ---=== #


class Token(NamedTuple):
    kind: str
    value: str
    start: int
    end: int


_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<number>\d[\d_]*(?:\.\d[\d_]*)?)
    |(?P<ident>`[A-Za-z_][A-Za-z0-9_]*`|[A-Za-z_$][A-Za-z0-9_]*)
    |(?P<arrow>->)
    |(?P<punct>[.,:<>\[\](){}?!&])
    |(?P<other>\S)
    """,
    re.VERBOSE,
)

_KEYWORD_LITERALS = {"true", "false", "nil"}
_TYPE_PREFIX_KEYWORDS = {"any", "some"}
_FUNCTION_EFFECT_KEYWORDS = {"async", "throws"}


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        assert match is not None  # the `other` branch matches any character
        kind = match.lastgroup or "other"
        if kind != "space":
            tokens.append(Token(kind, match.group(), match.start(), match.end()))
        pos = match.end()
    return tokens


def _strip_backticks(name: str) -> str:
    if len(name) > 2 and name.startswith("`") and name.endswith("`"):
        return name[1:-1]
    return name


class _ExpressionParser:
    """Recursive-descent parser for the expressions allowed in attribute arguments.

    Covers what `@Screen` arguments are written with in practice: type
    references (`View.self`, `Module.View<Int>.self`), dictionary and array
    literals, string and number literals, tuples, closures and function types,
    and `any`/`some` types. Anything else raises SchemaError.
    """

    def __init__(self, source: str):
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0

    def parse(self) -> Expr:
        if not self.tokens:
            raise SchemaError("Attribute argument is empty")
        expr = self._postfix_expression()
        if self._peek() is not None:
            raise self._error("unexpected trailing input")
        return expr

    # Token helpers

    def _peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def _at(self, value: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return (
            tok is not None
            and tok.kind in ("punct", "arrow", "other")
            and tok.value == value
        )

    def _advance(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise self._error("unexpected end of expression")
        self.pos += 1
        return tok

    def _expect(self, value: str) -> Token:
        if not self._at(value):
            raise self._error(f"expected {value!r}")
        return self._advance()

    def _slice(self, start_index: int) -> str:
        start = self.tokens[start_index].start
        end = self.tokens[self.pos - 1].end
        return self.source[start:end]

    def _error(self, message: str, tok: Token | None = None) -> SchemaError:
        tok = tok or self._peek()
        where = f"offset {tok.start}" if tok is not None else "end of input"
        return SchemaError(
            f"Cannot parse attribute argument {self.source!r}: {message} at {where}"
        )

    # Expressions

    def _postfix_expression(self) -> Expr:
        start = self.pos
        node = self._primary_expression()
        while True:
            if self._at("."):
                self._advance()
                member = self._advance()
                if member.kind not in ("ident", "number"):
                    raise self._error("expected member name", member)
                node = MemberAccess(
                    text=self._slice(start),
                    base=node,
                    member=_strip_backticks(member.value),
                )
            elif self._at("<") and _is_type_like(node):
                arguments = self._generic_arguments()
                node = GenericSpecialization(
                    text=self._slice(start), base=node, arguments=arguments
                )
            else:
                return node

    def _primary_expression(self) -> Expr:
        start = self.pos
        tok = self._advance()

        if tok.kind == "ident":
            nxt = self._peek()
            if tok.value in _TYPE_PREFIX_KEYWORDS and nxt is not None and (
                nxt.kind == "ident" or nxt.value in ("(", "[")
            ):
                operand_start = self.pos
                self._type()
                return TypePrefixExpr(
                    text=self._slice(start),
                    keyword=tok.value,
                    operand=self._slice(operand_start),
                )
            if tok.value in _KEYWORD_LITERALS:
                return KeywordLiteral(text=tok.value)
            return DeclReference(text=tok.value, name=_strip_backticks(tok.value))

        if tok.kind == "string":
            content = tok.value[1:-1]
            return StringLiteral(
                text=tok.value,
                value=content,
                interpolated=_interpolation_offset(content) >= 0,
            )

        if tok.kind == "number":
            return NumberLiteral(text=tok.value)

        if tok.kind == "other" and tok.value == "-":
            nxt = self._peek()
            if nxt is not None and nxt.kind == "number":
                self._advance()
                return NumberLiteral(text=self._slice(start))

        if tok.kind == "punct":
            if tok.value == ".":
                member = self._advance()
                if member.kind != "ident":
                    raise self._error("expected member name", member)
                return MemberAccess(
                    text=self._slice(start),
                    base=None,
                    member=_strip_backticks(member.value),
                )
            if tok.value == "[":
                return self._collection_literal(start)
            if tok.value == "(":
                return self._parenthesized(start)
            if tok.value == "{":
                return self._closure(start)

        raise self._error(f"unexpected {tok.value!r}", tok)

    def _collection_literal(self, start: int) -> Expr:
        if self._at(":"):
            self._advance()
            self._expect("]")
            return DictionaryLiteral(text=self._slice(start), elements=())
        if self._at("]"):
            self._advance()
            return ArrayLiteral(text=self._slice(start), elements=())

        first = self._collection_element((":", ",", "]"))
        if self._at(":"):
            self._advance()
            pairs = [(first, self._collection_element((",", "]")))]
            while self._at(","):
                self._advance()
                if self._at("]"):
                    break
                key = self._collection_element((":",))
                self._expect(":")
                pairs.append((key, self._collection_element((",", "]"))))
            self._expect("]")
            return DictionaryLiteral(text=self._slice(start), elements=tuple(pairs))

        items = [first]
        while self._at(","):
            self._advance()
            if self._at("]"):
                break
            items.append(self._collection_element((",", "]")))
        self._expect("]")
        return ArrayLiteral(text=self._slice(start), elements=tuple(items))

    def _collection_element(self, stops: tuple[str, ...]) -> Expr:
        """Parse one key, value or item; unreadable text becomes UnparsedExpr.

        The element must end at one of `stops` (at bracket depth zero).
        """
        start = self.pos
        try:
            expr = self._postfix_expression()
        except SchemaError:
            pass
        else:
            if any(self._at(stop) for stop in stops):
                return expr

        self.pos = start
        depth = 0
        while True:
            tok = self._peek()
            if tok is None:
                raise self._error("expected ']'")
            if tok.kind == "punct":
                if depth == 0 and tok.value in stops:
                    break
                if tok.value in ("(", "[", "{"):
                    depth += 1
                elif tok.value in (")", "]", "}"):
                    if depth == 0:
                        raise self._error(f"unbalanced {tok.value!r}", tok)
                    depth -= 1
            self.pos += 1

        if self.pos == start:
            raise self._error("expected an element")
        return UnparsedExpr(text=self._slice(start))

    def _parenthesized(self, start: int) -> Expr:
        items: list[Expr] = []
        if not self._at(")"):
            while True:
                self._skip_element_label()
                items.append(self._postfix_expression())
                if not self._at(","):
                    break
                self._advance()
        self._expect(")")
        if self._skip_function_result():
            return FunctionTypeExpr(text=self._slice(start))
        return TupleExpr(text=self._slice(start), elements=tuple(items))

    def _closure(self, start: int) -> Expr:
        depth = 1
        while depth:
            tok = self._advance()
            if tok.kind == "punct" and tok.value == "{":
                depth += 1
            elif tok.kind == "punct" and tok.value == "}":
                depth -= 1
        return ClosureExpr(text=self._slice(start))

    def _skip_element_label(self) -> None:
        tok = self._peek()
        if tok is not None and tok.kind == "ident" and self._at(":", 1):
            self.pos += 2

    def _skip_function_result(self) -> bool:
        while (tok := self._peek()) is not None and (
            tok.kind == "ident" and tok.value in _FUNCTION_EFFECT_KEYWORDS
        ):
            self._advance()
        if not self._at("->"):
            return False
        self._advance()
        self._type()
        return True

    # Types (generic arguments and `any`/`some` operands)

    def _generic_arguments(self) -> tuple[str, ...]:
        self._expect("<")
        arguments: list[str] = []
        while True:
            arg_start = self.pos
            self._type()
            arguments.append(self._slice(arg_start))
            if self._at(","):
                self._advance()
                continue
            self._expect(">")
            return tuple(arguments)

    def _type(self) -> None:
        self._type_operand()
        while self._at("&"):
            self._advance()
            self._type_operand()

    def _type_operand(self) -> None:
        tok = self._advance()
        if tok.kind == "ident" and tok.value in _TYPE_PREFIX_KEYWORDS:
            self._type_operand()
            return
        if tok.kind == "ident":
            if self._at("<"):
                self._generic_arguments()
            while self._at(".") and (nxt := self._peek(1)) is not None and (
                nxt.kind == "ident"
            ):
                self._advance()
                self._advance()
                if self._at("<"):
                    self._generic_arguments()
        elif tok.kind == "punct" and tok.value == "[":
            self._type()
            if self._at(":"):
                self._advance()
                self._type()
            self._expect("]")
        elif tok.kind == "punct" and tok.value == "(":
            if not self._at(")"):
                while True:
                    self._skip_element_label()
                    self._type()
                    if not self._at(","):
                        break
                    self._advance()
            self._expect(")")
            self._skip_function_result()
        else:
            raise self._error(f"expected a type, found {tok.value!r}", tok)
        while self._at("?") or self._at("!"):
            self._advance()


def _is_type_like(node: Expr) -> bool:
    if isinstance(node, DeclReference):
        return True
    return (
        isinstance(node, MemberAccess)
        and node.base is not None
        and node.member != "self"
    )


def parse_expression(source: str) -> Expr:
    """Parse one attribute argument, e.g. `ProfileView.self` or `["id": "userId"]`.

    Raises:
        SchemaError: The text is not a supported expression.
    """
    return _ExpressionParser(source).parse()


# ===--- Schema loading ---=== #


def _require_attr(el: ET.Element, attr: str) -> str:
    value = el.get(attr)
    if value is None or not value.strip():
        raise SchemaError(f"<{el.tag}> is missing required attribute '{attr}'")
    return value.strip()


def _optional_attr(el: ET.Element, attr: str) -> str | None:
    value = (el.get(attr) or "").strip()
    return value or None


def parse_parameter(el: ET.Element) -> ParameterSlot:
    return ParameterSlot(
        label=_optional_attr(el, "label"),
        name=_optional_attr(el, "name"),
        type_text=_require_attr(el, "type"),
    )


_SELF_SUFFIX_RE = re.compile(r"^(?P<base>.*\S)\s*\.\s*self$", re.DOTALL)


def parse_attribute_argument(text: str) -> Expr:
    """Parse one `<arg>`, keeping unsupported text as UnparsedExpr.

    `makeView()` stays opaque so the case is rejected during expansion rather
    than at load time. `makeView().self` keeps its `.self` suffix so it is
    reported as an unsupported type expression.
    """
    try:
        return parse_expression(text)
    except SchemaError:
        pass
    match = _SELF_SUFFIX_RE.match(text)
    if match:
        base = parse_attribute_argument(match.group("base"))
        return MemberAccess(text=text, base=base, member="self")
    return UnparsedExpr(text=text)


def parse_attribute(el: ET.Element) -> AttributeDecl:
    arguments: list[Expr] = []
    for arg in el.findall("arg"):
        text = (arg.text or "").strip()
        if not text:
            raise SchemaError(f"<arg> of attribute '{el.get('name')}' is empty")
        arguments.append(parse_attribute_argument(text))
    return AttributeDecl(name=_require_attr(el, "name"), arguments=tuple(arguments))


def parse_case_group(el: ET.Element) -> tuple[CaseDecl, ...]:
    """Parse one `<case>` element into its enum case elements.

    A `<case name="...">` element is a single case. A `<case>` with
    `<element>` children models `case a, b`: its attributes apply to every
    element and each element carries its own parameters.
    """
    attributes = tuple(parse_attribute(attr) for attr in el.findall("attribute"))
    elements = el.findall("element")

    if not elements:
        parameters = tuple(parse_parameter(p) for p in el.findall("param"))
        return (CaseDecl(_require_attr(el, "name"), parameters, attributes),)

    if el.get("name") is not None:
        raise SchemaError(
            "<case> must not combine a name attribute with <element> children"
        )
    return tuple(
        CaseDecl(
            name=_require_attr(element, "name"),
            parameters=tuple(parse_parameter(p) for p in element.findall("param")),
            attributes=attributes,
        )
        for element in elements
    )


def parse_declaration(el: ET.Element) -> DeclarationSchema:
    name = _require_attr(el, "name")
    if not _IDENTIFIER_RE.match(name):
        raise SchemaError(f"Invalid declaration name: {name!r}")

    access = el.get("access")
    if access is not None and access not in ACCESS_LEVELS:
        raise SchemaError(
            f"Declaration '{name}' has unknown access level {access!r}; "
            f"expected one of: {', '.join(ACCESS_LEVELS)}"
        )

    cases: list[CaseDecl] = []
    for case_el in el.findall("case"):
        cases.extend(parse_case_group(case_el))

    return DeclarationSchema(
        name=name,
        kind=el.get("kind", "enum").strip(),
        access=access,
        cases=tuple(cases),
    )


def extract_schema_version(root: ET.Element) -> str:
    """Return the schema's version= attribute, or "unversioned" when absent."""
    version = (root.get("version") or "").strip()
    return version or "unversioned"


def parse_schema(root: ET.Element) -> Schema:
    if root.tag != "schema":
        raise SchemaError(f"Expected <schema> root element, found <{root.tag}>")

    declarations = tuple(parse_declaration(el) for el in root.findall("declaration"))
    seen: set[str] = set()
    for decl in declarations:
        if decl.name in seen:
            raise SchemaError(f"Duplicate declaration '{decl.name}' in schema")
        seen.add(decl.name)

    return Schema(version=extract_schema_version(root), declarations=declarations)


def load_schema(path: Path) -> Schema:
    """Parse a schema file from disk.

    Raises:
        OSError: File not readable.
        ET.ParseError: Malformed XML.
        SchemaError: Well-formed XML that does not describe a valid schema.
    """
    return parse_schema(ET.parse(path).getroot())


def format_case_signature(case: CaseDecl) -> str:
    if not case.parameters:
        return case.name
    slots = []
    for slot in case.parameters:
        if slot.label is None:
            slots.append(slot.type_text)
        elif slot.name is not None and slot.name != slot.label:
            slots.append(f"{slot.label} {slot.name}: {slot.type_text}")
        else:
            slots.append(f"{slot.label}: {slot.type_text}")
    return f"{case.name}({', '.join(slots)})"


# ===--- View type inference ---=== #


def infer_type_name(case_name: str) -> str:
    """Uppercase the first character of a case name: "appleLogo" -> "AppleLogo"."""
    if not case_name:
        return case_name
    first = case_name[0].upper()
    # Keep the name's length when uppercasing expands a character ("ß" -> "SS").
    if len(first) != 1:
        first = case_name[0]
    return first + case_name[1:]


# ===--- Parameter extraction ---=== #


@dataclass(frozen=True)
class ParameterInfo:
    """A case parameter as seen by the generated code.

    Attributes:
        label: External label of the associated value, None when unlabeled.
        name: Binding name used in the switch pattern. The internal name
            when declared, else the label, else "param<index>".
    """

    label: str | None
    name: str

    @property
    def source_key(self) -> str:
        return self.label if self.label is not None else self.name


def extract_parameters(slots: tuple[ParameterSlot, ...]) -> tuple[ParameterInfo, ...]:
    """Derive binding names for a case's associated values.

    `detail(id: Int)` yields [("id", "id")]; `preview(Int, name: String)`
    yields [(None, "param0"), ("name", "name")]. The index counts every slot,
    labeled or not.
    """
    parameters: list[ParameterInfo] = []
    for index, slot in enumerate(slots):
        if slot.label is not None:
            parameters.append(
                ParameterInfo(label=slot.label, name=slot.name or slot.label)
            )
        else:
            parameters.append(
                ParameterInfo(label=None, name=f"{UNLABELED_PARAMETER_PREFIX}{index}")
            )
    return tuple(parameters)


# ===--- Type expression resolution ---=== #


def stringify_type_expression(expr: Expr) -> str | None:
    """Render a type reference expression as a type name.

    Supported:
        SomeView                          -> "SomeView"
        SomeView.self                     -> "SomeView"
        Module.SomeView                   -> "Module.SomeView"
        GenericView<Int, [String]>        -> "GenericView<Int, [String]>"
        Module.GenericView<Int>.self      -> "Module.GenericView<Int>"

    Returns None for everything else: closures, function types, tuples,
    `any`/`some` types, literals.
    """
    if isinstance(expr, DeclReference):
        return expr.name

    if isinstance(expr, MemberAccess):
        if expr.base is None:
            return None
        base = stringify_type_expression(expr.base)
        if base is None:
            return None
        if expr.member == "self":
            return base
        return f"{base}.{expr.member}"

    if isinstance(expr, GenericSpecialization):
        base = stringify_type_expression(expr.base)
        if base is None:
            return None
        return f"{base}<{', '.join(expr.arguments)}>"

    return None


def parse_view_type(expr: Expr) -> str | None:
    """Resolve the view type named by an attribute argument.

    Returns None when the argument is not a type reference at all (the caller
    then reports the attribute as malformed).

    Raises:
        ScreenMacroError: unsupportedTypeExpression when the argument has a
            `.self` suffix but its base is not a supported type form.
    """
    if (
        isinstance(expr, MemberAccess)
        and expr.member == "self"
        and expr.base is not None
    ):
        view_type = stringify_type_expression(expr.base)
        if view_type is None:
            raise ScreenMacroError(UNSUPPORTED_TYPE_EXPRESSION)
        return view_type
    return stringify_type_expression(expr)


# ===--- Screen attribute resolution ---=== #


@dataclass(frozen=True)
class EmptyScreen:
    """`@Screen`, `@Screen()` or no attribute at all."""


@dataclass(frozen=True)
class ExplicitType:
    view_type: str


@dataclass(frozen=True)
class ExplicitTypeAndMapping:
    view_type: str
    mapping: dict[str, str]


@dataclass(frozen=True)
class MappingOnly:
    mapping: dict[str, str]


ScreenAttribute = EmptyScreen | ExplicitType | ExplicitTypeAndMapping | MappingOnly


@dataclass(frozen=True)
class ScreenInfo:
    """Resolved view type and parameter mapping for one case.

    Attributes:
        view_type: Type to instantiate, e.g. "DetailView". Never empty.
        parameter_mapping: Case label -> initializer label.
        inferred: True when view_type was derived from the case name.
    """

    view_type: str
    parameter_mapping: dict[str, str]
    inferred: bool


def _string_segment(expr: Expr) -> str | None:
    if not isinstance(expr, StringLiteral):
        return None
    return expr.leading_segment


def parse_mapping_dictionary(expr: Expr) -> dict[str, str] | None:
    """Parse `["id": "detailId"]` (or `[:]`) into a mapping.

    Returns None when expr is not a dictionary literal. Entries whose key or
    value is not a string literal are skipped, not reported. An interpolated
    string contributes the text before its first `\\(`, and is skipped when
    it starts with one.
    """
    if not isinstance(expr, DictionaryLiteral):
        return None

    mapping: dict[str, str] = {}
    for key, value in expr.elements:
        key_text = _string_segment(key)
        value_text = _string_segment(value)
        if key_text is None or value_text is None:
            continue
        mapping[key_text] = value_text
    return mapping


def find_screen_attribute(
    attributes: tuple[AttributeDecl, ...],
) -> AttributeDecl | None:
    for attribute in attributes:
        if attribute.name == SCREEN_ATTRIBUTE_NAME:
            return attribute
    return None


def classify_screen_attribute(attribute: AttributeDecl | None) -> ScreenAttribute:
    """Sort a case's `@Screen` attribute into one of its four supported shapes.

    Shapes, checked in this order:
        no attribute / @Screen / @Screen()     -> EmptyScreen
        @Screen(["a": "b"])                    -> MappingOnly
        @Screen(SomeView.self)                 -> ExplicitType
        @Screen(SomeView.self, ["a": "b"])     -> ExplicitTypeAndMapping

    Raises:
        ScreenMacroError: invalidMappingArgument when a type is followed by a
            non-dictionary argument, unsupportedTypeExpression for `.self`
            on an unsupported type form, invalidScreenAttribute otherwise.
    """
    if attribute is None or not attribute.arguments:
        return EmptyScreen()

    first = attribute.arguments[0]

    mapping = parse_mapping_dictionary(first)
    if mapping is not None:
        return MappingOnly(mapping)

    view_type = parse_view_type(first)
    if view_type is not None:
        if len(attribute.arguments) < 2:
            return ExplicitType(view_type)
        mapping = parse_mapping_dictionary(attribute.arguments[1])
        if mapping is None:
            raise ScreenMacroError(INVALID_MAPPING_ARGUMENT)
        return ExplicitTypeAndMapping(view_type, mapping)

    raise ScreenMacroError(INVALID_SCREEN_ATTRIBUTE)


def resolve_screen_info(
    attributes: tuple[AttributeDecl, ...], case_name: str
) -> ScreenInfo:
    screen = classify_screen_attribute(find_screen_attribute(attributes))

    if isinstance(screen, ExplicitTypeAndMapping):
        return ScreenInfo(screen.view_type, dict(screen.mapping), inferred=False)
    if isinstance(screen, ExplicitType):
        return ScreenInfo(screen.view_type, {}, inferred=False)
    if isinstance(screen, MappingOnly):
        return ScreenInfo(infer_type_name(case_name), dict(screen.mapping), inferred=True)
    return ScreenInfo(infer_type_name(case_name), {}, inferred=True)


# ===--- Mapping validation ---=== #


def find_unused_mapping_keys(
    mapping: dict[str, str], parameters: tuple[ParameterInfo, ...]
) -> list[str]:
    valid_keys = {param.source_key for param in parameters}
    return sorted(key for key in mapping if key not in valid_keys)


def validate_mapping_keys(
    mapping: dict[str, str],
    parameters: tuple[ParameterInfo, ...],
    case_name: str,
    anchor: DiagnosticAnchor,
) -> Diagnostic | None:
    """Return one warning listing every mapping key that matches no parameter."""
    if not mapping:
        return None
    unused = find_unused_mapping_keys(mapping, parameters)
    if not unused:
        return None
    return unused_mapping_keys_warning(unused, case_name, anchor)


# ===--- Initializer arguments ---=== #


@dataclass(frozen=True)
class CallArgument:
    label: str | None
    value: str

    def render(self) -> str:
        if self.label is None:
            return self.value
        return f"{self.label}: {self.value}"


def resolve_argument_label(
    param: ParameterInfo,
    mapping: dict[str, str],
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> str:
    source = param.source_key
    if source in mapping:
        return mapping[source]
    if param.label is None and policy is UnlabeledArgumentPolicy.POSITIONAL:
        return UNLABELED_ARGUMENT_LABEL
    return source


def build_arguments(
    parameters: tuple[ParameterInfo, ...],
    mapping: dict[str, str],
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> tuple[CallArgument, ...]:
    """Turn case parameters into view initializer arguments.

    The mapping renames labels (`["id": "detailId"]` gives `detailId: id`);
    a target label of "_" passes the value positionally.
    """
    arguments: list[CallArgument] = []
    for param in parameters:
        target = resolve_argument_label(param, mapping, policy)
        if target == UNLABELED_ARGUMENT_LABEL:
            arguments.append(CallArgument(label=None, value=param.name))
        else:
            arguments.append(CallArgument(label=target, value=param.name))
    return tuple(arguments)


# ===--- Switch synthesis ---=== #


@dataclass(frozen=True)
class CaseInfo:
    case_name: str
    view_type: str
    parameters: tuple[ParameterInfo, ...]
    parameter_mapping: dict[str, str]
    inferred: bool = True

    @property
    def remapped_count(self) -> int:
        return sum(
            1 for param in self.parameters if param.source_key in self.parameter_mapping
        )


def switch_pattern(info: CaseInfo) -> str:
    """Pattern for one arm: `.home`, `.detail(id: let id)`, `.preview(let param0)`."""
    if not info.parameters:
        return f".{info.case_name}"

    bindings = []
    for param in info.parameters:
        if param.label is not None:
            bindings.append(f"{param.label}: let {param.name}")
        else:
            bindings.append(f"let {param.name}")
    return f".{info.case_name}({', '.join(bindings)})"


def view_initializer(
    info: CaseInfo, policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY
) -> str:
    """Initializer call for one arm: `Home()`, `DetailView(detailId: id)`."""
    arguments = build_arguments(info.parameters, info.parameter_mapping, policy)
    rendered = ", ".join(argument.render() for argument in arguments)
    return f"{info.view_type}({rendered})"


def synthesize_switch(
    cases: tuple[CaseInfo, ...],
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> list[str]:
    lines = ["switch self {"]
    for info in cases:
        lines.append(f"case {switch_pattern(info)}:")
        lines.append(f"{_INDENT}{view_initializer(info, policy)}")
    lines.append("}")
    return lines


# ===--- Access level ---=== #


def resolve_access_modifier(access: str | None) -> str:
    """Mirror the enum's access modifier onto the generated code.

    Returns the modifier followed by a space ("public "), or "" when the enum
    relies on the implicit internal default.
    """
    if access is None:
        return ""
    if access not in ACCESS_LEVELS:
        raise ValueError(f"Unknown access level: {access!r}")
    return f"{access} "


# ===--- Expansion ---=== #


@dataclass(frozen=True)
class ExtensionDecl:
    """The generated `extension <Type>: View, ScreenMacros.Screens` block.

    Attributes:
        type_name: Extended type, e.g. "ScreenID".
        access_modifier: Mirrored modifier with trailing space, or "".
        cases: Per-case codegen inputs, declaration order.
        source: Rendered Swift source of the extension, no trailing newline.
    """

    type_name: str
    access_modifier: str
    cases: tuple[CaseInfo, ...]
    source: str


@dataclass(frozen=True)
class Expansion:
    """Outcome of expanding one declaration.

    On success `extension` is set and `diagnostics` holds only warnings. On
    failure `extension` is None and `diagnostics` holds exactly one error.
    """

    declaration: str
    extension: ExtensionDecl | None
    diagnostics: tuple[Diagnostic, ...]

    @property
    def succeeded(self) -> bool:
        return self.extension is not None

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == SEVERITY_ERROR)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == SEVERITY_WARNING)


def render_extension(
    type_name: str, access_modifier: str, switch_lines: list[str]
) -> str:
    conformances = ", ".join(SCREENS_CONFORMANCES)
    lines = [
        f"{access_modifier}extension {type_name}: {conformances} {{",
        f"{_INDENT}@MainActor @ViewBuilder",
        f"{_INDENT}{access_modifier}var body: some View {{",
    ]
    lines.extend(f"{_INDENT * 2}{line}" for line in switch_lines)
    lines.append(f"{_INDENT}}}")
    lines.append("}")
    return "\n".join(lines)


def _failed(
    decl: DeclarationSchema, err: ScreenMacroError, anchor: DiagnosticAnchor
) -> Expansion:
    return Expansion(
        declaration=decl.name,
        extension=None,
        diagnostics=(err.to_diagnostic(anchor),),
    )


def expand_screens(
    decl: DeclarationSchema,
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> Expansion:
    """Expand `@Screens` on one declaration.

    Resolves every case in order (attribute, parameters, mapping check), then
    synthesizes the switch and mirrors the access level. The first fatal
    error aborts the declaration; warnings from all cases are kept.

    Args:
        decl: Declaration handed over by the schema front end.
        policy: How unlabeled associated values are passed.

    Returns:
        Expansion with either the extension and its warnings, or one error.
    """
    if not decl.is_enum:
        return _failed(
            decl, ScreenMacroError(NOT_AN_ENUM), DiagnosticAnchor(decl.name)
        )

    warnings: list[Diagnostic] = []
    case_infos: list[CaseInfo] = []
    for case in decl.cases:
        anchor = DiagnosticAnchor(decl.name, case.name)
        try:
            screen_info = resolve_screen_info(case.attributes, case.name)
        except ScreenMacroError as err:
            return _failed(decl, err, anchor)

        parameters = extract_parameters(case.parameters)

        warning = validate_mapping_keys(
            screen_info.parameter_mapping, parameters, case.name, anchor
        )
        if warning is not None:
            warnings.append(warning)

        case_infos.append(
            CaseInfo(
                case_name=case.name,
                view_type=screen_info.view_type,
                parameters=parameters,
                parameter_mapping=screen_info.parameter_mapping,
                inferred=screen_info.inferred,
            )
        )

    cases = tuple(case_infos)
    access_modifier = resolve_access_modifier(decl.access)
    source = render_extension(
        decl.name, access_modifier, synthesize_switch(cases, policy)
    )
    return Expansion(
        declaration=decl.name,
        extension=ExtensionDecl(
            type_name=decl.name,
            access_modifier=access_modifier,
            cases=cases,
            source=source,
        ),
        diagnostics=tuple(warnings),
    )


def select_declarations(
    schema: Schema, names: frozenset[str]
) -> tuple[DeclarationSchema, ...]:
    """Pick the declarations to expand; all of them when names is empty.

    Raises:
        SchemaError: A requested name is not declared in the schema.
    """
    if not names:
        return schema.declarations
    known = {decl.name for decl in schema.declarations}
    missing = sorted(names - known)
    if missing:
        raise SchemaError(f"Declarations not found in schema: {', '.join(missing)}")
    return tuple(decl for decl in schema.declarations if decl.name in names)


def expand_declarations(
    declarations: tuple[DeclarationSchema, ...],
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> tuple[Expansion, ...]:
    return tuple(expand_screens(decl, policy) for decl in declarations)


# ===--- Discovery commands ---=== #


@dataclass(frozen=True)
class DeclarationSummary:
    """One row of the --list-declarations table."""

    name: str
    kind: str
    access: str | None
    case_count: int


@dataclass(frozen=True)
class CaseDetail:
    """One resolved arm in --info output.

    Attributes:
        signature: Case as declared, e.g. "detail(id: Int)".
        pattern: Switch pattern, e.g. ".detail(id: let id)".
        initializer: View initializer call, e.g. "Detail(id: id)".
        inferred: True when the view type came from the case name.
    """

    signature: str
    pattern: str
    initializer: str
    inferred: bool


@dataclass(frozen=True)
class DeclarationDetail:
    summary: DeclarationSummary
    cases: tuple[CaseDetail, ...]
    diagnostics: tuple[Diagnostic, ...]


def summarize_declaration(decl: DeclarationSchema) -> DeclarationSummary:
    return DeclarationSummary(
        name=decl.name,
        kind=decl.kind,
        access=decl.access,
        case_count=len(decl.cases),
    )


def gather_declaration_summaries(schema: Schema) -> list[DeclarationSummary]:
    return [summarize_declaration(decl) for decl in schema.declarations]


def filter_declarations_by_text(
    summaries: list[DeclarationSummary], filter_text: str
) -> list[DeclarationSummary]:
    """Keep declarations whose name contains filter_text (case-insensitive)."""
    needle = filter_text.lower()
    return [s for s in summaries if needle in s.name.lower()]


def gather_declaration_detail(
    schema: Schema,
    name: str,
    policy: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY,
) -> DeclarationDetail | None:
    """Expand one declaration and describe each arm, or None if it is unknown."""
    decl = next((d for d in schema.declarations if d.name == name), None)
    if decl is None:
        return None

    expansion = expand_screens(decl, policy)
    cases: tuple[CaseDetail, ...] = ()
    if expansion.extension is not None:
        cases = tuple(
            CaseDetail(
                signature=format_case_signature(case),
                pattern=switch_pattern(info),
                initializer=view_initializer(info, policy),
                inferred=info.inferred,
            )
            for case, info in zip(decl.cases, expansion.extension.cases)
        )
    return DeclarationDetail(
        summary=summarize_declaration(decl),
        cases=cases,
        diagnostics=expansion.diagnostics,
    )


def format_declarations_table(
    summaries: list[DeclarationSummary], schema_version: str
) -> str:
    """Return the complete --list-declarations output.

    Output format:

        2 declarations in schema 1:

          Screen       enum    public    5 cases
          NotAnEnum    struct  -         0 cases
    """
    lines = [f"{len(summaries)} declarations in schema {schema_version}:", ""]
    if not summaries:
        lines.append("")
        return "\n".join(lines)

    name_width = max(len(s.name) for s in summaries)
    kind_width = max(len(s.kind) for s in summaries)
    access_width = max(len(s.access or "-") for s in summaries)

    for s in summaries:
        case_label = "case" if s.case_count == 1 else "cases"
        row = (
            f"  {s.name.ljust(name_width)}  {s.kind.ljust(kind_width)}  "
            f"{(s.access or '-').ljust(access_width)}  {s.case_count} {case_label}"
        )
        lines.append(row.rstrip())

    lines.append("")
    return "\n".join(lines)


def format_declaration_detail(detail: DeclarationDetail) -> str:
    """Return the complete --info output for one declaration.

    Output format:

        Screen (public enum)

          Cases (2):
            home              .home                       -> Home()
            detail(id: Int)   .detail(id: let id)         -> Detail(id: id)

          Diagnostics (1):
            warning[unusedMappingKeys] Screen.detail: Mapping keys [...]
    """
    s = detail.summary
    qualifier = f"{s.access} {s.kind}" if s.access else s.kind
    lines = [f"{s.name} ({qualifier})", ""]

    lines.append(f"  Cases ({len(detail.cases)}):")
    signature_width = max((len(c.signature) for c in detail.cases), default=0)
    pattern_width = max((len(c.pattern) for c in detail.cases), default=0)
    for case in detail.cases:
        marker = "" if case.inferred else "  (explicit)"
        lines.append(
            f"    {case.signature.ljust(signature_width)}  "
            f"{case.pattern.ljust(pattern_width)}  -> {case.initializer}{marker}"
        )

    if detail.diagnostics:
        lines.append("")
        lines.append(f"  Diagnostics ({len(detail.diagnostics)}):")
        for diagnostic in detail.diagnostics:
            lines.append(f"    {format_diagnostic(diagnostic)}")

    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Execute the discovery command specified in config.

    dispatch table:
      "list-declarations" -> gather_declaration_summaries -> [filter] -> format
      "info"              -> gather_declaration_detail -> [None check] -> format

    Raises:
        SystemExit(1): When config.command == "info" and the declaration is
                       not in the schema.
    """
    schema = load_schema(config.schema)

    if config.command == "list-declarations":
        summaries = gather_declaration_summaries(schema)
        if config.filter_text is not None:
            summaries = filter_declarations_by_text(summaries, config.filter_text)
        print(format_declarations_table(summaries, schema.version), end="")

    elif config.command == "info":
        assert config.info_declaration is not None
        detail = gather_declaration_detail(
            schema, config.info_declaration, config.unlabeled_arguments
        )
        if detail is None:
            print(
                f"Error: declaration '{config.info_declaration}' not found in "
                f"{config.schema.name}",
                file=sys.stderr,
            )
            raise SystemExit(1)
        print(format_declaration_detail(detail), end="")


# ===--- Swift file writer ---=== #


@dataclass(frozen=True)
class WriteConfig:
    """Shared generation metadata embedded in every file header.

    Attributes:
        schema_name: File name of the schema, e.g. "Screens.xml".
        schema_version: Value from extract_schema_version.
        unlabeled_arguments: Policy the switch bodies were generated with.
        imports: Modules imported at the top of every generated file.
    """

    schema_name: str
    schema_version: str
    unlabeled_arguments: UnlabeledArgumentPolicy = DEFAULT_UNLABELED_POLICY
    imports: tuple[str, ...] = DEFAULT_IMPORTS


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing one generated file.

    Attributes:
        filename: Filename written, e.g. "ScreenID+Screens.swift".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


@dataclass(frozen=True)
class PackageWriteResult:
    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)


_HEADER_BORDER: str = "// x-------------------------------------------x //"
GENERATED_FILE_SUFFIX = "+Screens.swift"


def swift_filename(type_name: str) -> str:
    return f"{type_name}{GENERATED_FILE_SUFFIX}"


def format_file_header(config: WriteConfig, type_name: str) -> list[str]:
    """Return comment-block lines for a generated file header.

    Output format:
        // x-------------------------------------------x //
        // | Screens for ScreenID
        // | Generated by screens-gen, do not edit
        // | Source: Screens.xml (schema 1)
        // | Unlabeled arguments: positional
        // x-------------------------------------------x //

    Raises:
        ValueError: If config.schema_version or type_name is empty.
    """
    if not config.schema_version:
        raise ValueError("schema_version must not be empty")
    if not type_name:
        raise ValueError("type_name must not be empty")

    return [
        _HEADER_BORDER,
        f"// | Screens for {type_name}",
        "// | Generated by screens-gen, do not edit",
        f"// | Source: {config.schema_name} (schema {config.schema_version})",
        f"// | Unlabeled arguments: {config.unlabeled_arguments.value}",
        _HEADER_BORDER,
    ]


def format_import_block(imports: tuple[str, ...]) -> list[str]:
    """Return one `import <Module>` line per module, in the given order.

    Raises:
        ValueError: If a module name is empty.
    """
    for module in imports:
        if not module:
            raise ValueError("import module names must not be empty")
    return [f"import {module}" for module in imports]


def assemble_swift_source(config: WriteConfig, extension: ExtensionDecl) -> str:
    """Assemble a complete .swift source string for one extension.

    File structure:
        <header_comment_block>
                                    <- blank line
        <import_block>              <- omitted with its blank line if empty
                                    <- blank line
        <extension source>
                                    <- trailing newline
    """
    parts: list[str] = list(format_file_header(config, extension.type_name))

    import_lines = format_import_block(config.imports)
    if import_lines:
        parts.append("")
        parts.extend(import_lines)

    parts.append("")
    parts.append(extension.source)
    return "\n".join(parts) + "\n"


def write_extension(
    output_dir: Path, config: WriteConfig, extension: ExtensionDecl
) -> FileWriteResult:
    """Write one generated extension to `<output_dir>/<Type>+Screens.swift`.

    Creates output_dir if needed. OSError propagates unchanged.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    content = assemble_swift_source(config, extension)
    filename = swift_filename(extension.type_name)
    file_path = output_dir / filename
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=filename,
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


def write_extensions(
    output_dir: Path,
    config: WriteConfig,
    extensions: tuple[ExtensionDecl, ...],
) -> PackageWriteResult:
    """Write every extension in order. No rollback on a partial failure."""
    files = [write_extension(output_dir, config, ext) for ext in extensions]
    return PackageWriteResult(output_dir=Path(output_dir), files=tuple(files))


# ===--- Pipeline stages ---=== #


def build_write_config(config: GenerateConfig, schema: Schema) -> WriteConfig:
    return WriteConfig(
        schema_name=config.schema.name,
        schema_version=schema.version,
        unlabeled_arguments=config.unlabeled_arguments,
        imports=config.imports,
    )


def collect_diagnostics(expansions: tuple[Expansion, ...]) -> tuple[Diagnostic, ...]:
    return tuple(d for expansion in expansions for d in expansion.diagnostics)


def print_diagnostics(diagnostics: tuple[Diagnostic, ...]) -> None:
    for diagnostic in diagnostics:
        print(format_diagnostic(diagnostic), file=sys.stderr)


def run_generate(config: GenerateConfig) -> "GenerationSummary":
    """Execute the complete generation pipeline for a GenerateConfig.

    Stages: parse schema -> select declarations -> expand -> report
    diagnostics -> write successful extensions -> summary.

    Returns:
        GenerationSummary for the run. Declarations that failed to expand
        are counted in it but produce no file.

    Raises:
        OSError: Schema not readable or filesystem write failure.
        ET.ParseError: Malformed schema XML.
        SchemaError: Invalid schema contents or unknown --decl names.
    """
    print(f"Parsing: {config.schema}")
    schema = load_schema(config.schema)
    print(f"  Schema: {len(schema.declarations)} declarations (schema {schema.version})")

    declarations = select_declarations(schema, config.declarations)
    expansions = expand_declarations(declarations, config.unlabeled_arguments)
    succeeded = [e for e in expansions if e.extension is not None]
    print(
        f"  Expanded: {len(succeeded)} of {len(expansions)} declarations "
        f"({config.unlabeled_arguments.value} unlabeled arguments)"
    )

    print_diagnostics(collect_diagnostics(expansions))

    write_config = build_write_config(config, schema)
    extensions = tuple(e.extension for e in succeeded if e.extension is not None)
    result = write_extensions(config.output_dir, write_config, extensions)
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(write_config, expansions, result)
    print_generation_summary(summary)
    return summary


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class ExpansionCounts:
    """Per-run totals derived from the expansions.

    Invariant: generated + failed == declarations, inferred + explicit == cases.

    Attributes:
        declarations: Declarations processed.
        generated: Declarations that produced an extension.
        failed: Declarations aborted by an error.
        cases: Cases across generated declarations.
        inferred: Cases whose view type came from the case name.
        explicit: Cases with a view type from `@Screen`.
        remapped_arguments: Arguments whose label came from a mapping.
        warnings: Warning diagnostics across all declarations.
    """

    declarations: int
    generated: int
    failed: int
    cases: int
    inferred: int
    explicit: int
    remapped_arguments: int
    warnings: int


@dataclass(frozen=True)
class GenerationSummary:
    source_label: str
    output_dir: str
    policy_label: str
    counts: ExpansionCounts
    files: tuple[FileWriteResult, ...]


def build_expansion_counts(expansions: tuple[Expansion, ...]) -> ExpansionCounts:
    cases = [
        info
        for expansion in expansions
        if expansion.extension is not None
        for info in expansion.extension.cases
    ]
    generated = sum(1 for e in expansions if e.succeeded)
    inferred = sum(1 for info in cases if info.inferred)
    counts = ExpansionCounts(
        declarations=len(expansions),
        generated=generated,
        failed=len(expansions) - generated,
        cases=len(cases),
        inferred=inferred,
        explicit=len(cases) - inferred,
        remapped_arguments=sum(info.remapped_count for info in cases),
        warnings=sum(len(e.warnings) for e in expansions),
    )
    assert counts.generated + counts.failed == counts.declarations
    return counts


def build_generation_summary(
    write_config: WriteConfig,
    expansions: tuple[Expansion, ...],
    write_result: PackageWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        source_label=f"{write_config.schema_name} (schema {write_config.schema_version})",
        output_dir=str(write_result.output_dir),
        policy_label=write_config.unlabeled_arguments.value,
        counts=build_expansion_counts(expansions),
        files=write_result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary as the post-run console report.

    The "(N inferred + M explicit)" annotation appears only when some case
    has an explicit view type. Returns a string with one trailing newline.
    """
    c = summary.counts
    lines: list[str] = []
    lines.append("Screens generated:")
    lines.append("")
    lines.append(f"  Source:     {summary.source_label}")
    lines.append(f"  Output:     {summary.output_dir}")
    lines.append(f"  Unlabeled:  {summary.policy_label}")
    lines.append("")
    lines.append("  Declarations:")
    lines.append(f"    {'Generated:':<11}{c.generated:>6}")
    lines.append(f"    {'Failed:':<11}{c.failed:>6}")
    lines.append("")

    case_row = f"    {'Cases:':<11}{c.cases:>6}"
    if c.explicit > 0:
        case_row += f"  ({c.inferred} inferred + {c.explicit} explicit)"
    lines.append(case_row)
    lines.append(f"    {'Remapped:':<11}{c.remapped_arguments:>6}")
    lines.append(f"    {'Warnings:':<11}{c.warnings:>6}")

    lines.append("")
    lines.append("  Files written:")
    for file_result in summary.files:
        line_str = f"{file_result.line_count:>6,} lines"
        lines.append(f"    {file_result.filename:<32} {line_str}")

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None) -> None:
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
            return
        summary = run_generate(config)
    except SchemaError as err:
        print(f"Schema error: {err}")
        raise SystemExit(1) from err
    except (OSError, ET.ParseError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except (RuntimeError, ValueError) as err:
        print(f"Internal error: {err}")
        raise SystemExit(1) from err

    if summary.counts.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
