"""Tests for Tree-sitter export extraction and the regex fallback."""

from datetime import datetime

import pytest

from component_insight.models import ExportKind, SourceFile
from component_insight.parser import ModuleParser, RegexExportExtractor, TreeSitterExtractor


def _file(content: str, path: str = "/lib/src/mod.tsx") -> SourceFile:
    return SourceFile(
        path=path,
        content=content,
        size=len(content),
        extension="." + path.rsplit(".", 1)[-1],
        modified_at=datetime.now(),
    )


@pytest.fixture(scope="module")
def parser() -> ModuleParser:
    return ModuleParser()


def _kinds(module):
    return {(b.exported_name, b.kind, b.source_module, b.local_name) for b in module.bindings}


def test_entry_re_export_shapes(parser: ModuleParser):
    """Each re-export statement shape maps to its binding kind."""
    source = """
export { default as ButtonWrapper } from './button-wrapper';
export { Button, IconButton as Icon } from './components/button';
export * from './basic';
export * as helpers from './helpers';
export type { ButtonProps } from './components/button';
"""
    module = parser.parse(_file(source, "/lib/src/index.ts"))

    assert module.parsed
    assert _kinds(module) == {
        ("ButtonWrapper", ExportKind.DEFAULT_RE_EXPORT_AS, "./button-wrapper", "default"),
        ("Button", ExportKind.NAMED_RE_EXPORT, "./components/button", "Button"),
        ("Icon", ExportKind.NAMED_RE_EXPORT, "./components/button", "IconButton"),
        ("*", ExportKind.WILDCARD_RE_EXPORT, "./basic", "*"),
    }


def test_local_exports_and_declarations(parser: ModuleParser):
    source = """
import React from 'react';

export function Button() { return <button />; }
export class Panel extends React.Component { render() { return <div />; } }
export const Badge = () => <span />;
export const SIZE = 3;
const Base = () => <i />;
export { Base as Icon };
export interface BadgeProps { label: string }
export type Tone = 'light' | 'dark';
"""
    module = parser.parse(_file(source))

    exported = {b.exported_name: b for b in module.bindings}
    assert set(exported) == {"Button", "Panel", "Badge", "SIZE", "Icon"}
    assert all(b.kind is ExportKind.LOCAL_DEFINITION for b in exported.values())
    assert exported["Icon"].local_name == "Base"

    assert {"Button", "Panel", "Badge", "Base"} <= module.declarations
    assert "SIZE" not in module.declarations


@pytest.mark.parametrize("initializer", [
    "React.forwardRef((props, ref) => <input ref={ref} />)",
    "forwardRef((props, ref) => <input ref={ref} />)",
    "React.memo(function Inner() { return <div />; })",
    "memo(Inner)",
    "lazy(() => import('./heavy'))",
    "styled.div`color: red;`",
    "styled(Base)`color: red;`",
    "styled.button.attrs({ type: 'button' })`color: red;`",
    "(() => <div />) as React.FC",
])
def test_component_wrappers_count_as_declarations(parser: ModuleParser, initializer: str):
    """Wrapper calls such as forwardRef declare a component."""
    module = parser.parse(_file(f"const Widget = {initializer};\nexport default Widget;\n"))

    assert module.declares("Widget")


def test_plain_call_is_not_a_declaration(parser: ModuleParser):
    """Other call results are not declarations."""
    module = parser.parse(_file("export const Theme = createTheme({ dark: true });\n", "/lib/src/theme.ts"))

    assert not module.declares("Theme")
    assert [b.exported_name for b in module.bindings] == ["Theme"]


def test_default_export_forms(parser: ModuleParser):
    """Named default exports and identifiers count as declarations."""
    named = parser.parse(_file("export default function Dialog() { return <div />; }\n"))
    identifier = parser.parse(_file("function Drawer() { return <div />; }\nexport default Drawer;\n"))

    assert named.declares("Dialog")
    assert [b.exported_name for b in named.bindings] == ["Dialog"]
    assert identifier.declares("Drawer")


def test_imports_are_recorded(parser: ModuleParser):
    source = """
import React, { useState } from 'react';
import Base, { SubButton as Sub } from './sub-btn';
import type { Props } from './types';
export { Sub };
"""
    module = parser.parse(_file(source))

    assert module.imports["Sub"] == ("./sub-btn", "SubButton")
    assert module.imports["Base"] == ("./sub-btn", "default")
    assert module.imports["React"] == ("react", "default")
    assert "Props" not in module.imports


def test_broken_file_falls_back_to_regex(parser: ModuleParser):
    source = """
export { Button } from './button';
export * from './basic';
export { default as Modal } from './modal';
export function Broken( { return <div>;
"""
    module = parser.parse(_file(source, "/lib/src/index.tsx"))

    assert not module.parsed
    assert module.declarations == set()
    names = {(b.exported_name, b.kind) for b in module.bindings}
    assert ("Button", ExportKind.NAMED_RE_EXPORT) in names
    assert ("*", ExportKind.WILDCARD_RE_EXPORT) in names
    assert ("Modal", ExportKind.DEFAULT_RE_EXPORT_AS) in names


def test_tree_sitter_reports_syntax_errors():
    """The tree-sitter extractor gives up on sources with syntax errors."""
    extractor = TreeSitterExtractor()

    assert extractor.extract(_file("export const = ;")) is None
    assert extractor.extract(_file("export const A = 1;")) is not None


def test_regex_extractor_skips_type_exports():
    source = """
export type { ButtonProps } from './button';
export { type Size, Button } from './button';
export * from './tag';
import { Card as C } from './card';
"""
    module = RegexExportExtractor().extract(_file(source, "/lib/src/index.ts"))

    assert [b.exported_name for b in module.bindings] == ["Button", "*"]
    assert module.imports["C"] == ("./card", "Card")
