"""Tests for the tree-sitter source wrapper."""

from __future__ import annotations

from rscxray.syntax import SourceFile


def test_imports_report_specifier_ranges() -> None:
    code = "import fs from 'fs';\nimport { join } from \"path\";\nimport './styles.css';\n"
    source = SourceFile("demo.tsx", code)
    imports = source.imports()
    assert [reference.module for reference in imports] == ["fs", "path", "./styles.css"]
    first = imports[0].range
    assert code[first.start : first.end] == "'fs'"
    second = imports[1].range
    assert code[second.start : second.end] == '"path"'


def test_offsets_are_utf16_code_units() -> None:
    code = "// 😀 émoji\nimport fs from 'fs';\n"
    source = SourceFile("demo.tsx", code)
    reference = source.imports()[0]
    # The emoji occupies two UTF-16 code units but one Python code point.
    expected_start = code.index("'fs'") + 1
    assert reference.range.start == expected_start
    assert reference.range.end == expected_start + 4


def test_require_calls_are_found_anywhere() -> None:
    code = "function load() {\n  const cp = require('child_process');\n  return cp;\n}\n"
    source = SourceFile("loader.ts", code)
    calls = source.require_calls()
    assert [call.module for call in calls] == ["child_process"]
    assert code[calls[0].range.start : calls[0].range.end] == "'child_process'"


def test_exported_constants_extract_literals() -> None:
    code = (
        "export const dynamic = 'force-dynamic';\n"
        "export const revalidate = 60;\n"
        "export const fetchCache = computeIt();\n"
        "export default function Page() { return <div />; }\n"
    )
    source = SourceFile("page.tsx", code)
    constants = source.exported_constants()
    assert constants["dynamic"][0] == "force-dynamic"
    assert constants["revalidate"][0] == 60
    assert "fetchCache" not in constants


def test_imported_bindings_cover_default_named_and_namespace() -> None:
    code = (
        "import Button from './Button';\n"
        "import { Card as Panel, Footer } from '@/components/Card';\n"
        "import * as icons from 'icons';\n"
    )
    bindings = SourceFile("page.tsx", code).imported_bindings()
    assert bindings == {
        "Button": "./Button",
        "Panel": "@/components/Card",
        "Footer": "@/components/Card",
        "icons": "icons",
    }


def test_require_with_template_literal_is_ignored() -> None:
    source = SourceFile("loader.ts", "const a = require(`fs`);\nconst b = require('path');\n")
    assert [call.module for call in source.require_calls()] == ["path"]
