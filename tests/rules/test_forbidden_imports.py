from __future__ import annotations

from rscxray.rules import ClientForbiddenImportRule


def test_client_imports_of_fs_and_path_are_errors(classified) -> None:
    code = "'use client';\nimport fs from 'fs';\nimport path from 'path';\nimport React from 'react';\n"
    rule = ClientForbiddenImportRule()
    outcome = rule.evaluate(classified("Widget.tsx", code), None)

    assert outcome.ok and outcome.executed
    diagnostics = outcome.diagnostics
    assert [d.level for d in diagnostics] == ["error", "error"]
    assert [d.rule for d in diagnostics] == ["client-forbidden-import"] * 2
    fs_start = code.index("'fs'")
    path_start = code.index("'path'")
    assert (diagnostics[0].loc.range.start, diagnostics[0].loc.range.end) == (fs_start, fs_start + 4)
    assert (diagnostics[1].loc.range.start, diagnostics[1].loc.range.end) == (
        path_start,
        path_start + 6,
    )
    assert "'fs'" in diagnostics[0].message


def test_node_prefix_and_require_are_detected(classified) -> None:
    code = "'use client';\nimport { readFile } from 'node:fs';\nconst cp = require('child_process');\n"
    diagnostics = ClientForbiddenImportRule().run(classified("Widget.tsx", code), None)
    assert [d.message for d in diagnostics] == [
        "Client components must not import 'node:fs'.",
        "Client components must not import 'child_process'.",
    ]


def test_server_files_are_not_checked(classified) -> None:
    code = "import fs from 'fs';\nexport default function Page() { return null; }\n"
    outcome = ClientForbiddenImportRule().evaluate(classified("page.tsx", code), None)
    assert outcome.executed is False
    assert outcome.diagnostics == []


def test_custom_denylist_replaces_defaults(classified) -> None:
    code = "'use client';\nimport fs from 'fs';\nimport db from 'server-only-db';\n"
    diagnostics = ClientForbiddenImportRule(["server-only-db"]).run(classified("Widget.tsx", code), None)
    assert len(diagnostics) == 1
    assert "server-only-db" in diagnostics[0].message


def test_template_literal_specifiers_are_not_module_imports(classified) -> None:
    code = "'use client';\nconst fs = require(`fs`);\nconst os = require('os');\n"
    diagnostics = ClientForbiddenImportRule().run(classified("Widget.tsx", code), None)
    assert [d.message for d in diagnostics] == ["Client components must not import 'os'."]
