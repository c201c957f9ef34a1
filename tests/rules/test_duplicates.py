from __future__ import annotations

from rscxray.context import AnalysisContext, BundleRecord
from rscxray.rules import DuplicateDependenciesRule
from rscxray.rules.duplicates import match_chunk_import
from rscxray.syntax import SourceFile

CONTEXT = AnalysisContext(
    client_bundles=(
        BundleRecord("components/A.tsx", ("lib.js", "a-only.js")),
        BundleRecord("components/B.tsx", ("lib.js",)),
    )
)


def test_shared_chunk_produces_one_coarse_diagnostic(classified) -> None:
    code = "'use client';\nimport React from 'react';\nimport lib from './lib.js';\n"
    diagnostics = DuplicateDependenciesRule().run(classified("components/A.tsx", code), CONTEXT)
    assert len(diagnostics) == 1
    diagnostic = diagnostics[0]
    assert diagnostic.packages == ("lib.js",)
    assert "lib.js (also imported by B.tsx)" in diagnostic.message
    assert "a-only.js" not in diagnostic.message
    assert diagnostic.loc.range.start == code.index("'./lib.js'")


def test_file_without_bundle_record_is_clean(classified) -> None:
    code = "import lib from './lib.js';\n"
    assert DuplicateDependenciesRule().run(classified("components/C.tsx", code), CONTEXT) == []


def test_rule_needs_bundle_metadata(classified) -> None:
    outcome = DuplicateDependenciesRule().evaluate(classified("components/A.tsx", ""), None)
    assert outcome.executed is False


def test_match_chunk_import_precedence() -> None:
    imports = SourceFile(
        "A.tsx", "import a from 'lodash';\nimport b from './vendor/chart.js';\n"
    ).imports()
    assert match_chunk_import("lodash", imports).module == "lodash"
    assert match_chunk_import("static/chunks/chart.js", imports).module == "./vendor/chart.js"
    assert match_chunk_import("lodash.js", imports).module == "lodash"
    assert match_chunk_import("react.js", imports) is None
