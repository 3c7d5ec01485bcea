"""Tests for file scanning and import resolution."""

from pathlib import Path

import pytest

from component_insight.scanner import FileScanner, ScanStrategy, normalize_path


def test_scan_sample_library(sample_library_path: Path):
    """Scanning the sample library indexes its sources."""
    index = FileScanner().scan(sample_library_path)

    base = Path(normalize_path(sample_library_path))
    names = sorted(Path(f.path).relative_to(base).as_posix() for f in index)
    assert "src/index.ts" in names
    assert "src/components/button.tsx" in names
    assert "package.json" not in names
    assert index.total_size > 0


def test_scan_applies_exclusions(temp_dir: Path):
    """Excluded directories and patterns are skipped."""
    (temp_dir / "src").mkdir()
    (temp_dir / "node_modules" / "react").mkdir(parents=True)
    (temp_dir / "src" / "button.tsx").write_text("export const A = 1;")
    (temp_dir / "src" / "button.test.tsx").write_text("test('x', () => {});")
    (temp_dir / "src" / "button.stories.tsx").write_text("export default {};")
    (temp_dir / "src" / "global.d.ts").write_text("declare const X: number;")
    (temp_dir / "src" / "README.md").write_text("# docs")
    (temp_dir / "node_modules" / "react" / "index.js").write_text("module.exports = {};")

    index = FileScanner().scan(temp_dir)

    assert [Path(f.path).name for f in index] == ["button.tsx"]


def test_scan_skips_large_files(temp_dir: Path):
    """Files over the size limit are skipped."""
    (temp_dir / "big.ts").write_text("x" * 4096)
    (temp_dir / "small.ts").write_text("export const A = 1;")

    index = FileScanner(ScanStrategy(max_file_size_kb=2)).scan(temp_dir)

    assert [Path(f.path).name for f in index] == ["small.ts"]


def test_scan_missing_directory(temp_dir: Path):
    """A missing directory raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        FileScanner().scan(temp_dir / "missing")


def test_resolve_import_order(make_index, path_of):
    """Extensions are tried before directory index files."""
    index = make_index({
        "src/index.ts": "",
        "src/button.tsx": "",
        "src/button/index.ts": "",
        "src/basic/index.tsx": "",
    })
    importer = path_of("src/index.ts")

    assert index.resolve_import("./button", importer) == path_of("src/button.tsx")
    assert index.resolve_import("./button/index.ts", importer) == path_of("src/button/index.ts")
    assert index.resolve_import("./basic", importer) == path_of("src/basic/index.tsx")
    assert index.resolve_import("../src/button", importer) == path_of("src/button.tsx")
    assert index.resolve_import("react", importer) is None
    assert index.resolve_import("./missing", importer) is None


def test_analyze_dependencies(make_index, path_of):
    """Relative imports and re-exports are resolved in order."""
    index = make_index({
        "src/card.tsx": (
            "import React from 'react';\n"
            "import { Icon } from './icon';\n"
            "import './card.css';\n"
            "import { Icon as I2 } from './icon';\n"
            "export { Body } from './body';\n"
            "import { Card } from './card';\n"
        ),
        "src/icon.tsx": "",
        "src/body.tsx": "",
    })

    deps = index.analyze_dependencies(index.get(path_of("src/card.tsx")))

    assert deps == [path_of("src/icon.tsx"), path_of("src/body.tsx")]
