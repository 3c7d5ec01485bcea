"""Tests for implementation tracing through re-export chains."""

from component_insight.models import TraceStatus
from component_insight.tracer import ImplementationTracer


def test_three_hop_chain(make_index, path_of):
    """A chain of named re-exports resolves to the declaring file."""
    index = make_index({
        "a.ts": "export { X } from './b';\n",
        "b.ts": "export { X } from './c';\n",
        "c.tsx": "export const X = () => <div />;\n",
    })

    result = ImplementationTracer(index).trace("X", path_of("a.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("c.tsx")
    assert set(result.visited) == {path_of("a.ts"), path_of("b.ts"), path_of("c.tsx")}


def test_renamed_re_export(make_index, path_of):
    """Renamed re-exports are followed under their local name."""
    index = make_index({
        "index.ts": "export { Base as Fancy } from './base';\n",
        "base.tsx": "export function Base() { return <div />; }\n",
    })

    result = ImplementationTracer(index).trace("Fancy", path_of("index.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("base.tsx")


def test_default_as_resolves_without_declaration(make_index, path_of):
    """A default-as re-export resolves to the target file."""
    index = make_index({
        "index.ts": "export { default as DialogModal } from './dialog';\n",
        "dialog.tsx": "export default () => <div />;\n",
    })

    result = ImplementationTracer(index).trace("DialogModal", path_of("index.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("dialog.tsx")
    assert result.visited == (path_of("index.ts"), path_of("dialog.tsx"))


def test_cycle_terminates_with_approximation(make_index, path_of):
    """Re-export cycles stop and return the last visited file."""
    index = make_index({
        "a.ts": "export { X } from './b';\n",
        "b.ts": "export { X } from './a';\n",
    })

    result = ImplementationTracer(index).trace("X", path_of("a.ts"))

    assert result.status is TraceStatus.APPROXIMATE
    assert result.file.path == path_of("b.ts")
    assert result.visited == (path_of("a.ts"), path_of("b.ts"))


def test_depth_cap(make_index, path_of):
    """Long chains stop at the depth limit."""
    sources = {f"m{i}.ts": f"export {{ X }} from './m{i + 1}';\n" for i in range(6)}
    sources["m6.tsx"] = "export const X = () => null;\n"
    index = make_index(sources)

    result = ImplementationTracer(index, max_depth=3).trace("X", path_of("m0.ts"))

    assert result.status is TraceStatus.APPROXIMATE
    assert len(result.visited) == 3


def test_wildcard_prefers_direct_exporter(make_index, path_of):
    """Wildcards pick the target that exports the name."""
    index = make_index({
        "index.ts": "export * from './tag';\nexport * from './card';\nexport * from './misc';\n",
        "tag.tsx": "export const Tag = () => null;\n",
        "card.tsx": "export const Card = () => null;\n",
        "misc.ts": "export const misc = 1;\n",
    })

    result = ImplementationTracer(index).trace("Card", path_of("index.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("card.tsx")
    assert path_of("tag.tsx") not in result.visited


def test_imported_then_exported(make_index, path_of):
    """Import-then-export barrels are followed."""
    index = make_index({
        "button.tsx": "import { SubButton } from './sub-btn';\nexport { SubButton };\n",
        "sub-btn.tsx": "export function SubButton() { return <button />; }\n",
    })

    result = ImplementationTracer(index).trace("SubButton", path_of("button.tsx"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("sub-btn.tsx")


def test_unresolvable_import_gives_last_file(make_index, path_of):
    """Package imports end the trace with an approximation."""
    index = make_index({
        "index.ts": "export { Button } from './button';\n",
        "button.ts": "export { Button } from '@acme/ui';\n",
    })

    result = ImplementationTracer(index).trace("Button", path_of("index.ts"))

    assert result.status is TraceStatus.APPROXIMATE
    assert result.file.path == path_of("button.ts")


def test_start_outside_index(make_index, path_of):
    """A start file missing from the index is unresolved."""
    index = make_index({"a.ts": ""})

    result = ImplementationTracer(index).trace("X", path_of("nowhere.ts"))

    assert result.status is TraceStatus.UNRESOLVED
    assert result.file is None
    assert result.visited == ()


def test_unparsable_hop_still_follows_re_exports(make_index, path_of):
    """Files with syntax errors still forward re-exports."""
    index = make_index({
        "index.ts": "export { Button } from './button';\nexport const = ;\n",
        "button.tsx": "export const Button = () => null;\n",
    })

    result = ImplementationTracer(index).trace("Button", path_of("index.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("button.tsx")


def test_wildcard_follows_nested_exporter(make_index, path_of):
    """Wildcards are matched through nested barrels."""
    index = make_index({
        "src/index.ts": "export { Card } from './basic';\n",
        "src/basic/index.ts": "export * from './nested';\nexport * from './tag';\n",
        "src/basic/nested/index.ts": "export * from './card';\n",
        "src/basic/nested/card.tsx": "export const Card = () => <div />;\n",
        "src/basic/tag.tsx": "export const Tag = () => <span />;\n",
    })

    result = ImplementationTracer(index).trace("Card", path_of("src/index.ts"))

    assert result.status is TraceStatus.RESOLVED
    assert result.file.path == path_of("src/basic/nested/card.tsx")
    assert path_of("src/basic/tag.tsx") not in result.visited
