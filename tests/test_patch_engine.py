from __future__ import annotations

import logging
from typing import Any

import pytest

from conftest import factory_module
from jsbundletools.core.model import ModuleStore, PatchSet
from jsbundletools.io.patches import parse_patch_descriptor
from jsbundletools.patch.engine import (
    PatternExtractionError,
    apply_patch_set,
    apply_patch_sets,
    inject_imports,
    resolve_imports,
)

_REQ = "_$$_REQUIRE"
_MAP = "_dependencyMap"


def _patch_set(obj: dict[str, Any], *, name: str = "demo", lines: tuple[str, ...] | None = None) -> PatchSet:
    return parse_patch_descriptor(obj, name=name, lines=lines)


def _text(store: ModuleStore, module_id: str) -> str:
    return store[module_id].decode("utf-8")


def test_literal_patch() -> None:
    store = ModuleStore({"startup": b"", "0": b"var x=foo;"})

    apply_patch_set(store, _patch_set({"patches": [{"find": "foo", "replace": "bar"}]}))

    assert _text(store, "0") == "var x=bar;"


def test_regex_patch_with_group_reference() -> None:
    store = ModuleStore({"startup": b"", "0": b"var x=foo;"})

    apply_patch_set(
        store,
        _patch_set({"patches": [{"find": r"x=(\w+);", "isRegex": True, "replace": "x=$1();"}]}),
    )

    assert _text(store, "0") == "var x=foo();"


def test_literal_patch_replaces_every_occurrence_and_is_not_a_regex() -> None:
    store = ModuleStore({"startup": b"", "0": b"a.b(a.b)", "1": b"axb"})

    apply_patch_set(store, _patch_set({"patches": [{"find": "a.b", "replace": "c"}]}))

    assert _text(store, "0") == "c(c)"
    assert _text(store, "1") == "axb"


def test_regex_template_syntax() -> None:
    store = ModuleStore({"startup": b"", "0": b"a=1;b=2;"})

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [
                    {
                        "find": r"(?P<key>\w)=(\d);",
                        "isRegex": True,
                        "replace": "${key}:$2$$ $9$key1|\\1;",
                    }
                ]
            }
        ),
    )

    # $9 and $key1 refer to missing groups and expand to nothing.
    assert _text(store, "0") == "a:1$ |\\1;b:2$ |\\1;"


def test_rules_apply_in_order_and_see_previous_edits() -> None:
    store = ModuleStore({"startup": b"", "0": b"one"})

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [
                    {"find": "one", "replace": "two"},
                    {"find": "two", "appendLiteral": "!"},
                    {"find": "^(\\w+)!$", "isRegex": True, "replace": "[$1]"},
                ]
            }
        ),
    )

    assert _text(store, "0") == "[two]"


def test_replace_from_line() -> None:
    store = ModuleStore({"startup": b"", "0": b"call(old)"})

    apply_patch_set(
        store,
        _patch_set({"patches": [{"find": "old", "replaceFromLine": 2}]}, lines=("unused", "fresh()")),
    )

    assert _text(store, "0") == "call(fresh())"


def test_patch_sets_apply_in_order() -> None:
    store = ModuleStore({"startup": b"", "0": b"a"})

    apply_patch_sets(
        store,
        [
            _patch_set({"patches": [{"find": "a", "replace": "b"}]}, name="first"),
            _patch_set({"patches": [{"find": "b", "replace": "c"}]}, name="second"),
        ],
    )

    assert _text(store, "0") == "c"


def test_non_utf8_bytes_survive_patching() -> None:
    store = ModuleStore({"startup": b"", "0": b"\xff\xfeabc\x80"})

    apply_patch_set(store, _patch_set({"patches": [{"find": "abc", "replace": "xyz"}]}))

    assert store["0"] == b"\xff\xfexyz\x80"


def _import_store() -> ModuleStore:
    return ModuleStore(
        {
            "startup": b"var __DEV__=false;",
            "0": factory_module(0, [], "exports.zero=0;").encode(),
            "2": factory_module(2, [0, 1], "var a=TARGET;").encode(),
            "5": factory_module(5, [], "module.exports=LIB_MARKER;").encode(),
        }
    )


def test_import_injection() -> None:
    store = _import_store()
    before_5 = store["5"]
    before_0 = store["0"]

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [{"find": "TARGET", "replace": "_patchImport1.hook()"}],
                "moduleImport": {"searchStrings": ["LIB_MARKER"]},
            }
        ),
    )

    expected = factory_module(
        2,
        [0, 1, 5],
        f"var a=_patchImport1.hook();\nvar _patchImport1 = {_REQ}({_MAP}[2]);",
    )
    assert _text(store, "2") == expected
    assert store["5"] == before_5
    assert store["0"] == before_0


def test_import_injection_into_empty_dependency_array() -> None:
    store = ModuleStore(
        {
            "startup": b"",
            "0": factory_module(0, [], "hook();").encode(),
            "1": b"LIB_A",
            "3": b"LIB_B",
        }
    )

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [{"find": "hook()", "replace": "_patchImport2(_patchImport1)"}],
                "moduleImport": {"searchStrings": ["LIB_A", "LIB_B"]},
            }
        ),
    )

    expected = factory_module(
        0,
        [1, 3],
        f"_patchImport2(_patchImport1);\nvar _patchImport1 = {_REQ}({_MAP}[0]);"
        f"\nvar _patchImport2 = {_REQ}({_MAP}[1]);",
    )
    assert _text(store, "0") == expected


def test_import_injection_is_not_idempotent() -> None:
    store = _import_store()
    patch_set = _patch_set(
        {
            "patches": [{"find": "TARGET", "appendLiteral": "/*x*/"}],
            "moduleImport": {"searchStrings": ["LIB_MARKER"]},
        }
    )

    apply_patch_set(store, patch_set)
    apply_patch_set(store, patch_set)

    expected = factory_module(
        2,
        [0, 1, 5, 5],
        f"var a=TARGET/*x*//*x*/;"
        f"\nvar _patchImport1 = {_REQ}({_MAP}[2]);"
        f"\nvar _patchImport1 = {_REQ}({_MAP}[3]);",
    )
    assert _text(store, "2") == expected


def test_injection_runs_once_per_matching_rule() -> None:
    store = _import_store()

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [
                    {"find": "TARGET", "replace": "T1"},
                    {"find": "T1", "replace": "T2"},
                ],
                "moduleImport": {"searchStrings": ["LIB_MARKER"]},
            }
        ),
    )

    assert _text(store, "2").count("var _patchImport1") == 2
    assert "},2,[0,1,5,5]," in _text(store, "2")


def test_no_injection_when_nothing_matches_import_search() -> None:
    store = _import_store()

    apply_patch_set(
        store,
        _patch_set(
            {
                "patches": [{"find": "TARGET", "replace": "X"}],
                "moduleImport": {"searchStrings": ["NOT_PRESENT"]},
            }
        ),
    )

    assert _text(store, "2") == factory_module(2, [0, 1], "var a=X;")


def test_missing_factory_call_is_fatal() -> None:
    store = ModuleStore({"startup": b"", "1": b"plain TARGET", "5": b"LIB_MARKER"})

    with pytest.raises(PatternExtractionError, match=r"module 1: factory call"):
        apply_patch_set(
            store,
            _patch_set(
                {
                    "patches": [{"find": "TARGET", "replace": "X"}],
                    "moduleImport": {"searchStrings": ["LIB_MARKER"]},
                }
            ),
        )


def test_factory_call_with_too_few_parameters() -> None:
    text = "__d(function (g, r) {TARGET},1,[]);"

    with pytest.raises(PatternExtractionError, match=r"2 parameters; expected at least 3"):
        inject_imports(text, ["5"], module_id="1")


def test_injection_into_five_parameter_factory_uses_last_parameter_as_dependency_map() -> None:
    text = "__d(function (global, require, module, exports, dependencyMap) {TARGET},4,[1]);"

    out = inject_imports(text, ["5"], module_id="4")

    assert out == (
        "__d(function (global, require, module, exports, dependencyMap) {TARGET"
        "\nvar _patchImport1 = require(dependencyMap[1]);},4,[1,5]);"
    )


def test_module_import_sees_earlier_patch_sets() -> None:
    store = ModuleStore({"startup": b"", "1": b"placeholder", "5": b"LIB_MARKER"})

    apply_patch_set(store, _patch_set({"patches": [{"find": "placeholder", "replace": "LIB_MARKER"}]}))

    spec = _patch_set({"moduleImport": {"searchStrings": ["LIB_MARKER"]}}).module_import
    assert spec is not None
    assert resolve_imports(store, spec) == ["1"]


def test_resolve_imports_skips_startup_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    store = ModuleStore({"startup": b"LIB_MARKER", "3": b"x", "4": b"OTHER"})
    spec = _patch_set({"moduleImport": {"searchStrings": ["LIB_MARKER", "OTHER"]}}).module_import
    assert spec is not None

    with caplog.at_level(logging.WARNING, logger="jsbundletools"):
        imports = resolve_imports(store, spec)

    assert imports == ["4"]
    assert "no module contains 'LIB_MARKER'" in caplog.text
