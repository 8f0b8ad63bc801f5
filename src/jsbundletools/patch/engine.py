"""Patch engine: apply resolved PatchSets to a ModuleStore in place.

For each PatchSet (in order):
1. resolve the `moduleImport` search strings to module ids against the current
   store contents (earlier PatchSets' edits are visible);
2. for every module and every rule (in rule order), when the rule matches the
   module's current text:
   - inject the resolved imports into the module's `__d(...)` factory call,
   - then substitute the rule's replacement.

Injection runs once per matching rule and is not idempotent: re-applying a
PatchSet injects the imports again.

Module bytes are decoded as UTF-8 with `surrogateescape` so arbitrary bytes
survive the text round trip unchanged.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from jsbundletools.core.model import ModuleImportSpec, ModuleStore, PatchRule, PatchSet
from jsbundletools.patch.template import expand_template

logger = logging.getLogger(__name__)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"

# __d(function <name>?(<params>) { <body> }, <id>, [<deps>] ...
# The greedy body match binds to the last `}, <id>, [` in the module.
_FACTORY_RE = re.compile(
    r"__d\(\s*function\s*[\w$]*\s*\(([^)]*)\)\s*\{(.*)\}\s*,\s*(\d+)\s*,\s*\[([^\]]*)\]",
    re.DOTALL,
)

# Positions inside the factory parameter list. Metro emits either 5 or 7
# parameters; the dependency map is always last.
_REQUIRE_PARAM = 1
_MIN_PARAMS = 3

IMPORT_BINDING_PREFIX = "_patchImport"


class PatternExtractionError(ValueError):
    """Raised when a module lacks the factory call needed for import injection."""


def _decode(content: bytes) -> str:
    return content.decode(_ENCODING, _ERRORS)


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


def resolve_imports(store: ModuleStore, spec: ModuleImportSpec) -> list[str]:
    """Map each search string to the first numbered module containing it.

    Search strings with no matching module are skipped (with a warning).
    """
    imports: list[str] = []
    numeric_ids = store.numeric_ids()
    for search in spec.search_strings:
        needle = _encode(search)
        for module_id in numeric_ids:
            if needle in store[module_id]:
                imports.append(module_id)
                break
        else:
            logger.warning("moduleImport: no module contains %r", search)
    return imports


def inject_imports(text: str, imports: Sequence[str], *, module_id: str = "?") -> str:
    """Add `imports` as dependencies of the module's factory call.

    Each import `k` (1-based) becomes a binding
    `var _patchImport<k> = <require>(<dependencyMap>[<n + k - 1>]);` at the end of
    the factory body, where `n` is the original dependency count, and its id
    is appended to the dependency array. `<require>` is the factory's second
    parameter and `<dependencyMap>` its last.

    Raises:
        PatternExtractionError: no factory call, or too few factory parameters.
    """
    m = _FACTORY_RE.search(text)
    if m is None:
        raise PatternExtractionError(
            f"module {module_id}: factory call `__d(function(...) {{...}}, <id>, [...])` not found"
        )

    params = [p.strip() for p in m.group(1).split(",")]
    if len(params) < _MIN_PARAMS or not all(params):
        raise PatternExtractionError(
            f"module {module_id}: factory call has {len(params)} parameters; "
            f"expected at least {_MIN_PARAMS}"
        )
    require_name = params[_REQUIRE_PARAM]
    dependency_map = params[-1]

    deps_text = m.group(4)
    original_count = len([d for d in deps_text.split(",") if d.strip()])

    # Import k (1-based) lands at slot n + k - 1 of the extended dependency array.
    statements = "".join(
        f"\nvar {IMPORT_BINDING_PREFIX}{k} = {require_name}({dependency_map}[{original_count + k - 1}]);"
        for k in range(1, len(imports) + 1)
    )
    new_deps = deps_text + ("," if original_count else "") + ",".join(imports)

    return "".join(
        [
            text[: m.end(2)],
            statements,
            text[m.end(2) : m.start(4)],
            new_deps,
            text[m.end(4) :],
        ]
    )


def rule_matches(rule: PatchRule, text: str) -> bool:
    if rule.pattern is not None:
        return rule.pattern.search(text) is not None
    return rule.find in text


def apply_rule(rule: PatchRule, text: str) -> str:
    """Substitute every occurrence of the rule's find pattern in `text`."""
    if rule.pattern is not None:
        return rule.pattern.sub(lambda m: expand_template(rule.template, m), text)
    return text.replace(rule.find, rule.replacement)


def apply_patch_set(store: ModuleStore, patch_set: PatchSet) -> ModuleStore:
    logger.info("Applying patches for %s", patch_set.name)

    imports: list[str] = []
    if patch_set.module_import is not None:
        imports = resolve_imports(store, patch_set.module_import)
        logger.debug("%s: resolved imports %s", patch_set.name, imports)

    for module_id in store.ordered_ids():
        original = store[module_id]
        text = _decode(original)
        for rule in patch_set.rules:
            if not rule_matches(rule, text):
                continue
            if imports:
                text = inject_imports(text, imports, module_id=module_id)
            text = apply_rule(rule, text)

        patched = _encode(text)
        if patched != original:
            store[module_id] = patched
            logger.debug("%s: patched module %s", patch_set.name, module_id)
    return store


def apply_patch_sets(store: ModuleStore, patch_sets: Iterable[PatchSet]) -> ModuleStore:
    """Apply `patch_sets` in order, mutating and returning `store`."""
    for patch_set in patch_sets:
        apply_patch_set(store, patch_set)
    logger.info("Patches were applied!")
    return store
