"""Quickcheck workspace: encode -> unpack -> pack -> patch -> decode -> compare.

This workspace is self-contained (no repo-level assets required). It builds a
small synthetic bundle, writes it under
`workspaces/00_quickcheck_unpack_patch_pack/outputs/`, unpacks it to a module
directory, packs it back, applies one import-injecting patch descriptor, and
writes a JSON report.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsbundletools.codecs.jsbundle import encode_bundle, read_bundle, write_bundle
from jsbundletools.core.model import ModuleStore, RunConfig
from jsbundletools.pipeline import run


def _factory(module_id: int, deps: list[int], body: str) -> bytes:
    deps_text = ",".join(str(d) for d in deps)
    return (
        "__d(function (g, r, i, a, m, e, d) {"
        f"{body}"
        f"}},{module_id},[{deps_text}]);"
    ).encode("utf-8")


def _fixture_store() -> ModuleStore:
    return ModuleStore(
        {
            "startup": b"var __BUNDLE_START_TIME__=Date.now(),__DEV__=false;",
            "0": _factory(0, [1], "r(d[0]);m.exports=function main(){return isPro();};"),
            "1": _factory(1, [], "m.exports={FEATURE_FLAGS:{pro:false}};"),
            "2": _factory(2, [], "e.isPro=function(){return false};"),
        }
    )


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def main() -> None:
    here = Path(__file__).resolve().parent
    outputs = here / "outputs"
    outputs.mkdir(parents=True, exist_ok=True)

    store1 = _fixture_store()
    bundle_path = write_bundle(outputs / "main.jsbundle", store1)

    modules_dir = outputs / "modules"
    repacked_path = outputs / "repacked.jsbundle"
    run(RunConfig(mode="unpack", bundle_path=bundle_path, modules_dir=modules_dir))
    run(RunConfig(mode="pack", modules_dir=modules_dir, output_path=repacked_path))
    ok_repack = repacked_path.read_bytes() == encode_bundle(store1)

    patches_dir = outputs / "patches"
    _write_json(
        patches_dir / "10_pro.json",
        {
            "patches": [
                {"find": r"return isPro\(\)", "isRegex": True, "replace": "return _patchImport1.isPro()"},
                {"find": "pro:false", "replace": "pro:true"},
            ],
            "moduleImport": {"searchStrings": ["e.isPro="]},
        },
    )
    patched_path = outputs / "patched.jsbundle"
    run(RunConfig(mode="patch", bundle_path=bundle_path, patches_dir=patches_dir, output_path=patched_path))

    store2 = read_bundle(patched_path)
    main_text = store2["0"].decode("utf-8")
    ok_patch = "_patchImport1 = r(d[1])" in main_text and main_text.endswith("},0,[1,2]);")
    ok_patch = ok_patch and store2["2"] == store1["2"] and b"pro:true" in store2["1"]

    report = {
        "bundle_path": str(bundle_path),
        "repacked_path": str(repacked_path),
        "patched_path": str(patched_path),
        "repack_equal": ok_repack,
        "patch_applied": ok_patch,
        "module_ids": store2.ordered_ids(),
    }
    _write_json(outputs / "roundtrip_report.json", report)

    if not (ok_repack and ok_patch):
        raise SystemExit("quickcheck failed; see outputs/roundtrip_report.json")


if __name__ == "__main__":
    main()
