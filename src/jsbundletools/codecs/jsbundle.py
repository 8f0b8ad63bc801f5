"""Indexed `.jsbundle` codec (decode + encode).

Layout (little-endian throughout):

    0                 u32  magic = 0xfb0bd1e5
    4                 u32  entry_count
    8                 u32  startup_length (includes terminator)
    12                entry_count * {u32 offset, u32 length}
    12 + 8*count      startup block + terminator      <- module region start
    ...               module 0 + terminator, module 1 + terminator, ...

Entry offsets are relative to the module region start. The startup block
occupies the first `startup_length` bytes of that region, so module 0 of a
freshly encoded bundle always starts at `offset == startup_length`. Entry
lengths include the trailing terminator byte, which is stripped on decode and
re-added on encode.
"""

from __future__ import annotations

import os
import stat
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path

from jsbundletools.core.model import STARTUP_ID, ModuleStore

MAGIC = 0xFB0BD1E5
HEADER_SIZE = 12
ENTRY_SIZE = 8
TERMINATOR = b"\x00"

_U32 = struct.Struct("<I")
_HEADER = struct.Struct("<III")
_ENTRY = struct.Struct("<II")


class BundleFormatError(ValueError):
    """Raised when the input does not start with the bundle magic number."""


class TruncatedBundleError(OSError):
    """Raised when the input ends before a declared region does."""


class BundleLayoutError(ValueError):
    """Raised when a ModuleStore cannot be laid out as a bundle."""


@dataclass(frozen=True)
class Entry:
    offset: int
    length: int


def _read_region(data: bytes, start: int, length: int, *, what: str) -> bytes:
    end = start + length
    if end > len(data):
        raise TruncatedBundleError(
            f"{what}: declared {length} bytes at offset {start}, but input ends at {len(data)}"
        )
    return data[start:end]


def read_entry_table(data: bytes) -> tuple[int, list[Entry]]:
    """Validate the header and return (startup_length, entries).

    Raises:
        BundleFormatError: magic number mismatch.
        TruncatedBundleError: header or entry table cut short.
    """
    if len(data) < 4 or _U32.unpack_from(data, 0)[0] != MAGIC:
        got = f"0x{_U32.unpack_from(data, 0)[0]:08x}" if len(data) >= 4 else f"{len(data)} bytes"
        raise BundleFormatError(f"magic number not found: expected 0x{MAGIC:08x}, got {got}")

    _read_region(data, 0, HEADER_SIZE, what="header")
    _magic, entry_count, startup_length = _HEADER.unpack_from(data, 0)

    _read_region(data, HEADER_SIZE, entry_count * ENTRY_SIZE, what="entry table")
    entries = [
        Entry(*_ENTRY.unpack_from(data, HEADER_SIZE + i * ENTRY_SIZE))
        for i in range(entry_count)
    ]
    return startup_length, entries


def decode_bundle(data: bytes) -> ModuleStore:
    """Decode bundle bytes into a ModuleStore.

    Module `i` of the entry table is stored under id `str(i)`; the startup block
    is stored under `startup`.
    """
    data = bytes(data)
    startup_length, entries = read_entry_table(data)
    module_start = HEADER_SIZE + len(entries) * ENTRY_SIZE

    store = ModuleStore()
    for index, entry in enumerate(entries):
        content = _read_region(data, module_start + entry.offset, entry.length, what=f"module {index}")
        if content:
            content = content[:-1]
        store[str(index)] = content

    startup_size = max(startup_length - 1, 0)
    store[STARTUP_ID] = _read_region(data, module_start, startup_size, what=STARTUP_ID)
    return store


def layout_entries(store: ModuleStore) -> list[Entry]:
    """Compute entry-table rows for `store` (index == module id).

    Raises:
        BundleLayoutError: no startup block, or ids are not exactly 0..n-1.
    """
    startup = store.startup
    if startup is None:
        raise BundleLayoutError(f"cannot encode bundle: missing {STARTUP_ID!r} module")

    ids = store.numeric_ids()
    expected = [str(i) for i in range(len(ids))]
    if ids != expected:
        missing = sorted(set(range(int(ids[-1]) + 1)) - {int(i) for i in ids})
        raise BundleLayoutError(
            f"cannot encode bundle: module ids must be contiguous from 0; missing {missing}"
        )

    entries: list[Entry] = []
    offset = len(startup) + 1
    for module_id in ids:
        length = len(store[module_id]) + 1
        entries.append(Entry(offset=offset, length=length))
        offset += length
    return entries


def encode_bundle(store: ModuleStore) -> bytes:
    """Encode a ModuleStore into bundle bytes. `store` is not modified."""
    entries = layout_entries(store)
    startup = store.startup
    assert startup is not None  # checked by layout_entries

    entry_count = len(entries)
    module_start = HEADER_SIZE + entry_count * ENTRY_SIZE
    region_end = entries[-1].offset + entries[-1].length if entries else len(startup) + 1

    out = bytearray(module_start + region_end)
    _HEADER.pack_into(out, 0, MAGIC, entry_count, len(startup) + 1)

    position = HEADER_SIZE
    for index, entry in enumerate(entries):
        _ENTRY.pack_into(out, position, entry.offset, entry.length)
        position += ENTRY_SIZE

        start = module_start + entry.offset
        content = store[str(index)]
        out[start : start + len(content)] = content
        out[start + len(content)] = 0

    out[module_start : module_start + len(startup)] = startup
    out[module_start + len(startup)] = 0
    return bytes(out)


def read_bundle(path: str | Path) -> ModuleStore:
    """Read a bundle file from disk and decode it."""
    p = Path(path)
    with p.open("rb") as f:
        data = f.read()
    return decode_bundle(data)


def _output_mode(path: Path) -> int:
    """Mode for the written bundle: the existing file's, else 0o666 less the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_bundle(path: str | Path, store: ModuleStore) -> Path:
    """Encode `store` and write it to `path`.

    The bundle is written to a temporary file next to `path` and moved into
    place only once complete; on failure the destination is left untouched.
    """
    out_path = Path(path)
    data = encode_bundle(store)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{out_path.name}.", suffix=".tmp", dir=out_path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_name, _output_mode(out_path))
        os.replace(tmp_name, out_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return out_path
