"""`$`-style replacement templates for regex patch rules.

Syntax:
- `$1`, `${1}`: numbered group
- `$name`, `${name}`: named group (`$name` takes the longest run of
  letters, digits and underscores)
- `$$`: a literal `$`

A `$` that does not start a valid reference is kept as-is. References to
groups that do not exist, or did not participate in the match, expand to "".
Backslashes carry no special meaning.
"""

from __future__ import annotations

import re
from typing import Sequence, Union

from jsbundletools.core.model import GroupRef

_REF_RE = re.compile(r"\$(?:\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+))")

TemplatePart = Union[str, GroupRef]


def parse_template(template: str) -> tuple[TemplatePart, ...]:
    """Split `template` into literal text and GroupRef parts."""
    parts: list[TemplatePart] = []
    buf: list[str] = []
    i = 0
    while i < len(template):
        ch = template[i]
        if ch != "$":
            buf.append(ch)
            i += 1
            continue
        if template.startswith("$$", i):
            buf.append("$")
            i += 2
            continue
        m = _REF_RE.match(template, i)
        if m is None:
            buf.append("$")
            i += 1
            continue
        if buf:
            parts.append("".join(buf))
            buf = []
        name = m.group(1) or m.group(2)
        parts.append(GroupRef(int(name) if name.isdigit() else name))
        i = m.end()
    if buf:
        parts.append("".join(buf))
    return tuple(parts)


def expand_template(parts: Sequence[TemplatePart], match: re.Match[str]) -> str:
    out: list[str] = []
    for part in parts:
        if isinstance(part, GroupRef):
            try:
                value = match.group(part.group)
            except IndexError:
                value = None
            out.append(value or "")
        else:
            out.append(part)
    return "".join(out)
