from __future__ import annotations

from typing import Iterable, Optional


def extract_prefix(name: str) -> tuple[str, Optional[int]]:
    """Split ``name`` into its non-digit prefix and trailing decimal suffix.

    ``"CH12"`` gives ``("CH", 12)``, ``"CTRL"`` gives ``("CTRL", None)`` and
    ``"12"`` gives ``("", 12)``.
    """
    stripped = name.rstrip("0123456789")
    digits = name[len(stripped):]
    return stripped, (int(digits) if digits else None)


def common_prefix(names: Iterable[str]) -> str:
    names = list(names)
    if not names:
        return ""
    out = []
    for chars in zip(*names):
        if any(c != chars[0] for c in chars[1:]):
            break
        out.append(chars[0])
    return "".join(out)


def doc_text(text: str) -> str:
    # collapse SVD line wrapping and escape for a Rust string literal
    text = " ".join(text.split())
    return text.replace("\\", "\\\\").replace('"', '\\"')
