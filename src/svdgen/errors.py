from __future__ import annotations

from typing import Sequence


class SvdError(ValueError):
    pass


class MissingField(SvdError):
    def __init__(self, element: str, field: str) -> None:
        super().__init__(f"missing field '{field}' in a '{element}'")
        self.element = element
        self.field = field


class UnexpectedValue(SvdError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"expected: {expected}, got: {actual}")
        self.expected = expected
        self.actual = actual


class UnresolvedReference(SvdError):
    def __init__(self, kind: str, name: str, reference: str) -> None:
        super().__init__(f"{kind} '{name}' is derived from unknown '{reference}'")
        self.kind = kind
        self.name = name
        self.reference = reference


class DerivationCycle(SvdError):
    def __init__(self, kind: str, chain: Sequence[str]) -> None:
        super().__init__(f"derivedFrom cycle between {kind}s: {' -> '.join(chain)}")
        self.kind = kind
        self.chain = tuple(chain)


class UnsupportedFeature(SvdError):
    def __init__(self, what: str) -> None:
        super().__init__(f"unsupported feature: {what}")
        self.what = what
