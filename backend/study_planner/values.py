"""Typed template variable values and their text serialisation."""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Union

TemplateValue = Union[str, int, float, bool]

FALSY_TEXT = frozenset({"", "false", "0"})


def to_template_text(value: TemplateValue) -> str:
    """Serialise a value the way templates see it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return value


class TemplateVariables(Mapping[str, TemplateValue]):
    """Read-only variable table built once per plan request."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, TemplateValue]) -> None:
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, name: str) -> TemplateValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"TemplateVariables({dict(self._values)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TemplateVariables):
            return dict(self._values) == dict(other._values)
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def text(self, name: str) -> str:
        """Serialised value, or the empty string for unknown names."""
        value = self._values.get(name)
        if value is None:
            return ""
        return to_template_text(value)

    def is_truthy(self, name: str) -> bool:
        if name not in self._values:
            return False
        return self.text(name) not in FALSY_TEXT

    def as_strings(self) -> Dict[str, str]:
        return {name: to_template_text(value) for name, value in self._values.items()}


EMPTY_VARIABLES = TemplateVariables({})

__all__ = ["EMPTY_VARIABLES", "FALSY_TEXT", "TemplateValue", "TemplateVariables", "to_template_text"]
