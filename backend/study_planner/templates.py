"""Template mini-language used by catalog text.

Two constructs are supported::

    {{name}}                      replaced by the variable's text ("" if unknown)
    {{#if name}}...{{/if}}        kept only when ``name`` is truthy

Blocks do not nest. Templates are tokenised and parsed once, then rendered
against a variable table. Every ``{{#...}}`` is read as an opener and every
``{{/...}}`` as a closer, so rendering never raises and never emits block
marker syntax. Nested openers and stray closers are dropped and an
unterminated block runs to the end of the template. An opener that is not
exactly ``#if <name>`` is falsy.
After substitution, runs of two or more whitespace characters collapse to one
space and the result is trimmed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Literal, Mapping, NamedTuple, Optional, Set, Tuple, Union

from .values import TemplateValue, TemplateVariables

TokenKind = Literal["text", "variable", "open", "close"]

_TOKEN_PATTERN = re.compile(r"\{\{(?:#([^{}]*)|(/[^{}]*)|(\w+))\}\}")
_OPENER_BODY = re.compile(r"^if(?:\s+(.*?))?\s*$")
_NAME_PATTERN = re.compile(r"^\w+$")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


class Token(NamedTuple):
    kind: TokenKind
    value: str


@dataclass(frozen=True)
class _Text:
    text: str


@dataclass(frozen=True)
class _Variable:
    name: str


@dataclass(frozen=True)
class _Block:
    # None when the opener carried no usable name; such a block is always removed.
    name: Optional[str]
    children: Tuple[Union[_Text, _Variable], ...]


_Node = Union[_Text, _Variable, _Block]


def tokenize(template: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    for match in _TOKEN_PATTERN.finditer(template):
        if match.start() > position:
            tokens.append(Token("text", template[position : match.start()]))
        opener, close, variable = match.groups()
        if close is not None:
            tokens.append(Token("close", ""))
        elif variable is not None:
            tokens.append(Token("variable", variable))
        else:
            directive = _OPENER_BODY.match(opener)
            block_name = (directive.group(1) or "") if directive else ""
            tokens.append(Token("open", block_name.strip()))
        position = match.end()
    if position < len(template):
        tokens.append(Token("text", template[position:]))
    return tokens


class Template:
    """Parsed template, reusable across renders."""

    __slots__ = ("source", "_nodes")

    def __init__(self, source: str) -> None:
        self.source = source
        self._nodes = _parse(tokenize(source))

    def render(self, variables: Mapping[str, TemplateValue]) -> str:
        table = variables if isinstance(variables, TemplateVariables) else TemplateVariables(variables)
        parts: List[str] = []
        for node in self._nodes:
            if isinstance(node, _Block):
                if node.name is not None and table.is_truthy(node.name):
                    parts.extend(_render_inline(child, table) for child in node.children)
            else:
                parts.append(_render_inline(node, table))
        return _WHITESPACE_RUN.sub(" ", "".join(parts)).strip()

    def placeholder_names(self) -> Set[str]:
        names: Set[str] = set()
        for node in self._nodes:
            children = node.children if isinstance(node, _Block) else (node,)
            names.update(child.name for child in children if isinstance(child, _Variable))
        return names

    def block_names(self) -> Set[str]:
        return {node.name for node in self._nodes if isinstance(node, _Block) and node.name is not None}


def _parse(tokens: List[Token]) -> Tuple[_Node, ...]:
    nodes: List[_Node] = []
    block_name: Optional[str] = None
    block_children: Optional[List[Union[_Text, _Variable]]] = None

    for token in tokens:
        if token.kind == "open":
            if block_children is not None:
                continue
            block_name = token.value if _NAME_PATTERN.match(token.value) else None
            block_children = []
        elif token.kind == "close":
            if block_children is None:
                continue
            nodes.append(_Block(block_name, tuple(block_children)))
            block_name, block_children = None, None
        else:
            inline: Union[_Text, _Variable] = _Variable(token.value) if token.kind == "variable" else _Text(token.value)
            if block_children is not None:
                block_children.append(inline)
            else:
                nodes.append(inline)

    if block_children is not None:
        nodes.append(_Block(block_name, tuple(block_children)))
    return tuple(nodes)


def _render_inline(node: Union[_Text, _Variable], table: TemplateVariables) -> str:
    if isinstance(node, _Variable):
        return table.text(node.name)
    return node.text


@lru_cache(maxsize=1024)
def compile_template(source: str) -> Template:
    return Template(source)


def render_template(source: str, variables: Mapping[str, TemplateValue]) -> str:
    """Render ``source`` against ``variables``. Never raises for template content."""
    return compile_template(source).render(variables)


__all__ = ["Template", "Token", "compile_template", "render_template", "tokenize"]
