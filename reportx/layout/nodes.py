from __future__ import annotations

import re
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from ..errors import MarkupParseError
from ..types import Alignment


FOOTER_CLASS = 'footer'

_TEXT_ALIGN_PATTERN = re.compile(r'text-align\s*:\s*(left|center|right)', re.IGNORECASE)


class NodeKind(str, Enum):
    document = 'document'
    element = 'element'
    text = 'text'


@dataclass(eq=False)
class ParsedNode:
    kind: NodeKind
    tag: str = ''
    attrs: list[tuple[str, str]] = field(default_factory=list)
    children: list[ParsedNode] = field(default_factory=list)
    text: str = ''
    _parent_ref: weakref.ReferenceType | None = field(default=None, init=False, repr=False)

    @property
    def parent(self) -> ParsedNode | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def attr(self, key: str, default: str = '') -> str:
        for name, value in self.attrs:
            if name == key:
                return value
        return default

    def append(self, child: ParsedNode) -> ParsedNode:
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        return child

    def is_element(self, *tags: str) -> bool:
        if self.kind is not NodeKind.element:
            return False
        return not tags or self.tag in tags

    def iter_descendants(self) -> Iterator[ParsedNode]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()


def _attr_value(value: object) -> str:
    # bs4 reports multi-valued attributes such as class as lists
    if isinstance(value, (list, tuple)):
        return ' '.join(str(item) for item in value)
    return str(value)


def _convert_children(source: Tag, target: ParsedNode) -> None:
    for child in source.children:
        if isinstance(child, Tag):
            node = target.append(
                ParsedNode(
                    kind=NodeKind.element,
                    tag=str(child.name or '').lower(),
                    attrs=[(str(key).lower(), _attr_value(value)) for key, value in child.attrs.items()],
                )
            )
            _convert_children(child, node)
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            target.append(ParsedNode(kind=NodeKind.text, text=str(child)))


def parse_markup(markup: str) -> ParsedNode:
    if not isinstance(markup, str):
        raise MarkupParseError(f'markup must be a string, got {type(markup).__name__}')
    try:
        soup = BeautifulSoup(markup, 'html.parser')
    except Exception as exc:
        raise MarkupParseError(f'failed to parse markup: {exc}') from exc

    root = ParsedNode(kind=NodeKind.document)
    try:
        _convert_children(soup, root)
    except RecursionError as exc:
        raise MarkupParseError('markup is nested too deeply') from exc
    return root


def get_text_content(node: ParsedNode) -> str:
    if node.kind is NodeKind.text:
        return node.text.strip()
    parts: list[str] = []
    for child in node.iter_descendants():
        if child.kind is not NodeKind.text:
            continue
        text = child.text.strip()
        if text:
            parts.append(text)
    return ' '.join(parts)


def find_footer_node(root: ParsedNode) -> ParsedNode | None:
    candidates = [root, *root.iter_descendants()]
    for node in candidates:
        if node.is_element('div') and FOOTER_CLASS in node.attr('class').split():
            return node
    return None


def find_footer_text(root: ParsedNode) -> str:
    footer = find_footer_node(root)
    if footer is None:
        return ''
    return get_text_content(footer)


def parent_alignment(node: ParsedNode) -> Alignment:
    parent = node.parent
    if parent is None:
        return Alignment.left
    match = _TEXT_ALIGN_PATTERN.search(parent.attr('style'))
    if match is None:
        return Alignment.left
    return Alignment(match.group(1).lower())
