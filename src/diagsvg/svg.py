"""Markup layer: SVG elements, number formatting and document output."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, TextIO

from lxml import etree

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from typing_extensions import TypeAlias

    from .transform import TMatrix

logger = logging.getLogger(__name__)

SVG_URI = 'http://www.w3.org/2000/svg'
XLINK_URI = 'http://www.w3.org/1999/xlink'

# : Namespace map of every generated element
SVG_NS = {
    None: SVG_URI,
    'xlink': XLINK_URI,
}

SVG11_DOCTYPE = (
    '<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN"'
    ' "http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">'
)

TElement: TypeAlias = (
    etree._Element  # noqa: SLF001 pylint: disable=protected-access
)
# An ordered run of sibling elements.
TFragment: TypeAlias = 'list[TElement]'


class SVGError(Exception):
    """SVG output error."""


def svg_ns(tag: str) -> str:
    """Shortcut to prepend SVG namespace to `tag`."""
    return f'{{{SVG_URI}}}{tag}'


def xlink_ns(tag: str) -> str:
    """Shortcut to prepend xlink namespace to `tag`."""
    return f'{{{XLINK_URI}}}{tag}'


def strip_ns(tag: str) -> str:
    """Strip the namespace part from the tag if any."""
    return tag.rpartition('}')[2]


def fmt_float(value: float, precision: int | None = None) -> str:
    """Format a number for SVG output.

    Args:
        value: The number.
        precision: The number of digits after the decimal point.
            None means use repr(float). Trailing zeros (and a trailing
            decimal point) are always stripped.
    """
    if precision is None:
        text = repr(float(value))
        if text.endswith('.0'):
            text = text[:-2]
    else:
        text = f'{float(value):.{precision}f}'
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
    if text == '-0':
        text = '0'
    return text


def transform_attr(matrix: TMatrix, precision: int | None = None) -> str:
    """Create a SVG transform attribute value from matrix."""
    terms = (
        matrix[0, 0],
        matrix[1, 0],
        matrix[0, 1],
        matrix[1, 1],
        matrix[0, 2],
        matrix[1, 2],
    )
    return 'matrix({})'.format(
        ','.join(fmt_float(term, precision) for term in terms)
    )


def element(
    tag: str,
    attrs: Mapping[str, str] | None = None,
    children: Iterable[TElement] = (),
    text: str | None = None,
) -> TElement:
    """Create an SVG element.

    Args:
        tag: Tag name without namespace.
        attrs: Attributes in output order.
        children: Child elements, moved under the new element.
        text: Optional text content.
    """
    node = etree.Element(svg_ns(tag), nsmap=SVG_NS)
    if attrs:
        for name, value in attrs.items():
            node.set(name, value)
    node.extend(children)
    if text is not None:
        node.text = text
    return node


def concat(*fragments: Iterable[TElement]) -> TFragment:
    """Concatenate fragments, preserving order."""
    result: TFragment = []
    for fragment in fragments:
        result.extend(fragment)
    return result


def svg_header(
    width: float,
    height: float,
    definitions: Sequence[TElement],
    content: Iterable[TElement],
    precision: int | None = None,
) -> TElement:
    """Create the root svg element.

    Args:
        width: Document width in user units.
        height: Document height in user units.
        definitions: Global definitions placed in a leading defs
            element. The elements are copied, so the same definitions
            can be shared by several documents. No defs element is
            created if empty.
        content: The document body.
        precision: Numeric output precision.
    """
    attrs = {
        'version': '1.1',
        'width': fmt_float(width, precision),
        'height': fmt_float(height, precision),
        'font-size': '1',
        'viewBox': f'0 0 {round(width):d} {round(height):d}',
        'stroke': 'rgb(0,0,0)',
        'stroke-opacity': '1',
    }
    docroot = element('svg', attrs)
    if definitions:
        docroot.append(
            element('defs', children=(copy.deepcopy(d) for d in definitions))
        )
    docroot.extend(content)
    return docroot


class SVGDocument:
    """A complete in-memory SVG document."""

    docroot: TElement

    def __init__(self, docroot: TElement) -> None:
        """New SVG document.

        Args:
            docroot: The root svg element.
        """
        if strip_ns(docroot.tag) != 'svg':
            raise SVGError(f'Not an svg root element: {docroot.tag}')
        self.docroot = docroot
        self.document = etree.ElementTree(docroot)

    @property
    def width(self) -> str | None:
        """The root width attribute."""
        return self.docroot.get('width')

    @property
    def height(self) -> str | None:
        """The root height attribute."""
        return self.docroot.get('height')

    def to_string(self, pretty_print: bool = False) -> str:
        """Serialize the document as text, XML declaration included."""
        data = etree.tostring(
            self.document,
            encoding='unicode',
            pretty_print=pretty_print,
            doctype=SVG11_DOCTYPE,
        )
        return '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n' + data

    def to_bytes(self, pretty_print: bool = False) -> bytes:
        """Serialize the document as UTF-8 encoded bytes."""
        return etree.tostring(
            self.document,
            encoding='UTF-8',
            xml_declaration=True,
            standalone=False,
            pretty_print=pretty_print,
            doctype=SVG11_DOCTYPE,
        )

    def write_document(
        self, stream: TextIO, pretty_print: bool = False
    ) -> None:
        """Write the SVG document to a stream output."""
        stream.write(self.to_string(pretty_print=pretty_print))
