"""Compile a scene tree into an SVG document.

The compiler walks the tree depth first, accumulating transforms
on the way down and threading a :class:`RenderState` that hands out
document-wide unique identifiers for clip paths and gradients.

Typical use::

    tree = scene.styled(
        scene.fill_color('red'),
        scene.Primitive(geometry.rect(0, 0, 10, 10)),
    )
    render_svg('square.svg', SizeSpec.dims(100, 100), tree)
"""

from __future__ import annotations

import io
import logging
import os
import pathlib
from typing import TYPE_CHECKING, NamedTuple

import PIL.Image
from PIL import UnidentifiedImageError

from . import encode, scene, svg, transform
from .encode import ImageEncodingError, SVGEncoder
from .geometry import Path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from typing_extensions import Self

    from .svg import TElement, TFragment
    from .transform import TMatrix

logger = logging.getLogger(__name__)

# Size used for any dimension left unconstrained.
DEFAULT_SIZE = 100.0

_PNG_HEADER = b'\x89PNG\r\n\x1a\n'
_JPEG_HEADER = b'\xff\xd8'

# The root style. Fills default to transparent so that nothing
# is filled unless a fill is requested.
_ROOT_STYLE = scene.fill_color((0.0, 0.0, 0.0, 0.0))


class RenderState:
    """Identifier counters for one document.

    Fill gradient ids are even and line gradient ids are odd
    so the two never collide in the shared id namespace.
    """

    def __init__(self) -> None:
        self.clip_path_id = 0
        self.fill_gradient_id = 0
        self.line_gradient_id = 1

    def next_clip_path_id(self) -> int:
        ident = self.clip_path_id
        self.clip_path_id += 1
        logger.debug('clip path id: %d', ident)
        return ident

    def next_fill_gradient_id(self) -> int:
        ident = self.fill_gradient_id
        self.fill_gradient_id += 2
        logger.debug('fill gradient id: %d', ident)
        return ident

    def next_line_gradient_id(self) -> int:
        ident = self.line_gradient_id
        self.line_gradient_id += 2
        logger.debug('line gradient id: %d', ident)
        return ident


class SizeSpec(NamedTuple):
    """Requested output size. None means unconstrained."""

    width: float | None = None
    height: float | None = None

    @classmethod
    def mk_width(cls: type[Self], width: float) -> Self:
        """Fixed width."""
        return cls(width=width)

    @classmethod
    def mk_height(cls: type[Self], height: float) -> Self:
        """Fixed height."""
        return cls(height=height)

    @classmethod
    def dims(cls: type[Self], width: float, height: float) -> Self:
        """Fixed width and height."""
        return cls(width, height)

    @classmethod
    def absolute(cls: type[Self]) -> Self:
        """No size constraint."""
        return cls()

    def to_size(self, default: float = DEFAULT_SIZE) -> tuple[float, float]:
        """Resolve to (width, height).

        A missing dimension takes the smallest given one, so a single
        fixed dimension yields a square. `default` is used only when
        neither dimension is given.
        """
        given = [d for d in (self.width, self.height) if d is not None]
        fill = min(given) if given else default
        return (
            fill if self.width is None else self.width,
            fill if self.height is None else self.height,
        )


class SVGOptions(NamedTuple):
    """Per-document render options.

    Attributes:
        size: Requested output size.
        svg_definitions: Extra elements for the global defs section.
        id_prefix: Prefix for clip path and gradient ids, to keep
            several documents embedded in one page apart.
        precision: Number of digits after the decimal point for
            numeric output. None means shortest round-trip.
        flip_y: Flip the Y-up scene coordinates onto the Y-down
            SVG viewport.
    """

    size: SizeSpec = SizeSpec()
    svg_definitions: Sequence[TElement] = ()
    id_prefix: str = ''
    precision: int | None = None
    flip_y: bool = True


class SVGCompiler:
    """Scene tree to SVG fragment compiler for a single document."""

    def __init__(
        self, encoder: SVGEncoder, state: RenderState | None = None
    ) -> None:
        self.encoder = encoder
        self.state = RenderState() if state is None else state

    def compile(
        self, node: scene.TNode, matrix: TMatrix = transform.IDENTITY
    ) -> tuple[TFragment, bool]:
        """Compile a subtree.

        Args:
            node: The subtree root.
            matrix: The accumulated transform of the node's ancestors.

        Returns:
            A 2-tuple of the output fragment and a flag that is True
            if the subtree contains nothing but open lines.
        """
        if isinstance(node, scene.Primitive):
            return self.compile_primitive(node.shape, matrix)
        if isinstance(node, scene.StyleNode):
            return self.compile_style(node, matrix)
        if isinstance(node, scene.TransformNode):
            return self.compile_children(
                node.children, transform.compose(matrix, node.matrix)
            )
        if isinstance(node, scene.AnnotationNode):
            content, only_lines = self.compile_children(node.children, matrix)
            return [self.annotate(node.annotation, content)], only_lines
        if isinstance(node, scene.GroupNode):
            return self.compile_children(node.children, matrix)
        raise TypeError(f'Unrecognized scene node: {node!r}')

    def compile_children(
        self, children: Iterable[scene.TNode], matrix: TMatrix
    ) -> tuple[TFragment, bool]:
        """Compile and concatenate sibling subtrees in order."""
        fragments = []
        only_lines = True
        for child in children:
            fragment, child_lines = self.compile(child, matrix)
            fragments.append(fragment)
            only_lines = only_lines and child_lines
        return svg.concat(*fragments), only_lines

    def compile_primitive(
        self, shape: scene.TShape, matrix: TMatrix
    ) -> tuple[TFragment, bool]:
        if isinstance(shape, Path):
            path = shape.transform(matrix)
            return self.encoder.render_path(path), path.is_lines()
        if isinstance(shape, scene.Text):
            return self.encoder.render_text(shape.transform(matrix)), False
        if isinstance(shape, scene.Image):
            return self.encoder.render_image(shape.transform(matrix)), False
        raise TypeError(f'Unrecognized shape: {shape!r}')

    def compile_style(
        self, node: scene.StyleNode, matrix: TMatrix
    ) -> tuple[TFragment, bool]:
        """Render the children, then wrap them in the style.

        Output layout::

            <g clip-path=...><clipPath/>      (one per clip path)
              <defs>{gradients}</defs>        (only with gradients)
              <g {style attributes}>{children}</g>
            </g>
        """
        content, only_lines = self.compile_children(node.children, matrix)

        style = node.style.transform(matrix)
        state = self.state
        clip_ids = [state.next_clip_path_id() for _path in style.clip]

        line_id = state.line_gradient_id
        if scene.is_gradient(style.line_texture):
            line_id = state.next_line_gradient_id()
        fill_id = state.fill_gradient_id
        if scene.is_gradient(style.fill_texture) and not only_lines:
            fill_id = state.next_fill_gradient_id()

        defs = svg.concat(
            ()
            if only_lines
            else self.encoder.texture_defs(style.fill_texture, fill_id),
            self.encoder.texture_defs(style.line_texture, line_id),
        )
        attrs = self.encoder.style_attrs(
            style, fill_id=fill_id, line_id=line_id, ignore_fill=only_lines
        )
        styled = svg.concat(
            [svg.element('defs', children=defs)] if defs else (),
            [svg.element('g', attrs, content)],
        )
        fragment = self.encoder.render_clips(style.clip, clip_ids, styled)
        return fragment, only_lines

    def annotate(
        self, annotation: scene.TAnnotation, content: TFragment
    ) -> TElement:
        if isinstance(annotation, scene.Href):
            attrs = {svg.xlink_ns('href'): annotation.uri}
            return svg.element('a', attrs, content)
        if isinstance(annotation, scene.OpacityGroup):
            return svg.element(
                'g', {'opacity': self.encoder.num(annotation.opacity)}, content
            )
        raise TypeError(f'Unrecognized annotation: {annotation!r}')


def render_dia(tree: scene.TNode, options: SVGOptions) -> svg.SVGDocument:
    """Compile a scene tree to an SVG document.

    Each call uses fresh identifier counters.

    Raises:
        ImageEncodingError: if an embedded image can't be encoded.
    """
    width, height = options.size.to_size()
    logger.debug('document size: %s x %s', width, height)
    root: scene.TNode = scene.styled(_ROOT_STYLE, tree)
    if options.flip_y:
        root = scene.transformed(transform.flip_y(height), root)
    encoder = SVGEncoder(
        precision=options.precision, id_prefix=options.id_prefix
    )
    compiler = SVGCompiler(encoder)
    content, _only_lines = compiler.compile(root)
    docroot = svg.svg_header(
        width,
        height,
        options.svg_definitions,
        content,
        precision=options.precision,
    )
    return svg.SVGDocument(docroot)


def make_prefix(path: str | os.PathLike) -> str:
    """Id prefix from the file base name, letters only."""
    return ''.join(c for c in pathlib.Path(path).stem if c.isalpha())


def render_svg(
    path: str | os.PathLike, size: SizeSpec, tree: scene.TNode
) -> None:
    """Render a scene tree to a compact SVG file."""
    options = SVGOptions(size=size, id_prefix=make_prefix(path))
    render_svg_opts(path, options, tree)


def render_pretty(
    path: str | os.PathLike, size: SizeSpec, tree: scene.TNode
) -> None:
    """Render a scene tree to an indented SVG file."""
    options = SVGOptions(size=size, id_prefix=make_prefix(path))
    render_pretty_opts(path, options, tree)


def render_svg_opts(
    path: str | os.PathLike, options: SVGOptions, tree: scene.TNode
) -> None:
    """Render a scene tree to a compact SVG file with explicit options."""
    _write(path, render_dia(tree, options), pretty_print=False)


def render_pretty_opts(
    path: str | os.PathLike, options: SVGOptions, tree: scene.TNode
) -> None:
    """Render a scene tree to an indented SVG file with explicit options."""
    _write(path, render_dia(tree, options), pretty_print=True)


def _write(
    path: str | os.PathLike, document: svg.SVGDocument, pretty_print: bool
) -> None:
    path = pathlib.Path(path)
    logger.debug('writing %s', path)
    with path.open('w', encoding='utf8') as f:
        document.write_document(f, pretty_print=pretty_print)


def load_image(path: str | os.PathLike) -> scene.Primitive:
    """Load an image file as an embeddable image primitive.

    PNG and JPEG data is embedded unchanged. Other formats that
    Pillow can decode are converted to PNG.

    Raises:
        ImageEncodingError: if the file can't be decoded.
    """
    raw = pathlib.Path(path).read_bytes()
    try:
        with PIL.Image.open(io.BytesIO(raw)) as image:
            width, height = image.size
            if raw.startswith(_PNG_HEADER):
                source = scene.NativeImage(raw, 'image/png')
            elif raw.startswith(_JPEG_HEADER):
                source = scene.NativeImage(raw, 'image/jpeg')
            else:
                image.load()
                data = encode.encode_png(scene.RasterImage(image))
                source = scene.NativeImage(data, 'image/png')
    except (UnidentifiedImageError, OSError) as e:
        raise ImageEncodingError(f'Unable to decode image {path}: {e}') from e
    logger.debug('loaded image %s: %dx%d %s', path, width, height, source.mime)
    return scene.Primitive(scene.Image(source, width, height))
