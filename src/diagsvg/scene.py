"""Scene tree, style and texture types consumed by the SVG backend."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, NamedTuple, Union

from . import transform
from .geometry import Path
from .svg import SVGError

if TYPE_CHECKING:
    from collections.abc import Sequence

    import PIL.Image
    from typing_extensions import TypeAlias

    from .css import TColor
    from .transform import TMatrix, TPoint


class StyleError(SVGError, ValueError):
    """Unrecognized style attribute value."""


class LineCap(enum.Enum):
    """Stroke end cap."""

    BUTT = 'butt'
    ROUND = 'round'
    SQUARE = 'square'


class LineJoin(enum.Enum):
    """Stroke corner join."""

    MITER = 'miter'
    ROUND = 'round'
    BEVEL = 'bevel'


class FillRule(enum.Enum):
    """Interior test for self-intersecting paths."""

    WINDING = 'nonzero'
    EVEN_ODD = 'evenodd'


class FontSlant(enum.Enum):
    """Font style."""

    NORMAL = 'normal'
    ITALIC = 'italic'
    OBLIQUE = 'oblique'


class FontWeight(enum.Enum):
    """Font weight."""

    NORMAL = 'normal'
    BOLD = 'bold'


class SpreadMethod(enum.Enum):
    """How a gradient extends beyond its stop range."""

    PAD = 'pad'
    REFLECT = 'reflect'
    REPEAT = 'repeat'


def to_enum(enum_type: type[enum.Enum], value: Any) -> Any:  # noqa: ANN401
    """Coerce an enum member or its string value to a member.

    Raises:
        StyleError: if the value is not one of the enumeration.
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as e:
        raise StyleError(
            f'Unknown {enum_type.__name__} value: {value!r}'
        ) from e


class Dashing(NamedTuple):
    """Stroke dash pattern."""

    lengths: tuple[float, ...]
    offset: float = 0.0


class GradientStop(NamedTuple):
    """Gradient color stop at a fractional offset in [0, 1]."""

    color: TColor
    offset: float


class SolidColor(NamedTuple):
    """Single color texture."""

    color: TColor

    def transform(self, _matrix: TMatrix) -> SolidColor:
        return self


class LinearGradient(NamedTuple):
    """Linear gradient between two points."""

    stops: tuple[GradientStop, ...]
    start: TPoint
    end: TPoint
    spread: SpreadMethod = SpreadMethod.PAD
    matrix: TMatrix = transform.IDENTITY

    def transform(self, matrix: TMatrix) -> LinearGradient:
        """Prepend the matrix to the gradient transform."""
        return self._replace(matrix=transform.compose(matrix, self.matrix))


class RadialGradient(NamedTuple):
    """Radial gradient between an inner and an outer circle."""

    stops: tuple[GradientStop, ...]
    center0: TPoint
    radius0: float
    center1: TPoint
    radius1: float
    spread: SpreadMethod = SpreadMethod.PAD
    matrix: TMatrix = transform.IDENTITY

    def transform(self, matrix: TMatrix) -> RadialGradient:
        """Prepend the matrix to the gradient transform."""
        return self._replace(matrix=transform.compose(matrix, self.matrix))


TTexture: TypeAlias = Union[SolidColor, LinearGradient, RadialGradient]
TGradient: TypeAlias = Union[LinearGradient, RadialGradient]


def is_gradient(texture: TTexture | None) -> bool:
    """Return True if the texture is a paint server gradient."""
    return isinstance(texture, (LinearGradient, RadialGradient))


class Style(NamedTuple):
    """Bag of optional presentation attributes.

    Absent (None) attributes are inherited from the enclosing style.
    """

    fill_texture: TTexture | None = None
    line_texture: TTexture | None = None
    line_width: float | None = None
    line_cap: LineCap | None = None
    line_join: LineJoin | None = None
    fill_rule: FillRule | None = None
    dashing: Dashing | None = None
    opacity: float | None = None
    font_size: float | None = None
    font_slant: FontSlant | None = None
    font_weight: FontWeight | None = None
    font_family: str | None = None
    miter_limit: float | None = None
    # Clip paths, outermost first
    clip: tuple[Path, ...] = ()

    def combine(self, other: Style) -> Style:
        """Merge two styles.

        Attributes present in `other` win. Clip paths accumulate,
        with this style's paths outermost.
        """
        values = {
            name: value
            for name, value in other._asdict().items()
            if value is not None and name != 'clip'
        }
        return self._replace(clip=self.clip + other.clip, **values)

    def transform(self, matrix: TMatrix) -> Style:
        """Map the transformable attributes through the matrix.

        These are the clip paths and the gradient textures.
        """
        if transform.is_identity(matrix):
            return self
        return self._replace(
            fill_texture=(
                self.fill_texture.transform(matrix)
                if self.fill_texture is not None
                else None
            ),
            line_texture=(
                self.line_texture.transform(matrix)
                if self.line_texture is not None
                else None
            ),
            clip=tuple(path.transform(matrix) for path in self.clip),
        )


def fill_color(color: TColor) -> Style:
    """Style with a solid fill color."""
    return Style(fill_texture=SolidColor(color))


def line_color(color: TColor) -> Style:
    """Style with a solid stroke color."""
    return Style(line_texture=SolidColor(color))


class BaselineText(NamedTuple):
    """Text anchored at the start of its baseline."""


class BoxAlignedText(NamedTuple):
    """Text aligned by fractions of its bounding box (0 = left/bottom)."""

    x: float
    y: float


TTextAlign: TypeAlias = Union[BaselineText, BoxAlignedText]


class Text(NamedTuple):
    """A text string placed by a transform."""

    text: str
    matrix: TMatrix = transform.IDENTITY
    align: TTextAlign = BaselineText()

    def transform(self, matrix: TMatrix) -> Text:
        return self._replace(matrix=transform.compose(matrix, self.matrix))


class RasterImage(NamedTuple):
    """Decoded pixels, PNG encoded at render time."""

    image: PIL.Image.Image


class NativeImage(NamedTuple):
    """Already encoded image data."""

    data: bytes
    mime: str


TImageSource: TypeAlias = Union[RasterImage, NativeImage]


class Image(NamedTuple):
    """An image of `width` x `height` units centered on the origin."""

    source: TImageSource
    width: int
    height: int
    matrix: TMatrix = transform.IDENTITY

    def transform(self, matrix: TMatrix) -> Image:
        return self._replace(matrix=transform.compose(matrix, self.matrix))


TShape: TypeAlias = Union[Path, Text, Image]


# Scene tree nodes


class Href(NamedTuple):
    """Hyperlink annotation."""

    uri: str


class OpacityGroup(NamedTuple):
    """Group opacity annotation."""

    opacity: float


TAnnotation: TypeAlias = Union[Href, OpacityGroup]


class Primitive(NamedTuple):
    """Leaf node holding a shape."""

    shape: TShape


class StyleNode(NamedTuple):
    """Attach a style to a subtree."""

    style: Style
    children: tuple[TNode, ...] = ()


class TransformNode(NamedTuple):
    """Attach a coordinate transform to a subtree."""

    matrix: TMatrix
    children: tuple[TNode, ...] = ()


class AnnotationNode(NamedTuple):
    """Wrap a subtree in a hyperlink or an opacity group."""

    annotation: TAnnotation
    children: tuple[TNode, ...] = ()


class GroupNode(NamedTuple):
    """Structural grouping only."""

    children: tuple[TNode, ...] = ()


TNode: TypeAlias = Union[
    Primitive, StyleNode, TransformNode, AnnotationNode, GroupNode
]

EMPTY = GroupNode()


def group(*children: TNode) -> GroupNode:
    """Group nodes, first child drawn first."""
    return GroupNode(tuple(children))


def styled(style: Style, *children: TNode) -> StyleNode:
    """Apply a style to the nodes."""
    return StyleNode(style, tuple(children))


def transformed(matrix: TMatrix, *children: TNode) -> TransformNode:
    """Apply a transform to the nodes."""
    return TransformNode(matrix, tuple(children))


def clipped(paths: Sequence[Path], *children: TNode) -> StyleNode:
    """Clip the nodes by the paths, outermost first."""
    return StyleNode(Style(clip=tuple(paths)), tuple(children))
