"""Encoders from scene primitives and styles to SVG elements and attributes.

Each encoder is total over its input: absent style attributes produce
no output rather than an error. Closed enumerations are mapped
exhaustively and anything else is rejected.
"""

from __future__ import annotations

import base64
import io
import logging
from typing import TYPE_CHECKING

from . import css, scene, svg, transform
from .geometry import Cubic, Linear

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .geometry import LocatedTrail, Path, TSegment
    from .scene import Style, TGradient, TTexture
    from .svg import TElement, TFragment

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = frozenset({'image/png', 'image/jpeg'})

_TEXT_START = 0.25
_TEXT_END = 0.75


class ImageEncodingError(svg.SVGError):
    """Image data could not be encoded for embedding."""


def data_uri(mime: str, data: bytes) -> str:
    """Create a base64 data URI."""
    encoded = base64.b64encode(data).decode('ascii')
    return f'data:{mime};base64,{encoded}'


def encode_png(image: scene.RasterImage) -> bytes:
    """PNG encode raster pixels.

    Raises:
        ImageEncodingError: if the pixel format can't be PNG encoded.
    """
    buf = io.BytesIO()
    try:
        image.image.save(buf, format='PNG')
    except (OSError, ValueError, KeyError) as e:
        raise ImageEncodingError(
            f'Unable to PNG encode {image.image.mode} image: {e}'
        ) from e
    return buf.getvalue()


class SVGEncoder:
    """Render scene primitives and styles as SVG markup.

    The encoder holds no per-document state. Identifiers for
    gradients and clip paths are supplied by the caller.
    """

    def __init__(
        self, precision: int | None = None, id_prefix: str = ''
    ) -> None:
        """New encoder.

        Args:
            precision: The number of digits after the decimal point
                for numeric output. None means shortest round-trip.
            id_prefix: Prefix for gradient and clip path identifiers.
        """
        self.precision = precision
        self.id_prefix = id_prefix

    def num(self, value: float) -> str:
        """Format a number."""
        return svg.fmt_float(value, self.precision)

    def point(self, x: float, y: float) -> str:
        """Format a coordinate pair."""
        return f'{self.num(x)},{self.num(y)}'

    def matrix(self, m: transform.TMatrix) -> str:
        """Format a transform attribute."""
        return svg.transform_attr(m, self.precision)

    # Geometry

    def segment_data(self, segment: TSegment) -> str:
        """Relative path data for one segment."""
        if isinstance(segment, Linear):
            dx, dy = segment.offset
            if dy == 0:
                return f'h {self.num(dx)}'
            if dx == 0:
                return f'v {self.num(dy)}'
            return f'l {self.point(dx, dy)}'
        if isinstance(segment, Cubic):
            return 'c {} {} {}'.format(
                self.point(*segment.c1),
                self.point(*segment.c2),
                self.point(*segment.offset),
            )
        raise TypeError(f'Unrecognized segment: {segment!r}')

    def trail_data(self, located: LocatedTrail) -> str:
        """Path data for a located trail."""
        dparts = [f'M {self.point(*located.start)}']
        segments = located.trail.segments
        if located.trail.closed:
            # The close command draws a final straight segment
            if segments and isinstance(segments[-1], Linear):
                segments = segments[:-1]
            dparts.extend(self.segment_data(segment) for segment in segments)
            dparts.append('Z')
        else:
            dparts.extend(self.segment_data(segment) for segment in segments)
        return ' '.join(dparts)

    def path_data(self, path: Path) -> str:
        """Path data for all trails of a path. Empty if no trails."""
        return ' '.join(self.trail_data(located) for located in path.trails)

    def render_path(self, path: Path) -> TFragment:
        """A path element, or nothing for an empty path."""
        d = self.path_data(path)
        if not d:
            return []
        return [svg.element('path', {'d': d})]

    # Clipping

    def clip_path_id(self, ident: int) -> str:
        return f'{self.id_prefix}myClip{ident:d}'

    def render_clip(
        self, path: Path, ident: int, content: TFragment
    ) -> TElement:
        """Clip the content by the path.

        The clipPath definition is the first child of the group
        that references it.
        """
        clip_id = self.clip_path_id(ident)
        clip = svg.element('clipPath', {'id': clip_id}, self.render_path(path))
        return svg.element(
            'g', {'clip-path': f'url(#{clip_id})'}, [clip, *content]
        )

    def render_clips(
        self, paths: Sequence[Path], idents: Sequence[int], content: TFragment
    ) -> TFragment:
        """Wrap content in nested clip groups, first path outermost."""
        for path, ident in reversed(list(zip(paths, idents))):
            content = [self.render_clip(path, ident, content)]
        return content

    # Textures

    def gradient_id(self, ident: int) -> str:
        return f'{self.id_prefix}gradient{ident:d}'

    def render_stop(self, stop: scene.GradientStop) -> TElement:
        return svg.element(
            'stop',
            {
                'stop-color': css.rgb_text(stop.color),
                'offset': self.num(stop.offset),
                'stop-opacity': self.num(css.opacity(stop.color)),
            },
        )

    def _gradient_attrs(self, gradient: TGradient) -> dict[str, str]:
        spread = scene.to_enum(scene.SpreadMethod, gradient.spread)
        return {
            'gradientTransform': self.matrix(gradient.matrix),
            'gradientUnits': 'userSpaceOnUse',
            'spreadMethod': spread.value,
        }

    def linear_gradient(
        self, gradient: scene.LinearGradient, ident: int
    ) -> TElement:
        """A linearGradient paint server definition."""
        x1, y1 = gradient.start
        x2, y2 = gradient.end
        attrs = {
            'id': self.gradient_id(ident),
            'x1': self.num(x1),
            'y1': self.num(y1),
            'x2': self.num(x2),
            'y2': self.num(y2),
            **self._gradient_attrs(gradient),
        }
        stops = [self.render_stop(stop) for stop in gradient.stops]
        return svg.element('linearGradient', attrs, stops)

    def radial_gradient(
        self, gradient: scene.RadialGradient, ident: int
    ) -> TElement:
        """A radialGradient paint server definition.

        SVG has a focal point and a single outer circle. The inner
        circle's center becomes the focal point and the stops are
        remapped so the gradient starts at the inner circle's perimeter,
        with a leading stop in the first color filling the inner circle.
        """
        cx, cy = gradient.center1
        fx, fy = gradient.center0
        attrs = {
            'id': self.gradient_id(ident),
            'r': self.num(gradient.radius1),
            'cx': self.num(cx),
            'cy': self.num(cy),
            'fx': self.num(fx),
            'fy': self.num(fy),
            **self._gradient_attrs(gradient),
        }
        stops = [
            self.render_stop(stop) for stop in radial_stops(gradient)
        ]
        return svg.element('radialGradient', attrs, stops)

    def texture_defs(self, texture: TTexture | None, ident: int) -> TFragment:
        """Paint server definition for a gradient texture, else nothing."""
        if isinstance(texture, scene.LinearGradient):
            return [self.linear_gradient(texture, ident)]
        if isinstance(texture, scene.RadialGradient):
            return [self.radial_gradient(texture, ident)]
        return []

    def texture_attrs(
        self, texture: TTexture | None, ident: int, paint: str
    ) -> dict[str, str]:
        """Paint attributes for a fill or stroke texture.

        Args:
            texture: The texture or None.
            ident: The gradient id, ignored for solid colors.
            paint: 'fill' or 'stroke'.
        """
        if texture is None:
            return {}
        if isinstance(texture, scene.SolidColor):
            return {
                paint: css.rgb_text(texture.color),
                f'{paint}-opacity': self.num(css.opacity(texture.color)),
            }
        if scene.is_gradient(texture):
            return {
                paint: f'url(#{self.gradient_id(ident)})',
                f'{paint}-opacity': '1',
            }
        raise TypeError(f'Unrecognized texture: {texture!r}')

    # Styles

    def style_attrs(
        self,
        style: Style,
        fill_id: int = 0,
        line_id: int = 1,
        ignore_fill: bool = False,
    ) -> dict[str, str]:
        """Presentation attributes for a style.

        Args:
            style: The style.
            fill_id: Gradient id of a fill gradient texture.
            line_id: Gradient id of a line gradient texture.
            ignore_fill: Replace the fill texture by a zero fill opacity.
        """
        attrs = self.texture_attrs(style.line_texture, line_id, 'stroke')
        if ignore_fill:
            attrs['fill-opacity'] = '0'
        else:
            attrs.update(
                self.texture_attrs(style.fill_texture, fill_id, 'fill')
            )
        if style.line_width is not None:
            attrs['stroke-width'] = self.num(style.line_width)
        if style.line_cap is not None:
            attrs['stroke-linecap'] = scene.to_enum(
                scene.LineCap, style.line_cap
            ).value
        if style.line_join is not None:
            attrs['stroke-linejoin'] = scene.to_enum(
                scene.LineJoin, style.line_join
            ).value
        if style.fill_rule is not None:
            attrs['fill-rule'] = scene.to_enum(
                scene.FillRule, style.fill_rule
            ).value
        if style.dashing is not None:
            attrs['stroke-dasharray'] = ','.join(
                self.num(length) for length in style.dashing.lengths
            )
            attrs['stroke-dashoffset'] = self.num(style.dashing.offset)
        if style.opacity is not None:
            attrs['opacity'] = self.num(style.opacity)
        if style.font_size is not None:
            attrs['font-size'] = f'{self.num(style.font_size)}px'
        if style.font_slant is not None:
            attrs['font-style'] = scene.to_enum(
                scene.FontSlant, style.font_slant
            ).value
        if style.font_weight is not None:
            attrs['font-weight'] = scene.to_enum(
                scene.FontWeight, style.font_weight
            ).value
        if style.font_family is not None:
            attrs['font-family'] = style.font_family
        if style.miter_limit is not None:
            attrs['stroke-miterlimit'] = self.num(style.miter_limit)
        return attrs

    # Images and text

    def render_image(self, image: scene.Image) -> TFragment:
        """An image element with the image data embedded as a data URI.

        The image is centered on the origin of its transform and
        flipped to the Y-down SVG coordinate system.

        Raises:
            ImageEncodingError: if the image can't be encoded.
        """
        source = image.source
        if isinstance(source, scene.RasterImage):
            uri = data_uri('image/png', encode_png(source))
        elif isinstance(source, scene.NativeImage):
            if source.mime not in SUPPORTED_MIME_TYPES:
                raise ImageEncodingError(
                    f'Unknown mime type while rendering image: {source.mime}'
                )
            uri = data_uri(source.mime, source.data)
        else:
            raise TypeError(f'Unrecognized image source: {source!r}')
        matrix = transform.compose(
            image.matrix,
            transform.reflect_y(),
            transform.translate(-image.width / 2, -image.height / 2),
        )
        attrs = {
            'transform': self.matrix(matrix),
            'width': self.num(image.width),
            'height': self.num(image.height),
            svg.xlink_ns('href'): uri,
        }
        return [svg.element('image', attrs)]

    def render_text(self, text: scene.Text) -> TFragment:
        """A text element."""
        valign, halign = text_alignment(text.align)
        matrix = transform.compose(text.matrix, transform.reflect_y())
        attrs = {
            'transform': self.matrix(matrix),
            'dominant-baseline': valign,
            'text-anchor': halign,
            'stroke': 'none',
        }
        return [svg.element('text', attrs, text=text.text)]


def radial_stops(
    gradient: scene.RadialGradient,
) -> list[scene.GradientStop]:
    """Stops remapped from the [r0, r1] band onto SVG's [0, r1] radius.

    A copy of the first stop is prepended at offset r0/r1.
    """
    stops = list(gradient.stops)
    r0 = gradient.radius0
    r1 = gradient.radius1
    if not stops or r1 == 0:
        # Degenerate outer circle, nothing sensible to remap to.
        return stops
    remapped = [
        stop._replace(offset=(r0 + stop.offset * (r1 - r0)) / r1)
        for stop in stops
    ]
    return [stops[0]._replace(offset=r0 / r1), *remapped]


def text_alignment(align: scene.TTextAlign) -> tuple[str, str]:
    """SVG (dominant-baseline, text-anchor) approximating the alignment."""
    if isinstance(align, scene.BaselineText):
        return 'alphabetic', 'start'
    if isinstance(align, scene.BoxAlignedText):
        if align.y <= _TEXT_START:
            valign = 'text-after-edge'
        elif align.y >= _TEXT_END:
            valign = 'text-before-edge'
        else:
            valign = 'middle'
        if align.x <= _TEXT_START:
            halign = 'start'
        elif align.x >= _TEXT_END:
            halign = 'end'
        else:
            halign = 'middle'
        return valign, halign
    raise TypeError(f'Unrecognized text alignment: {align!r}')
