"""Color normalization and CSS color text.

Colors are normalized to RGBA float tuples with all channels in
the range 0.0 - 1.0 and rendered as ``rgb(r,g,b)`` text plus a
separate opacity value.
"""

from __future__ import annotations

import re
import string
from collections.abc import Sequence
from typing import TypeAlias, Union

# CSS color names to rgb values.
# See: https://www.w3.org/TR/css3-color/#svg-color
_CSS_COLORS = {
    'aliceblue': (240, 248, 255),
    'antiquewhite': (250, 235, 215),
    'aqua': (0, 255, 255),
    'aquamarine': (127, 255, 212),
    'azure': (240, 255, 255),
    'beige': (245, 245, 220),
    'bisque': (255, 228, 196),
    'black': (0, 0, 0),
    'blanchedalmond': (255, 235, 205),
    'blue': (0, 0, 255),
    'blueviolet': (138, 43, 226),
    'brown': (165, 42, 42),
    'burlywood': (222, 184, 135),
    'cadetblue': (95, 158, 160),
    'chartreuse': (127, 255, 0),
    'chocolate': (210, 105, 30),
    'coral': (255, 127, 80),
    'cornflowerblue': (100, 149, 237),
    'cornsilk': (255, 248, 220),
    'crimson': (220, 20, 60),
    'cyan': (0, 255, 255),
    'darkblue': (0, 0, 139),
    'darkcyan': (0, 139, 139),
    'darkgoldenrod': (184, 134, 11),
    'darkgray': (169, 169, 169),
    'darkgreen': (0, 100, 0),
    'darkgrey': (169, 169, 169),
    'darkkhaki': (189, 183, 107),
    'darkmagenta': (139, 0, 139),
    'darkolivegreen': (85, 107, 47),
    'darkorange': (255, 140, 0),
    'darkorchid': (153, 50, 204),
    'darkred': (139, 0, 0),
    'darksalmon': (233, 150, 122),
    'darkseagreen': (143, 188, 143),
    'darkslateblue': (72, 61, 139),
    'darkslategray': (47, 79, 79),
    'darkslategrey': (47, 79, 79),
    'darkturquoise': (0, 206, 209),
    'darkviolet': (148, 0, 211),
    'deeppink': (255, 20, 147),
    'deepskyblue': (0, 191, 255),
    'dimgray': (105, 105, 105),
    'dimgrey': (105, 105, 105),
    'dodgerblue': (30, 144, 255),
    'firebrick': (178, 34, 34),
    'floralwhite': (255, 250, 240),
    'forestgreen': (34, 139, 34),
    'fuchsia': (255, 0, 255),
    'gainsboro': (220, 220, 220),
    'ghostwhite': (248, 248, 255),
    'gold': (255, 215, 0),
    'goldenrod': (218, 165, 32),
    'gray': (128, 128, 128),
    'green': (0, 128, 0),
    'greenyellow': (173, 255, 47),
    'grey': (128, 128, 128),
    'honeydew': (240, 255, 240),
    'hotpink': (255, 105, 180),
    'indianred': (205, 92, 92),
    'indigo': (75, 0, 130),
    'ivory': (255, 255, 240),
    'khaki': (240, 230, 140),
    'lavender': (230, 230, 250),
    'lavenderblush': (255, 240, 245),
    'lawngreen': (124, 252, 0),
    'lemonchiffon': (255, 250, 205),
    'lightblue': (173, 216, 230),
    'lightcoral': (240, 128, 128),
    'lightcyan': (224, 255, 255),
    'lightgoldenrodyellow': (250, 250, 210),
    'lightgray': (211, 211, 211),
    'lightgreen': (144, 238, 144),
    'lightgrey': (211, 211, 211),
    'lightpink': (255, 182, 193),
    'lightsalmon': (255, 160, 122),
    'lightseagreen': (32, 178, 170),
    'lightskyblue': (135, 206, 250),
    'lightslategray': (119, 136, 153),
    'lightslategrey': (119, 136, 153),
    'lightsteelblue': (176, 196, 222),
    'lightyellow': (255, 255, 224),
    'lime': (0, 255, 0),
    'limegreen': (50, 205, 50),
    'linen': (250, 240, 230),
    'magenta': (255, 0, 255),
    'maroon': (128, 0, 0),
    'mediumaquamarine': (102, 205, 170),
    'mediumblue': (0, 0, 205),
    'mediumorchid': (186, 85, 211),
    'mediumpurple': (147, 112, 219),
    'mediumseagreen': (60, 179, 113),
    'mediumslateblue': (123, 104, 238),
    'mediumspringgreen': (0, 250, 154),
    'mediumturquoise': (72, 209, 204),
    'mediumvioletred': (199, 21, 133),
    'midnightblue': (25, 25, 112),
    'mintcream': (245, 255, 250),
    'mistyrose': (255, 228, 225),
    'moccasin': (255, 228, 181),
    'navajowhite': (255, 222, 173),
    'navy': (0, 0, 128),
    'oldlace': (253, 245, 230),
    'olive': (128, 128, 0),
    'olivedrab': (107, 142, 35),
    'orange': (255, 165, 0),
    'orangered': (255, 69, 0),
    'orchid': (218, 112, 214),
    'palegoldenrod': (238, 232, 170),
    'palegreen': (152, 251, 152),
    'paleturquoise': (175, 238, 238),
    'palevioletred': (219, 112, 147),
    'papayawhip': (255, 239, 213),
    'peachpuff': (255, 218, 185),
    'peru': (205, 133, 63),
    'pink': (255, 192, 203),
    'plum': (221, 160, 221),
    'powderblue': (176, 224, 230),
    'purple': (128, 0, 128),
    'red': (255, 0, 0),
    'rosybrown': (188, 143, 143),
    'royalblue': (65, 105, 225),
    'saddlebrown': (139, 69, 19),
    'salmon': (250, 128, 114),
    'sandybrown': (244, 164, 96),
    'seagreen': (46, 139, 87),
    'seashell': (255, 245, 238),
    'sienna': (160, 82, 45),
    'silver': (192, 192, 192),
    'skyblue': (135, 206, 235),
    'slateblue': (106, 90, 205),
    'slategray': (112, 128, 144),
    'slategrey': (112, 128, 144),
    'snow': (255, 250, 250),
    'springgreen': (0, 255, 127),
    'steelblue': (70, 130, 180),
    'tan': (210, 180, 140),
    'teal': (0, 128, 128),
    'thistle': (216, 191, 216),
    'tomato': (255, 99, 71),
    'turquoise': (64, 224, 208),
    'violet': (238, 130, 238),
    'wheat': (245, 222, 179),
    'white': (255, 255, 255),
    'whitesmoke': (245, 245, 245),
    'yellow': (255, 255, 0),
    'yellowgreen': (154, 205, 50),
}

TRGBA: TypeAlias = tuple[float, float, float, float]
TColor: TypeAlias = Union[str, Sequence[float], Sequence[int]]

TRANSPARENT: TRGBA = (0.0, 0.0, 0.0, 0.0)

_CSSHEX_RGBA_LEN = 8
_CSSHEX_RGB_LEN = 6
_CSSHEX_RGBSHORT_LEN = 3
_RGB_LEN = 3
_RGBA_LEN = 4

_RE_CSSHEX = re.compile(
    r'#?([0-9a-f]{8}|[0-9a-f]{6}|[0-9a-f]{3})$',
    flags=(re.IGNORECASE | re.ASCII),
)
_RE_CSSRGB = re.compile(r'rgba?\(([^)]*)\)$', flags=re.IGNORECASE)


class ColorError(ValueError):
    """Unparseable color value."""


def _fclamp(v: float) -> float:
    return min(max(float(v), 0.0), 1.0)


def _iclamp(v: int) -> float:
    return min(max(v, 0), 255) / 255


def csshex_to_frgba(hex_color: str) -> TRGBA:
    """Convert a CSS hex color (#rgb, #rrggbb or #rrggbbaa) to RGBA.

    Raises:
        ColorError: if the value is not a hex color.
    """
    m = _RE_CSSHEX.match(hex_color.strip())
    if not m:
        raise ColorError(f'Invalid hex color: {hex_color!r}')
    digits = m.group(1)
    if len(digits) == _CSSHEX_RGBSHORT_LEN:
        digits = ''.join(c * 2 for c in digits)
    channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
    if len(channels) == _RGB_LEN:
        channels.append(255)
    r, g, b, a = channels
    return (_iclamp(r), _iclamp(g), _iclamp(b), _iclamp(a))


def cssrgb_to_frgba(rgb_color: str) -> TRGBA:
    """Convert a CSS ``rgb(r, g, b)`` or ``rgba(r, g, b, a)`` color.

    Channel values may be integers 0-255 or percentages.
    The alpha value is a float 0-1 or a percentage.
    """
    m = _RE_CSSRGB.match(rgb_color.strip())
    if not m:
        raise ColorError(f'Invalid rgb color: {rgb_color!r}')
    tokens = m.group(1).replace(',', ' ').replace('/', ' ').split()
    if len(tokens) not in {_RGB_LEN, _RGBA_LEN}:
        raise ColorError(f'Invalid rgb color: {rgb_color!r}')
    try:
        r, g, b = (parse_channel_value(token) for token in tokens[:3])
        a = 1.0
        if len(tokens) == _RGBA_LEN:
            alpha = tokens[3]
            if alpha.endswith('%'):
                a = _fclamp(float(alpha.rstrip('%')) / 100)
            else:
                a = _fclamp(float(alpha))
    except ValueError as e:
        raise ColorError(f'Invalid rgb color: {rgb_color!r}') from e
    return (r, g, b, a)


def parse_channel_value(value: str) -> float:
    """Parse a CSS color channel value to a float 0.0 - 1.0.

    Args:
        value: An integer number 0-255 or a percentage.
    """
    value = value.strip()
    if value.endswith('%'):
        return _fclamp(float(value.rstrip('%')) / 100)
    return _iclamp(round(float(value)))


def color_to_frgba(color: TColor) -> TRGBA:
    """Convert a color to RGBA float form.

    Accepts CSS color names, hex colors, ``rgb()``/``rgba()`` text,
    and 3 or 4 element sequences. A sequence that contains a float
    is taken to be 0.0 - 1.0 channels, an all-int sequence to be
    0 - 255 channels.

    Raises:
        ColorError: if the color can't be parsed.
    """
    if isinstance(color, str):
        css_color = color.strip().lower()
        rgb = _CSS_COLORS.get(css_color)
        if rgb is not None:
            return (_iclamp(rgb[0]), _iclamp(rgb[1]), _iclamp(rgb[2]), 1.0)
        if css_color == 'transparent':
            return TRANSPARENT
        if css_color.startswith('rgb'):
            return cssrgb_to_frgba(css_color)
        if css_color.startswith('#') or all(
            c in string.hexdigits for c in css_color
        ):
            return csshex_to_frgba(css_color)
        raise ColorError(f'Unknown color: {color!r}')

    if isinstance(color, Sequence) and len(color) in {_RGB_LEN, _RGBA_LEN}:
        if is_irgba(color):
            r, g, b, *a = color
            return (
                _iclamp(int(r)),
                _iclamp(int(g)),
                _iclamp(int(b)),
                _iclamp(int(a[0])) if a else 1.0,
            )
        r, g, b, *a = color
        return (_fclamp(r), _fclamp(g), _fclamp(b), _fclamp(a[0]) if a else 1.0)

    raise ColorError(f'Unknown color: {color!r}')


def rgb_text(color: TColor) -> str:
    """Render the color channels as ``rgb(r,g,b)`` with 0-255 integers."""
    r, g, b, _a = color_to_frgba(color)
    return f'rgb({round(r * 255):d},{round(g * 255):d},{round(b * 255):d})'


def opacity(color: TColor) -> float:
    """The alpha channel of the color."""
    return color_to_frgba(color)[3]


def is_irgba(color: Sequence) -> bool:
    """Return True if this is a RGB/A color spec with all integer values.

    This can fail for the colors white and black if they are
    supposed to be floats in the range (0.0 - 1.0) but are
    initialized with ints.
    For example (0, 0, 0) or (1, 1, 1).
    """
    return all(isinstance(c, int) and not isinstance(c, bool) for c in color)
