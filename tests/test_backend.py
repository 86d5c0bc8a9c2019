"""Test compiling scene trees into SVG documents."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from diagsvg import backend, geometry, scene, svg, transform
from diagsvg.backend import SizeSpec, SVGOptions
from diagsvg.geometry import Path
from diagsvg.scene import GradientStop, LinearGradient, Style
from lxml import etree

if TYPE_CHECKING:
    import pathlib

SVG = '{http://www.w3.org/2000/svg}'
XLINK = '{http://www.w3.org/1999/xlink}'

GRADIENT = LinearGradient(
    (GradientStop('red', 0.0), GradientStop('blue', 1.0)), (0, 0), (10, 0)
)
FILL_GRADIENT = Style(fill_texture=GRADIENT)
LINE_GRADIENT = Style(line_texture=GRADIENT)

BOX = scene.Primitive(geometry.rect(0, 0, 10, 10))
LINE = scene.Primitive(Path.from_vertices(((0, 0), (10, 10))))


def _render(tree: scene.TNode, options: SVGOptions) -> svg.TElement:
    return backend.render_dia(tree, options).docroot


def _ids(root: svg.TElement, tag: str) -> list[str]:
    return [element.get('id') for element in root.iter(f'{SVG}{tag}')]


def test_header(options: SVGOptions) -> None:
    root = _render(scene.EMPTY, options)
    assert root.tag == f'{SVG}svg'
    assert dict(root.attrib) == {
        'version': '1.1',
        'width': '100',
        'height': '100',
        'font-size': '1',
        'viewBox': '0 0 100 100',
        'stroke': 'rgb(0,0,0)',
        'stroke-opacity': '1',
    }


def test_viewbox_rounding(options: SVGOptions) -> None:
    size = SizeSpec.dims(10.6, 20.4)
    root = _render(scene.EMPTY, options._replace(size=size))
    assert root.get('width') == '10.6'
    assert root.get('height') == '20.4'
    assert root.get('viewBox') == '0 0 11 20'


def test_empty_tree(options: SVGOptions) -> None:
    root = _render(scene.EMPTY, options)
    assert len(root) == 1
    assert root[0].tag == f'{SVG}g'
    # Nothing to fill
    assert dict(root[0].attrib) == {'fill-opacity': '0'}
    assert len(root[0]) == 0


def test_root_style_is_transparent_fill(options: SVGOptions) -> None:
    root = _render(scene.styled(scene.fill_color('red'), BOX), options)
    outer = root[0]
    assert dict(outer.attrib) == {'fill': 'rgb(0,0,0)', 'fill-opacity': '0'}
    inner = outer[0]
    assert dict(inner.attrib) == {'fill': 'rgb(255,0,0)', 'fill-opacity': '1'}
    assert inner[0].tag == f'{SVG}path'
    assert inner[0].get('d') == 'M 0,0 h 10 v 10 h -10 Z'


def test_flip_y() -> None:
    options = SVGOptions(size=SizeSpec.dims(100, 50))
    root = _render(BOX, options)
    path = next(root.iter(f'{SVG}path'))
    assert path.get('d') == 'M 0,50 h 10 v -10 h -10 Z'


def test_global_definitions(options: SVGOptions) -> None:
    marker = svg.element('marker', {'id': 'arrow'})
    root = _render(BOX, options._replace(svg_definitions=(marker,)))
    assert root[0].tag == f'{SVG}defs'
    assert _ids(root[0], 'marker') == ['arrow']
    assert root[1].tag == f'{SVG}g'


def test_shared_definitions_not_moved(options: SVGOptions) -> None:
    marker = svg.element('marker', {'id': 'arrow'})
    options = options._replace(svg_definitions=(marker,))
    first = backend.render_dia(BOX, options)
    before = first.to_string()
    second = backend.render_dia(BOX, options)
    assert first.to_string() == before
    assert _ids(first.docroot, 'marker') == ['arrow']
    assert _ids(second.docroot, 'marker') == ['arrow']
    # The caller's element stays detached
    assert marker.getparent() is None


def test_no_global_definitions(options: SVGOptions) -> None:
    root = _render(BOX, options)
    assert root.find(f'{SVG}defs') is None


def test_sibling_gradient_ids(options: SVGOptions) -> None:
    tree = scene.group(
        scene.styled(FILL_GRADIENT, BOX),
        scene.styled(FILL_GRADIENT, BOX),
        scene.styled(LINE_GRADIENT, BOX),
        scene.styled(LINE_GRADIENT, BOX),
    )
    root = _render(tree, options)
    ids = _ids(root, 'linearGradient')
    assert ids == ['gradient0', 'gradient2', 'gradient1', 'gradient3']
    assert len(set(ids)) == len(ids)
    paints = [
        g.get('fill') or g.get('stroke')
        for g in root.iter(f'{SVG}g')
        if g.get('fill', '').startswith('url')
        or g.get('stroke', '').startswith('url')
    ]
    assert paints == [
        'url(#gradient0)',
        'url(#gradient2)',
        'url(#gradient1)',
        'url(#gradient3)',
    ]


def test_gradient_defs_precede_styled_group(options: SVGOptions) -> None:
    root = _render(scene.styled(FILL_GRADIENT, BOX), options)
    outer = root[0]
    assert outer[0].tag == f'{SVG}defs'
    assert _ids(outer[0], 'linearGradient') == ['gradient0']
    assert outer[1].tag == f'{SVG}g'
    assert outer[1].get('fill') == 'url(#gradient0)'


def test_fill_and_line_gradients(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, line_texture=GRADIENT)
    root = _render(scene.styled(style, BOX), options)
    defs = root[0][0]
    # Fill gradient first, then line gradient
    assert _ids(defs, 'linearGradient') == ['gradient0', 'gradient1']


def test_nested_ids_allocated_children_first(options: SVGOptions) -> None:
    tree = scene.styled(FILL_GRADIENT, scene.styled(FILL_GRADIENT, BOX))
    root = _render(tree, options)
    assert _ids(root, 'linearGradient') == ['gradient2', 'gradient0']

    clip = [geometry.rect(0, 0, 5, 5)]
    tree = scene.clipped(clip, scene.clipped(clip, BOX))
    root = _render(tree, options)
    assert _ids(root, 'clipPath') == ['myClip1', 'myClip0']


def test_only_lines_skips_fill(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, line_width=1)
    root = _render(scene.styled(style, LINE), options)
    assert _ids(root, 'linearGradient') == []
    inner = root[0][0]
    assert dict(inner.attrib) == {'fill-opacity': '0', 'stroke-width': '1'}


def test_only_lines_does_not_consume_ids(options: SVGOptions) -> None:
    tree = scene.group(
        scene.styled(FILL_GRADIENT, LINE),
        scene.styled(FILL_GRADIENT, BOX),
    )
    root = _render(tree, options)
    assert _ids(root, 'linearGradient') == ['gradient0']


def test_only_lines_keeps_line_gradient(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, line_texture=GRADIENT)
    root = _render(scene.styled(style, LINE), options)
    assert _ids(root, 'linearGradient') == ['gradient1']
    inner = root[0][1]
    assert inner.get('stroke') == 'url(#gradient1)'
    assert inner.get('fill') is None
    assert inner.get('fill-opacity') == '0'


def test_mixed_content_is_filled(options: SVGOptions) -> None:
    root = _render(scene.styled(FILL_GRADIENT, LINE, BOX), options)
    assert _ids(root, 'linearGradient') == ['gradient0']


def test_text_is_filled(options: SVGOptions) -> None:
    text = scene.Primitive(scene.Text('hello'))
    root = _render(scene.styled(scene.fill_color('blue'), text), options)
    inner = root[0][0]
    assert inner.get('fill') == 'rgb(0,0,255)'
    assert inner[0].tag == f'{SVG}text'


def test_clip_chain(options: SVGOptions) -> None:
    clips = [geometry.rect(0, 0, 5, 5), geometry.rect(1, 1, 2, 2)]
    root = _render(scene.clipped(clips, BOX), options)
    outer = root[0][0]
    assert outer.get('clip-path') == 'url(#myClip0)'
    assert outer[0].tag == f'{SVG}clipPath'
    assert outer[0].get('id') == 'myClip0'
    assert outer[0][0].get('d') == 'M 0,0 h 5 v 5 h -5 Z'
    inner = outer[1]
    assert inner.get('clip-path') == 'url(#myClip1)'
    assert inner[0].get('id') == 'myClip1'
    assert inner[0][0].get('d') == 'M 1,1 h 2 v 2 h -2 Z'
    styled = inner[1]
    assert styled.tag == f'{SVG}g'
    assert dict(styled.attrib) == {}
    assert styled[0].get('d') == 'M 0,0 h 10 v 10 h -10 Z'


def test_clip_wraps_gradient_defs(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, clip=(geometry.rect(0, 0, 5, 5),))
    root = _render(scene.styled(style, BOX), options)
    clip_group = root[0][0]
    assert [svg.strip_ns(child.tag) for child in clip_group] == [
        'clipPath',
        'defs',
        'g',
    ]



def test_transform_node(options: SVGOptions) -> None:
    tree = scene.transformed(
        transform.translate(5, 5),
        scene.Primitive(geometry.rect(0, 0, 1, 1)),
    )
    root = _render(tree, options)
    assert next(root.iter(f'{SVG}path')).get('d') == 'M 5,5 h 1 v 1 h -1 Z'
    # Transforms are applied to coordinates, not emitted as groups
    assert root.find(f'.//{SVG}g[@transform]') is None


def test_transform_applies_to_style(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, clip=(geometry.rect(0, 0, 1, 1),))
    tree = scene.transformed(
        transform.translate(5, 5), scene.styled(style, BOX)
    )
    root = _render(tree, options)
    gradient = next(root.iter(f'{SVG}linearGradient'))
    assert gradient.get('gradientTransform') == 'matrix(1,0,0,1,5,5)'
    clip = next(root.iter(f'{SVG}clipPath'))
    assert clip[0].get('d') == 'M 5,5 h 1 v 1 h -1 Z'


def test_nested_transforms_compose(options: SVGOptions) -> None:
    tree = scene.transformed(
        transform.translate(10, 0),
        scene.transformed(
            transform.scale(2), scene.Primitive(geometry.rect(0, 0, 1, 1))
        ),
    )
    root = _render(tree, options)
    assert next(root.iter(f'{SVG}path')).get('d') == 'M 10,0 h 2 v 2 h -2 Z'


def test_href_annotation(options: SVGOptions) -> None:
    tree = scene.AnnotationNode(scene.Href('https://example.com'), (BOX,))
    root = _render(tree, options)
    link = root[0][0]
    assert link.tag == f'{SVG}a'
    assert link.get(f'{XLINK}href') == 'https://example.com'
    assert link[0].tag == f'{SVG}path'


def test_opacity_annotation(options: SVGOptions) -> None:
    tree = scene.AnnotationNode(scene.OpacityGroup(0.5), (BOX,))
    root = _render(tree, options)
    group = root[0][0]
    assert group.tag == f'{SVG}g'
    assert dict(group.attrib) == {'opacity': '0.5'}


def test_annotation_passes_only_lines(options: SVGOptions) -> None:
    link = scene.AnnotationNode(scene.Href('#here'), (LINE,))
    root = _render(scene.styled(FILL_GRADIENT, link), options)
    assert _ids(root, 'linearGradient') == []


def test_unknown_node(options: SVGOptions) -> None:
    with pytest.raises(TypeError):
        _render(scene.group(object()), options)


def test_bad_style_value(options: SVGOptions) -> None:
    tree = scene.styled(Style(line_join='wobbly'), BOX)
    with pytest.raises(scene.StyleError):
        _render(tree, options)


def test_id_prefix(options: SVGOptions) -> None:
    style = Style(fill_texture=GRADIENT, clip=(geometry.rect(0, 0, 1, 1),))
    root = _render(
        scene.styled(style, BOX), options._replace(id_prefix='fig')
    )
    assert _ids(root, 'linearGradient') == ['figgradient0']
    assert _ids(root, 'clipPath') == ['figmyClip0']


def test_precision(options: SVGOptions) -> None:
    tree = scene.Primitive(geometry.rect(0, 0, 1 / 3, 1))
    root = _render(tree, options._replace(precision=2))
    assert next(root.iter(f'{SVG}path')).get('d') == (
        'M 0,0 h 0.33 v 1 h -0.33 Z'
    )


def test_fresh_state_per_document(options: SVGOptions) -> None:
    tree = scene.group(
        scene.styled(FILL_GRADIENT, BOX), scene.clipped([Path()], BOX)
    )
    first = backend.render_dia(tree, options).to_string()
    second = backend.render_dia(tree, options).to_string()
    assert first == second
    assert 'gradient0' in second
    assert 'myClip0' in second


def test_render_state() -> None:
    state = backend.RenderState()
    assert [state.next_clip_path_id() for _i in range(3)] == [0, 1, 2]
    assert [state.next_fill_gradient_id() for _i in range(3)] == [0, 2, 4]
    assert [state.next_line_gradient_id() for _i in range(3)] == [1, 3, 5]


def test_size_spec() -> None:
    assert SizeSpec.dims(3, 4).to_size() == (3, 4)
    # A single fixed dimension gives a square
    assert SizeSpec.mk_width(200).to_size() == (200, 200)
    assert SizeSpec.mk_height(50).to_size() == (50, 50)
    assert SizeSpec.mk_width(200).to_size(default=10) == (200, 200)
    assert SizeSpec.absolute().to_size() == (100, 100)
    assert SizeSpec.absolute().to_size(default=10) == (10, 10)


def test_make_prefix() -> None:
    assert backend.make_prefix('out/my-figure_2.svg') == 'myfigure'
    assert backend.make_prefix('123.svg') == ''


def test_serialization(options: SVGOptions) -> None:
    document = backend.render_dia(scene.styled(FILL_GRADIENT, BOX), options)
    compact = document.to_string()
    pretty = document.to_string(pretty_print=True)
    assert compact.startswith(
        '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n'
        '<!DOCTYPE svg PUBLIC'
    )
    body = compact.split('<svg', 1)[1]
    assert '\n<' not in body.strip()
    assert '\n  <g' in pretty
    assert document.width == '100'
    assert document.height == '100'
    root = etree.fromstring(document.to_bytes())
    assert root.tag == f'{SVG}svg'
    assert _ids(root, 'linearGradient') == ['gradient0']


def test_document_root_must_be_svg() -> None:
    with pytest.raises(svg.SVGError):
        svg.SVGDocument(svg.element('g'))


def test_render_svg(tmp_path: pathlib.Path) -> None:
    path = tmp_path / 'figure.svg'
    tree = scene.styled(FILL_GRADIENT, BOX)
    backend.render_svg(path, SizeSpec.dims(20, 10), tree)
    root = etree.parse(str(path)).getroot()
    assert root.get('width') == '20'
    assert _ids(root, 'linearGradient') == ['figuregradient0']


def test_render_pretty(tmp_path: pathlib.Path) -> None:
    path = tmp_path / 'pretty.svg'
    backend.render_pretty(path, SizeSpec.absolute(), BOX)
    text = path.read_text(encoding='utf8')
    assert '\n  <g' in text
    assert etree.parse(str(path)).getroot().get('viewBox') == '0 0 100 100'


def test_render_opts(tmp_path: pathlib.Path, options: SVGOptions) -> None:
    path = tmp_path / 'opts.svg'
    tree = scene.styled(FILL_GRADIENT, BOX)
    backend.render_svg_opts(path, options._replace(id_prefix='x'), tree)
    root = etree.parse(str(path)).getroot()
    assert _ids(root, 'linearGradient') == ['xgradient0']
    path = tmp_path / 'opts-pretty.svg'
    backend.render_pretty_opts(path, options, BOX)
    assert '\n  <g' in path.read_text(encoding='utf8')


def test_red_square_document() -> None:
    tree = scene.styled(
        scene.fill_color('red'),
        scene.Primitive(geometry.rect(0, 0, 10, 10)),
    )
    options = SVGOptions(size=SizeSpec.dims(100, 100))
    root = _render(tree, options)
    assert root.get('width') == '100'
    assert root.get('height') == '100'
    assert root.get('viewBox') == '0 0 100 100'
    (path,) = root.iter(f'{SVG}path')
    fill_group = path.getparent()
    assert fill_group.get('fill') == 'rgb(255,0,0)'
    assert fill_group.get('fill-opacity') == '1'
    assert _ids(root, 'clipPath') == []
    assert _ids(root, 'linearGradient') == []
    assert _ids(root, 'radialGradient') == []


def test_clip_ids_cover_all_occurrences(options: SVGOptions) -> None:
    clip = (geometry.rect(0, 0, 5, 5),)
    tree = scene.group(
        scene.clipped(clip * 2, scene.clipped(clip, BOX)),
        scene.transformed(
            transform.scale(2),
            scene.AnnotationNode(
                scene.OpacityGroup(0.5), (scene.clipped(clip, LINE),)
            ),
        ),
        scene.clipped(clip, scene.group(BOX, scene.clipped(clip * 3, BOX))),
    )
    root = _render(tree, options)
    ids = _ids(root, 'clipPath')
    # Children are numbered before the style that contains them
    assert ids == [f'myClip{i}' for i in (1, 2, 0, 3, 7, 4, 5, 6)]
    references = [
        g.get('clip-path') for g in root.iter(f'{SVG}g') if g.get('clip-path')
    ]
    assert references == [f'url(#{ident})' for ident in ids]
