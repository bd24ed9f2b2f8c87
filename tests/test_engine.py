"""Tests for the page layout engine."""

import datetime

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from reportx.layout.engine import (
    IMAGE_HEIGHT,
    IMAGE_SPACING_AFTER,
    IMAGE_WIDTH,
    LINE_BREAK_ADVANCE,
    PARAGRAPH_LINE_HEIGHT,
    BlockKind,
    PageLayoutEngine,
    render_markup,
)
from reportx.layout.nodes import parse_markup
from reportx.layout.pagination import PageGeometry
from reportx.layout.surface import PAGE_WIDTH
from reportx.types import RenderConfig


def _texts(result, page=None):
    return [
        c for c in result.commands
        if c.op == 'text' and (page is None or c.page == page)
    ]


class TestBlockKind:
    @pytest.mark.parametrize('tag', ['h1', 'h2', 'h3', 'p', 'table', 'br', 'img'])
    def test_supported_tags(self, tag):
        root = parse_markup(f'<{tag}></{tag}>')

        assert BlockKind.for_node(root.children[0]) is BlockKind(tag)

    def test_unknown_tags_are_containers(self):
        root = parse_markup('<section><p>x</p></section>')

        assert BlockKind.for_node(root) is BlockKind.container
        assert BlockKind.for_node(root.children[0]) is BlockKind.container


class TestHeadings:
    def test_h1_centered_and_cursor_advances(self, render_config):
        result = render_markup('<h1>Title</h1><h2>Sub</h2><h3>Minor</h3><h2>Next</h2>', render_config)
        title, sub, minor, nxt = _texts(result)[:4]

        assert title.font_size == 24
        assert title.x == pytest.approx((PAGE_WIDTH - stringWidth('Title', 'Helvetica', 24)) / 2)
        assert (title.y, sub.y, minor.y, nxt.y) == (50.0, 80.0, 105.0, 125.0)
        assert (sub.x, minor.x) == (50.0, 50.0)
        assert (sub.font_size, minor.font_size) == (18, 14)

    def test_heading_text_joins_nested_nodes(self, render_config):
        result = render_markup('<h2>Sales <em>Q2</em></h2>', render_config)

        assert _texts(result)[0].text == 'Sales Q2'


class TestParagraphs:
    def test_style_change_forces_new_line(self, render_config):
        result = render_markup('<p>plain <strong>bold</strong> plain</p>', render_config)
        lines = [c for c in _texts(result) if c.font_size == 12]

        assert [c.text for c in lines] == ['plain', 'bold', 'plain']
        assert [c.font_name for c in lines] == ['Helvetica', 'Helvetica-Bold', 'Helvetica']
        assert [c.y for c in lines] == [50.0, 66.0, 82.0]

    def test_no_line_mixes_styles(self, render_config):
        markup = '<p>' + ' '.join(
            f'w{i}' if i % 3 else f'<em>w{i} x{i}</em>' for i in range(60)
        ) + '</p>'
        result = render_markup(markup, render_config)
        root = parse_markup(markup)
        italic_words = {
            word
            for node in root.iter_descendants()
            if node.is_element('em')
            for word in node.children[0].text.split()
        }

        for line in (c for c in _texts(result) if c.font_size == 12):
            flags = {word in italic_words for word in line.text.split()}
            assert len(flags) == 1
            assert (line.font_name == 'Helvetica-Oblique') == flags.pop()

    def test_long_paragraph_wraps_within_content_width(self, render_config):
        result = render_markup('<p>' + 'lorem ipsum dolor ' * 60 + '</p>', render_config)
        lines = [c for c in _texts(result) if c.font_size == 12]

        assert len(lines) > 1
        assert all(stringWidth(c.text, c.font_name, 12) <= PAGE_WIDTH - 100 for c in lines)

    def test_trailing_space_after_paragraph(self, render_config):
        result = render_markup('<p>one</p><h2>After</h2>', render_config)

        after = next(c for c in _texts(result) if c.text == 'After')
        assert after.y == 50.0 + PARAGRAPH_LINE_HEIGHT + 4.0


class TestLineBreak:
    def test_br_advances_without_break_check(self, render_config):
        result = render_markup('<br><br><h2>After</h2>', render_config)

        assert _texts(result)[0].y == 50.0 + 2 * LINE_BREAK_ADVANCE

    def test_br_never_flushes(self, small_geometry, render_config):
        result = render_markup('<br>' * 20, render_config, geometry=small_geometry)

        assert result.page_count == 1


class TestImages:
    @pytest.mark.parametrize(
        'style, expected_x',
        [
            ('', 50.0),
            ('text-align: center', (PAGE_WIDTH - IMAGE_WIDTH) / 2),
            ('text-align: right', PAGE_WIDTH - IMAGE_WIDTH - 50.0),
        ],
    )
    def test_data_uri_alignment(self, render_config, png_data_uri, style, expected_x):
        result = render_markup(f'<div style="{style}"><img src="{png_data_uri}"></div>', render_config)

        (image,) = [c for c in result.commands if c.op == 'image']
        assert image.x == pytest.approx(expected_x)
        assert (image.y, image.width, image.height) == (50.0, IMAGE_WIDTH, IMAGE_HEIGHT)

    def test_file_reference(self, render_config, png_file):
        result = render_markup(f'<img src="file://{png_file}"><h2>After</h2>', render_config)

        assert len([c for c in result.commands if c.op == 'image']) == 1
        after = next(c for c in _texts(result) if c.text == 'After')
        assert after.y == 50.0 + IMAGE_HEIGHT + IMAGE_SPACING_AFTER

    def test_unsupported_source_is_skipped(self, render_config):
        result = render_markup('<img src="https://example.com/a.png"><h2>After</h2>', render_config)

        assert [c for c in result.commands if c.op == 'image'] == []
        assert next(c for c in _texts(result) if c.text == 'After').y == 50.0

    def test_failed_decode_still_advances(self, render_config, caplog):
        with caplog.at_level('WARNING', logger='reportx.layout.engine'):
            result = render_markup('<img src="data:image/png;base64,@@@"><h2>After</h2>', render_config)

        assert [c for c in result.commands if c.op == 'image'] == []
        assert next(c for c in _texts(result) if c.text == 'After').y == 50.0 + IMAGE_HEIGHT + IMAGE_SPACING_AFTER
        assert 'Image render failed' in caplog.text

    def test_image_inside_paragraph(self, render_config, png_data_uri):
        markup = f'<p style="text-align: center">Caption <img src="{png_data_uri}"></p><h2>After</h2>'
        result = render_markup(markup, render_config)

        (image,) = [c for c in result.commands if c.op == 'image']
        assert image.x == pytest.approx((PAGE_WIDTH - IMAGE_WIDTH) / 2)
        assert image.y == 50.0 + PARAGRAPH_LINE_HEIGHT + 4.0
        assert [c.text for c in _texts(result, page=1)].count('Caption') == 1
        after = next(c for c in _texts(result) if c.text == 'After')
        assert after.y == image.y + IMAGE_HEIGHT + IMAGE_SPACING_AFTER

    def test_image_inside_table_cell(self, render_config, png_data_uri):
        markup = f'<table><tr><td>Logo</td><td><img src="{png_data_uri}"></td></tr></table>'
        result = render_markup(markup, render_config)

        (image,) = [c for c in result.commands if c.op == 'image']
        cell = next(c for c in _texts(result) if c.text == 'Logo')
        assert image.y > cell.y
        assert [c.text for c in _texts(result)].count('Logo') == 1

    def test_break_inside_heading_advances_once(self, render_config):
        result = render_markup('<h2>Top<br>Line</h2><h2>After</h2>', render_config)

        texts = [c.text for c in _texts(result)]
        assert texts.count('Top Line') == 1
        after = next(c for c in _texts(result) if c.text == 'After')
        assert after.y == 50.0 + 25.0 + LINE_BREAK_ADVANCE

    def test_missing_file_still_advances(self, render_config, tmp_path):
        result = render_markup(f'<img src="file://{tmp_path / "nope.png"}"><h2>After</h2>', render_config)

        assert next(c for c in _texts(result) if c.text == 'After').y == 50.0 + IMAGE_HEIGHT + IMAGE_SPACING_AFTER


class TestPagination:
    def test_two_page_scenario(self, render_config, small_geometry):
        result = render_markup(
            '<h1>Title</h1><p>Hello <strong>World</strong></p>',
            render_config,
            geometry=small_geometry,
        )

        assert result.page_count == 2
        assert result.texts_on_page(1) == ['Title', 'Page 1']
        assert result.texts_on_page(2) == ['Hello', 'World', 'Page 2']

    def test_overflow_makes_pages_with_aligned_footers(self, render_config):
        markup = '<div class="footer">Footer note</div>' + '<p>paragraph text here</p>' * 80
        result = render_markup(markup, render_config)

        assert result.page_count > 1
        footers = [c for c in _texts(result) if c.text == 'Footer note']
        numbers = [c for c in _texts(result) if c.text.startswith('Page ')]
        assert len(footers) == len(numbers) == result.page_count
        assert len({c.y for c in footers + numbers}) == 1

    def test_content_never_drawn_below_limit(self, render_config):
        geometry = PageGeometry()
        markup = (
            '<h1>T</h1>'
            + '<p>' + 'some words that wrap around the page width ' * 30 + '</p>'
            + '<table>' + '<tr><td>cell text that wraps a bit</td><td>x</td></tr>' * 40 + '</table>'
        )
        result = render_markup(markup, render_config, geometry=geometry)

        assert result.page_count > 1
        body = [c for c in result.commands if c.op in ('text', 'rect') and c.font_size != 10]
        assert all(c.y + c.height <= geometry.content_limit for c in body)

    def test_oversized_row_at_page_top_adds_no_blank_page(self, render_config, small_geometry):
        cell = ' '.join(f'word{i}' for i in range(80))
        result = render_markup(f'<table><tr><td>{cell}</td></tr></table>', render_config, geometry=small_geometry)

        assert result.page_count == 1
        assert 'word0' in ' '.join(result.texts_on_page(1))

    def test_timestamp_on_every_page(self, small_geometry):
        config = RenderConfig(include_timestamp=True, timestamp_format='%Y')
        result = render_markup('<p>a</p>' * 10, config, geometry=small_geometry, timestamp='STAMP')

        stamps = [c for c in _texts(result) if c.text == 'STAMP']
        assert result.page_count > 1
        assert [c.page for c in stamps] == list(range(1, result.page_count + 1))
        assert all((c.x, c.y) == (490.0, 30.0) for c in stamps)

    def test_timestamp_from_config(self):
        config = RenderConfig(include_timestamp=True, timestamp_format='2006')
        result = render_markup('<p>a</p>', config)

        assert str(datetime.datetime.now().year) in result.texts_on_page(1)


class TestDeterminism:
    def test_same_input_gives_identical_bytes(self, render_config, png_data_uri):
        markup = (
            f'<h1>Report</h1><p>Body <b>bold</b></p><div style="text-align: center"><img src="{png_data_uri}"></div>'
            '<table><tr><th>a</th></tr><tr><td>b</td></tr></table>'
        )
        engine = PageLayoutEngine(render_config)

        first = engine.render(parse_markup(markup))
        second = engine.render(parse_markup(markup))

        assert first.pdf_bytes == second.pdf_bytes
        assert first.pdf_bytes.startswith(b'%PDF')

    def test_empty_document_is_one_page(self, render_config):
        result = render_markup('', render_config)

        assert result.page_count == 1
        assert result.texts_on_page(1) == ['Page 1']
