import pytest

from contractprocessor.exceptions import MalformedSource
from contractprocessor.layout import MARGIN, PAGE_HEIGHT, PAGE_WIDTH
from contractprocessor.text_pipeline import decode_text, read_text


class TestReadText:
    """Plain text laid out on the synthesized page."""

    def test_single_line(self):
        result = read_text(b"This Agreement is made today.")

        assert result.page_count == 1
        assert result.page_size.width == PAGE_WIDTH
        assert result.page_size.height == PAGE_HEIGHT
        assert len(result.elements) == 1
        el = result.elements[0]
        assert el.kind == "paragraph"
        assert el.content == "This Agreement is made today."
        assert (el.position.x, el.position.y, el.position.page) == (MARGIN, MARGIN, 1)
        assert el.position.width == PAGE_WIDTH - 2 * MARGIN
        assert el.formatting.font_size == 12

    def test_lines_advance_by_line_height(self):
        result = read_text(b"first\nsecond\r\nthird")

        assert [el.position.y for el in result.elements] == [72, 90, 108]

    def test_blank_line_advances_half_a_line(self):
        result = read_text(b"Hello\n\nWorld")

        assert [el.content for el in result.elements] == ["Hello", "World"]
        assert result.elements[1].position.y == 72 + 18 + 9

    def test_labeled_signature_splits_into_text_and_field(self):
        result = read_text(("Signature: " + "_" * 20).encode())

        text_el, field_el = result.elements
        assert text_el.kind == "paragraph"
        assert text_el.content == "Signature: "
        assert field_el.kind == "field"
        assert field_el.field_metadata.field_type == "signature"
        assert field_el.position.x > text_el.position.x
        assert field_el.position.x == 72 + 66
        assert (field_el.position.width, field_el.position.height) == (250, 80)

    def test_bare_blank_is_single_field_at_margin(self):
        result = read_text(("_" * 20).encode())

        assert len(result.elements) == 1
        el = result.elements[0]
        assert el.is_field
        assert el.position.x == MARGIN
        assert el.field_metadata.original_text == "_" * 20

    def test_leading_checkbox_is_one_field(self):
        result = read_text("☐ I accept the terms".encode())

        assert len(result.elements) == 1
        assert result.elements[0].field_metadata.field_type == "checkbox"
        assert result.elements[0].position.width == 20

    def test_text_after_field_leaves_a_gap(self):
        result = read_text("Pay _______ dollars".encode())

        before, field_el, after = result.elements
        assert field_el.position.x == before.position.x + before.position.width
        assert after.position.x == field_el.position.x + 200 + 5

    def test_wraps_to_next_page(self):
        lines = "\n".join(f"Clause {i}" for i in range(51))
        result = read_text(lines.encode())

        assert result.page_count == 2
        assert all(el.position.page == 1 for el in result.elements[:50])
        last = result.elements[50]
        assert (last.position.page, last.position.y) == (2, MARGIN)

    def test_no_element_crosses_bottom_margin(self):
        lines = "\n".join(f"Clause {i}" for i in range(200))
        result = read_text(lines.encode())

        for el in result.elements:
            assert el.position.y + el.position.height <= PAGE_HEIGHT - MARGIN
            assert 1 <= el.position.page <= result.page_count

    def test_empty_file_is_one_page(self):
        result = read_text(b"")

        assert result.elements == []
        assert result.page_count == 1


class TestDecodeText:
    def test_strips_byte_order_mark(self):
        assert decode_text("\ufeffhello".encode("utf-8")) == "hello"

    def test_invalid_utf8_is_malformed(self):
        with pytest.raises(MalformedSource):
            decode_text(b"\xff\xfe\xfa broken")
