"""
Pytest configuration and fixtures for contractprocessor tests.
"""

import base64
import io

import django
import fitz  # PyMuPDF
import pytest
from django.conf import settings as django_settings
from docx import Document
from PIL import Image

if not django_settings.configured:
    django_settings.configure(
        DEBUG=True,
        SECRET_KEY="contractprocessor-tests",
        ROOT_URLCONF="contractprocessor.urls",
        ALLOWED_HOSTS=["testserver"],
        INSTALLED_APPS=["contractprocessor"],
        USE_I18N=False,
    )
    django.setup()


def build_pdf(pages, width=612, height=792, metadata=None, rotation=0):
    """
    Build PDF bytes. ``pages`` is a list of pages, each a list of
    (x, baseline_y, text) or (x, baseline_y, text, fontname, fontsize).
    """
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page(width=width, height=height)
        for item in lines:
            x, y, text = item[:3]
            fontname = item[3] if len(item) > 3 else "helv"
            fontsize = item[4] if len(item) > 4 else 12
            page.insert_text((x, y), text, fontname=fontname, fontsize=fontsize)
        if rotation:
            page.set_rotation(rotation)
    if metadata:
        doc.set_metadata(metadata)
    data = doc.tobytes()
    doc.close()
    return data


def build_docx(blocks, title=None, author=None):
    """
    Build DOCX bytes from (kind, payload) blocks where kind is one of
    "heading" (payload: (text, level)), "paragraph", "bullet", "breaks"
    (payload: lines joined by soft line breaks) or "table" (payload: list of rows).
    """
    doc = Document()
    for kind, payload in blocks:
        if kind == "heading":
            text, level = payload
            doc.add_heading(text, level=level)
        elif kind == "paragraph":
            doc.add_paragraph(payload)
        elif kind == "bullet":
            doc.add_paragraph(payload, style="List Bullet")
        elif kind == "breaks":
            paragraph = doc.add_paragraph(payload[0])
            for line in payload[1:]:
                run = paragraph.add_run()
                run.add_break()
                run.add_text(line)
        elif kind == "table":
            table = doc.add_table(rows=len(payload), cols=len(payload[0]))
            for r, row in enumerate(payload):
                for c, value in enumerate(row):
                    table.cell(r, c).text = value
    if title is not None:
        doc.core_properties.title = title
    if author is not None:
        doc.core_properties.author = author
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_docx():
    return build_docx


@pytest.fixture
def signature_data_url():
    """A small PNG signature encoded as a data URL."""
    image = Image.new("RGBA", (120, 40), (255, 255, 255, 0))
    for x in range(10, 110):
        image.putpixel((x, 20 + (x % 7) - 3), (0, 0, 0, 255))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def contract_text():
    return (
        "SERVICE AGREEMENT\n"
        "\n"
        "Name: ______ *\n"
        "Signature: ____________\n"
        "Plain closing line"
    ).encode("utf-8")
