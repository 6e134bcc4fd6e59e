"""
Testing here Jpeg header loader against files written by Pillow
"""
from io import BytesIO

import pytest
from PIL import Image

from HuffmanTable import CLASS_AC, CLASS_DC, HuffmanTable
from JpegFile import JpegFile, parse, SOF0, COM
from JpegSegments import DensityUnit
from standard_tables import luminance_quantization, chrominance_quantization, standard_huffman_tables


def make_jpeg(mode='RGB', size=(16, 16), **options):
    image = Image.new(mode, size, 128 if mode == 'L' else (200, 30, 60))
    out = BytesIO()
    image.save(out, 'JPEG', **options)
    return out.getvalue()


@pytest.fixture(scope='module')
def color_jpeg():
    return make_jpeg(quality=50, dpi=(72, 72), comment=b'header test')


def test_jfif_segment(color_jpeg):
    header = parse(color_jpeg)
    assert header.jfif is not None
    assert header.version.major == 1
    assert header.density_unit is DensityUnit.PIXELS_PER_INCH
    assert (header.x_density, header.y_density) == (72, 72)
    assert (header.thumbnail_width, header.thumbnail_height) == (0, 0)


def test_standard_quantization_tables(color_jpeg):
    header = parse(color_jpeg)
    assert sorted(header.qtables) == [0, 1]
    assert header.qtables[0].values == tuple(luminance_quantization)
    assert header.qtables[1].values == tuple(chrominance_quantization)


def test_standard_huffman_tables(color_jpeg):
    header = parse(color_jpeg)
    assert sorted(header.dc_tables) == [0, 1]
    assert sorted(header.ac_tables) == [0, 1]
    for table_class, destination, counts, symbols in standard_huffman_tables:
        expected = HuffmanTable.from_size_data(counts, symbols, table_class, destination)
        assert header.huffman_table(table_class, destination) == expected


def test_frame_and_comment_are_skipped(color_jpeg):
    header = parse(color_jpeg)
    markers = [s.marker for s in header.skipped]
    assert SOF0 in markers
    assert COM in markers


def test_scan_runs_to_eoi(color_jpeg):
    parser = JpegFile(color_jpeg)
    header = parser.parse()
    assert header.scan_offset + header.scan_length == len(color_jpeg) - 2
    assert color_jpeg[-2:] == b'\xff\xd9'
    assert parser.readable.at_end()


def test_grayscale_uses_single_tables():
    header = parse(make_jpeg('L', (24, 8)))
    assert list(header.qtables) == [0]
    assert list(header.dc_tables) == [0]
    assert list(header.ac_tables) == [0]
    assert header.huffman_table(CLASS_DC, 0).table_class == CLASS_DC
    assert header.huffman_table(CLASS_AC, 0).table_class == CLASS_AC


def test_optimized_tables_are_prefix_free():
    header = parse(make_jpeg(size=(64, 64), quality=90, optimize=True))
    for tables in (header.dc_tables, header.ac_tables):
        for table in tables.values():
            assert table.unassigned == ()
            bits = [format(c.code, '0%db' % c.length) for c in table]
            for a in bits:
                for b in bits:
                    assert a == b or not b.startswith(a)
