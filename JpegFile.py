from collections import namedtuple
from types import MappingProxyType
import logging

from Readable import Readable
from JpegErrors import MalformedStream, UnsupportedScan, SegmentLengthMismatch
from JpegSegments import parse_jfif, parse_quantization_table, JFXX_IDENTIFIER
from HuffmanTable import parse_huffman_table, CLASS_DC

logger = logging.getLogger(__name__)

"""
References:

http://vip.sugovica.hu/Sardi/kepnezo/JPEG%20File%20Layout%20and%20Format.htm
Used for making JPEG parser

ITU T.81, Annex B "Compressed data formats"
"""

MARKER_PREFIX = 0xff

# Defining JFIF blocks to be parsed
SOF0 = 0xc0
DHT = 0xc4
SOI = 0xd8
EOI = 0xd9
SOS = 0xda
DQT = 0xdb
DRI = 0xdd
APP0 = 0xe0
COM = 0xfe

marker_names = {
    SOI: 'SOI',
    EOI: 'EOI',
    SOS: 'SOS',
    DQT: 'DQT',
    DHT: 'DHT',
    DRI: 'DRI',
    COM: 'COM',
    0xcc: 'DAC',
    0xdc: 'DNL',
}
marker_names.update((0xc0 + n, 'SOF%d' % n) for n in range(16) if n not in (4, 8, 12))
marker_names.update((0xd0 + n, 'RST%d' % n) for n in range(8))
marker_names.update((APP0 + n, 'APP%d' % n) for n in range(16))


def marker_name(marker):
    return marker_names.get(marker, '%02x' % marker)


SkippedSegment = namedtuple('SkippedSegment', ['marker', 'offset', 'length'])


class HeaderModel(namedtuple('HeaderModel', ['jfif', 'qtables', 'dc_tables', 'ac_tables',
                                             'scan_offset', 'scan_length', 'skipped'])):
    """
    Parsed JPEG header.

    jfif: JfifData or None if there was no JFIF APP0 segment
    qtables: read-only mapping destination -> QuantizationTable
    dc_tables, ac_tables: read-only mappings destination -> HuffmanTable
    scan_offset: offset of the entropy-coded data, None if SOS was not found
    scan_length: length of the entropy-coded data up to EOI
    skipped: tuple of SkippedSegment for segments that were not parsed
    """
    __slots__ = ()

    def _jfif_field(self, name):
        if self.jfif is None:
            return None
        return getattr(self.jfif, name)

    @property
    def version(self):
        return self._jfif_field('version')

    @property
    def density_unit(self):
        return self._jfif_field('density_unit')

    @property
    def x_density(self):
        return self._jfif_field('x_density')

    @property
    def y_density(self):
        return self._jfif_field('y_density')

    @property
    def thumbnail_width(self):
        return self._jfif_field('thumbnail_width')

    @property
    def thumbnail_height(self):
        return self._jfif_field('thumbnail_height')

    @property
    def has_scan(self):
        return self.scan_offset is not None

    def huffman_table(self, table_class, destination):
        """
        :param table_class:int 0 for DC, 1 for AC
        :param destination:int table slot
        :return:HuffmanTable or None
        """
        tables = self.dc_tables if table_class == CLASS_DC else self.ac_tables
        return tables.get(destination)


class JpegFile:
    """
    Dissector for JPEG file headers.
    Walks marker segments up to the start of scan data
    """
    class ParserState:
        """
        State for parsing jpeg file
        """
        def __init__(self):
            self.jfif = None
            self.qtables = {}
            self.dc_tables = {}
            self.ac_tables = {}
            self.skipped = []
            self.scan_offset = None
            self.scan_length = 0
            self.done = False

        def snapshot(self):
            return HeaderModel(self.jfif,
                               MappingProxyType(dict(self.qtables)),
                               MappingProxyType(dict(self.dc_tables)),
                               MappingProxyType(dict(self.ac_tables)),
                               self.scan_offset,
                               self.scan_length,
                               tuple(self.skipped))

    def __init__(self, data):
        """
        :param data: bytes with the whole JPEG file
        """
        self.readable = Readable(data)

    def parse(self):
        """
        Parses JPEG header
        :return:HeaderModel
        """
        r = self.readable
        pstate = self.ParserState()

        while not pstate.done and not r.at_end():
            offset = r.position
            prefix = r.uint8()
            if prefix != MARKER_PREFIX:
                raise MalformedStream('Expecting marker prefix 0xff', offset, len(r), prefix)
            marker = r.uint8()
            while marker == MARKER_PREFIX:
                # Fill bytes before a marker
                marker = r.uint8()
            # Fill bytes are not part of the segment
            offset = r.position - 2

            # Those markers have no length
            if marker == SOI:
                logger.debug("Parsing SOI at offset=%d" % offset)
                continue
            if marker == EOI:
                logger.debug("Parsing EOI at offset=%d" % offset)
                continue

            length = r.uint16()
            if length < 2:
                raise MalformedStream('Invalid %s segment length %d' % (marker_name(marker), length),
                                      offset + 2, len(r), marker)
            segment_end = r.position + length - 2
            r.require(segment_end - r.position)
            logger.debug("Parsing marker %s, offset=%d len=%d" % (marker_name(marker), offset, length))

            handler = self.block_parsers.get(marker, JpegFile._skip_segment)
            handler(self, r, marker, offset, segment_end, pstate)

        return pstate.snapshot()

    def _skip_segment(self, r, marker, offset, segment_end, pstate):
        length = segment_end - offset - 2
        if marker == SOF0:
            logger.info("Skipping frame header %s len=%d at offset=%d" % (marker_name(marker), length, offset))
        else:
            logger.warning("Ignored unknown marker %s len=%d at offset=%d" % (marker_name(marker), length, offset))
        r.jump(segment_end)
        pstate.skipped.append(SkippedSegment(marker, offset, length))

    def _parse_app0(self, r, marker, offset, segment_end, pstate):
        if r.peek(JFXX_IDENTIFIER):
            # Extension thumbnails are not decoded
            self._skip_segment(r, marker, offset, segment_end, pstate)
            return
        pstate.jfif = parse_jfif(r)

    def _parse_quant_block(self, r, marker, offset, segment_end, pstate):
        while r.position < segment_end:
            table = parse_quantization_table(r)
            pstate.qtables[table.destination] = table
        self._check_segment_end(r, marker, segment_end)

    def _parse_huffman_block(self, r, marker, offset, segment_end, pstate):
        while r.position < segment_end:
            table_class, destination = r.nibbles()
            table = parse_huffman_table(r, table_class, destination)
            if table_class == CLASS_DC:
                pstate.dc_tables[destination] = table
            else:
                pstate.ac_tables[destination] = table
        self._check_segment_end(r, marker, segment_end)

    def _parse_sos(self, r, marker, offset, segment_end, pstate):
        # Scan header is not needed, entropy-coded data starts after it
        r.jump(segment_end)
        pstate.scan_offset = r.position
        pstate.scan_length = self._find_scan_end(r) - r.position
        logger.info("Scan data at offset=%d len=%d" % (pstate.scan_offset, pstate.scan_length))
        r.jump(len(r))
        pstate.done = True

    @staticmethod
    def _find_scan_end(r):
        """
        Walks entropy-coded data looking for its end.
        Only a single scan is supported, so another SOS is an error
        :return:int offset of EOI marker or end of the buffer
        """
        data, end = r.data, len(r.data)
        i = r.position
        while i + 1 < end:
            if data[i] != MARKER_PREFIX:
                i += 1
                continue
            marker = data[i + 1]
            if marker == EOI:
                return i
            if marker == SOS:
                raise UnsupportedScan('Multiple scans are not supported', i, end, marker)
            # 0xff00 is a stuffed byte, 0xffff is a fill byte
            i += 1 if marker == MARKER_PREFIX else 2
        return end

    @staticmethod
    def _check_segment_end(r, marker, segment_end):
        if r.position != segment_end:
            raise SegmentLengthMismatch('%s tables overrun segment end %d' % (marker_name(marker), segment_end),
                                        r.position, len(r), marker)

    # Contains a table of parsers for each defined block type
    block_parsers = {
        APP0: _parse_app0,
        DQT: _parse_quant_block,
        DHT: _parse_huffman_block,
        SOS: _parse_sos,
    }


def parse(data):
    """
    Parses JPEG header from a block of data
    :param data: bytes with the whole JPEG file
    :return:HeaderModel
    """
    return JpegFile(data).parse()
