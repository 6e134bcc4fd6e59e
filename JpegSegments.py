"""
Parsers for JFIF APP0 and DQT segment contents.

Both parsers take a Readable standing at the start of the data they decode
and leave it right after the consumed bytes.

References:

http://vip.sugovica.hu/Sardi/kepnezo/JPEG%20File%20Layout%20and%20Format.htm
https://www.w3.org/Graphics/JPEG/jfif3.pdf
"""
from collections import namedtuple
from enum import IntEnum
import logging

from JpegErrors import MalformedStream, UnsupportedPrecision, InvalidTableSelector

logger = logging.getLogger(__name__)

JFIF_IDENTIFIER = b'JFIF\0'
JFXX_IDENTIFIER = b'JFXX\0'

QTABLE_SIZE = 64

_z_z = bytearray([ # Zig-zag indices of AC coefficients
         1,  8, 16,  9,  2,  3, 10, 17, 24, 32, 25, 18, 11,  4,  5,
    12, 19, 26, 33, 40, 48, 41, 34, 27, 20, 13,  6,  7, 14, 21, 28,
    35, 42, 49, 56, 57, 50, 43, 36, 29, 22, 15, 23, 30, 37, 44, 51,
    58, 59, 52, 45, 38, 31, 39, 46, 53, 60, 61, 54, 47, 55, 62, 63])


class DensityUnit(IntEnum):
    NONE = 0
    PIXELS_PER_INCH = 1
    PIXELS_PER_CM = 2


RGB = namedtuple('RGB', ['r', 'g', 'b'])


class JfifVersion(namedtuple('JfifVersion', ['major', 'minor'])):
    __slots__ = ()

    def __str__(self):
        return "%d.%d" % (self.major, self.minor)


JfifData = namedtuple('JfifData', ['identifier', 'version', 'density_unit', 'x_density', 'y_density',
                                   'thumbnail_width', 'thumbnail_height', 'thumbnail'])


class QuantizationTable(object):
    """
    Quantization table as stored in DQT segment.
    Values are kept in zig-zag order
    """
    __slots__ = 'destination', 'precision', 'values'

    def __init__(self, destination, values, precision=0):
        self.destination = destination
        self.precision = precision
        self.values = tuple(values)

    def natural_order(self):
        """
        Reorders table values into row-major 8x8 order
        :return:list of 64 values
        """
        table = [0] * QTABLE_SIZE
        table[0] = self.values[0]
        for i, z in enumerate(_z_z, 1):
            table[z] = self.values[i]
        return table

    def __len__(self):
        return len(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def __eq__(self, other):
        if not isinstance(other, QuantizationTable):
            return NotImplemented
        return (self.destination, self.precision, self.values) == (other.destination, other.precision, other.values)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.destination, self.precision, self.values))

    def __repr__(self):
        return "QuantizationTable(id=%d, values=%s)" % (self.destination, list(self.values))


def parse_jfif(readable):
    """
    Parses contents of JFIF APP0 segment. Cursor should stand right after
    the length field.

    Field                   Size        Description
    Identifier              5 bytes     'JFIF'#0 (0x4a, 0x46, 0x49, 0x46, 0x00)
    Version                 2 bytes     major, minor. Usually 1.01 or 1.02
    Density units           1 byte      0 = no units, 1 = pixels per inch, 2 = pixels per cm
    X density               2 bytes
    Y density               2 bytes
    Thumbnail width         1 byte
    Thumbnail height        1 byte
    Thumbnail data          3*w*h bytes RGB triples

    :param readable:Readable
    :return:JfifData
    """
    identifier = readable.read(5)
    if identifier != JFIF_IDENTIFIER:
        logger.warning("Unexpected APP0 identifier %r" % identifier)

    version = JfifVersion(*readable.parse('!BB'))
    if version.major != 1:
        logger.warning("Strange JFIF version %s" % version)

    units = readable.uint8()
    try:
        density_unit = DensityUnit(units)
    except ValueError:
        raise MalformedStream('Unknown JFIF density unit', readable.position - 1, len(readable), units)

    x_density, y_density, x_thumb, y_thumb = readable.parse('!HHBB')

    # Thumbnail follows right after the header fields
    thumbnail = []
    if x_thumb > 0 and y_thumb > 0:
        logger.debug("Reading thumbnail %dx%d" % (x_thumb, y_thumb))
        pixels = readable.read(3 * x_thumb * y_thumb)
        for i in range(0, len(pixels), 3):
            thumbnail.append(RGB(pixels[i], pixels[i+1], pixels[i+2]))

    logger.debug("JFIF version=%s units=%d density=%dx%d thumbnail=%dx%d" %
                 (version, units, x_density, y_density, x_thumb, y_thumb))
    return JfifData(identifier, version, density_unit, x_density, y_density, x_thumb, y_thumb, tuple(thumbnail))


def parse_quantization_table(readable):
    """
    Parses a single table from DQT segment

    Field               Size        Description
    Pq/Tq               1 byte      bit 4..7: precision (0 = 8 bit, 1 = 16 bit)
                                    bit 0..3: destination (0..3)
    Values              64 bytes    Table values in zig-zag order

    :param readable:Readable
    :return:QuantizationTable
    """
    position = readable.position
    precision, destination = readable.nibbles()
    if precision != 0:
        raise UnsupportedPrecision('Unsupported qtable element precision', position, len(readable), precision)
    if destination > 3:
        raise InvalidTableSelector('Invalid qtable destination identifier', position, len(readable), destination)
    values = readable.read(QTABLE_SIZE)
    logger.debug("Parsed quantization table=%d at offset=%d" % (destination, position))
    return QuantizationTable(destination, values, precision)
