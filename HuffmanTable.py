"""
Canonical Huffman tables from DHT segments.

A DHT table is stored as 16 code counts (one per bit length 1..16) followed
by the symbols in code order. Code values themselves are never stored, they
follow from the lengths:

    counts   = 0 2 1 0 ...          (no 1-bit codes, two 2-bit, one 3-bit)
    symbols  = 0x41 0x42 0x43
    codes    = 00 -> 0x41, 01 -> 0x42, 100 -> 0x43

References:
ITU T.81, Annex C "Huffman table specification"
"""
from collections import namedtuple
import logging

from JpegErrors import InconsistentHuffmanInput, InvalidTableSelector

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 16

# Code value that ends the assignment. All-ones codes are reserved by T.81
CODE_SENTINEL = 0xffff

CLASS_DC = 0
CLASS_AC = 1

class_names = {CLASS_DC: 'DC', CLASS_AC: 'AC'}

HuffmanCode = namedtuple('HuffmanCode', ['length', 'code', 'value'])


def expand_code_lengths(counts):
    """
    Turns a histogram of code lengths into a per-symbol length list
    :param counts: 16 counts, counts[i] is a number of codes with length i+1
    :return:list code length for each symbol
    """
    lengths = []
    for i, count in enumerate(counts):
        lengths.extend([i + 1] * count)
    return lengths


def make_code_table(lengths):
    """
    Assigns canonical codes to a list of code lengths.

    Codes of the same length are consecutive, moving to a longer length
    shifts the next code left. Assignment stops once the code leaves
    16 bits, hits the all-ones code or no longer fits its own length.
    Returned list can be shorter than `lengths`.
    :param lengths:list code length for each symbol, non-decreasing
    :return:list of codes
    """
    codes = []
    if not lengths:
        return codes
    code = 0
    current_length = lengths[0]
    for length in lengths:
        while length > current_length:
            code <<= 1
            current_length += 1
        if code >> current_length:
            # Counts violate Kraft inequality
            break
        codes.append(code)
        if current_length > MAX_CODE_LENGTH or code == CODE_SENTINEL:
            break
        code += 1
    return codes


def build_huffman_codes(counts, symbols):
    """
    Builds canonical Huffman codes
    :param counts: 16 code counts
    :param symbols: symbol bytes in canonical order
    :return: (codes, unassigned) where codes is a list of HuffmanCode and
             unassigned is a tuple of symbols that did not get a code
    """
    counts = tuple(counts)
    symbols = bytes(symbols)
    if len(counts) != MAX_CODE_LENGTH:
        raise InconsistentHuffmanInput('Expecting %d code counts but got %d' % (MAX_CODE_LENGTH, len(counts)), 0)
    total = sum(counts)
    if total != len(symbols):
        raise InconsistentHuffmanInput('Code counts give %d symbols but %d were provided' % (total, len(symbols)), 0)

    lengths = expand_code_lengths(counts)
    code_table = make_code_table(lengths)
    codes = [HuffmanCode(lengths[i], code, symbols[i]) for i, code in enumerate(code_table)]
    unassigned = tuple(symbols[len(codes):])
    if unassigned:
        logger.warning("Huffman code space is exhausted, %d symbols left without codes" % len(unassigned))
    return codes, unassigned


class HuffmanTable(object):
    """
    Huffman table of a single (class, destination) slot.
    Codes are ordered by length and then by assignment order
    """
    __slots__ = 'table_class', 'destination', 'counts', 'codes', 'unassigned'

    def __init__(self, table_class, destination, counts, codes, unassigned=()):
        self.table_class = table_class
        self.destination = destination
        self.counts = tuple(counts)
        self.codes = tuple(codes)
        self.unassigned = tuple(unassigned)

    @classmethod
    def from_size_data(cls, counts, symbols, table_class=CLASS_DC, destination=0):
        """
        Builds table from the DHT representation
        :param counts: 16 code counts
        :param symbols: symbol bytes
        :param table_class:int 0 for DC, 1 for AC
        :param destination:int table slot, 0..3
        :return:HuffmanTable
        """
        codes, unassigned = build_huffman_codes(counts, symbols)
        return cls(table_class, destination, counts, codes, unassigned)

    @property
    def class_name(self):
        return class_names.get(self.table_class, str(self.table_class))

    @property
    def symbols(self):
        return bytes(c.value for c in self.codes)

    def lookup(self, length, code):
        """
        Finds a symbol for a code
        :return: symbol value or None
        """
        for c in self.codes:
            if c.length == length and c.code == code:
                return c.value
            if c.length > length:
                break
        return None

    def __len__(self):
        return len(self.codes)

    def __iter__(self):
        return iter(self.codes)

    def __eq__(self, other):
        if not isinstance(other, HuffmanTable):
            return NotImplemented
        return (self.table_class, self.destination, self.counts, self.codes, self.unassigned) == \
            (other.table_class, other.destination, other.counts, other.codes, other.unassigned)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.table_class, self.destination, self.codes))

    def __repr__(self):
        return "HuffmanTable(%s, id=%d, codes=%d)" % (self.class_name, self.destination, len(self.codes))

    def __str__(self):
        lines = ["%s table %d" % (self.class_name, self.destination)]
        for c in self.codes:
            lines.append("  %s -> 0x%02x" % (format(c.code, '0%db' % c.length), c.value))
        return "\n".join(lines)


def parse_huffman_table(readable, table_class, destination):
    """
    Reads code counts and symbols of a single table from DHT segment.
    Cursor should stand right after the Tc/Th byte

    Field            Size        Description
    Code counts      16 bytes    Number of codes of length 1..16
    Symbols          n bytes     n = sum of the code counts
    """
    if table_class > CLASS_AC:
        raise InvalidTableSelector('Invalid htable class', readable.position - 1, len(readable), table_class)
    if destination > 3:
        raise InvalidTableSelector('Invalid htable destination identifier', readable.position - 1,
                                   len(readable), destination)
    counts = readable.read(MAX_CODE_LENGTH)
    symbols = readable.read(sum(counts))
    table = HuffmanTable.from_size_data(counts, symbols, table_class, destination)
    logger.debug("Found DHT %s table=%d counts=%s symbols=%d" %
                 (table.class_name, destination, list(counts), len(symbols)))
    return table
