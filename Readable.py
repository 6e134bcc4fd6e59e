"""
Read cursor over an immutable byte buffer.

All segment parsers share one Readable instance and advance it. The cursor
only moves forward and every read is checked against the end of the buffer.
"""
from struct import calcsize, unpack_from

from JpegErrors import TruncatedBuffer, MalformedStream


class Readable(object):
    """
    Wrapper for IO operations from the buffer
    """
    __slots__ = 'data', 'position'

    def __init__(self, data, position=0):
        self.data = bytes(data)
        if position < 0 or position > len(self.data):
            raise TruncatedBuffer('Start position is outside of the buffer', position, len(self.data))
        self.position = position

    def __len__(self):
        return len(self.data)

    @property
    def remaining(self):
        return len(self.data) - self.position

    def at_end(self):
        return self.position >= len(self.data)

    def require(self, length):
        """
        Checks that `length` more bytes can be read
        :param length:int number of bytes about to be read
        """
        if self.position + length > len(self.data):
            raise TruncatedBuffer('Expecting %d bytes but %d left' % (length, self.remaining),
                                  self.position, len(self.data))

    def jump(self, position):
        """
        Moves cursor forward to an absolute position
        :param position:int new position, can not be behind the current one
        """
        if position < self.position:
            raise MalformedStream('Cursor can not move back to %d' % position, self.position, len(self.data))
        self.require(position - self.position)
        self.position = position

    def skip(self, length):
        self.jump(self.position + length)

    def peek(self, prefix):
        return self.data.startswith(prefix, self.position)

    def read(self, length):
        self.require(length)
        p = self.position
        self.position += length
        return self.data[p:self.position]

    def parse(self, fmt):
        size = calcsize(fmt)
        self.require(size)
        p = self.position
        self.position += size
        return unpack_from(fmt, self.data, p)

    def uint8(self):
        self.require(1)
        p = self.position
        self.position += 1
        return self.data[p]

    def uint16(self):
        self.require(2)
        d, p = self.data, self.position
        self.position += 2
        return d[p] << 8 | d[p+1]

    def nibbles(self):
        """
        Reads one byte split in high and low 4-bit parts
        :return: (high, low)
        """
        t = self.uint8()
        return t >> 4, t & 15
