"""
Errors raised while parsing JPEG headers.

Every error is fatal for the parse. They all derive from ValueError, so
callers that only care about "bad image data" can catch that.
"""


class JpegParseError(ValueError):
    """
    Base class for header parsing errors

    msg: The unformatted error message
    position: Cursor offset where parsing failed
    size: Length of the parsed buffer
    value: Offending byte or marker value, None when not applicable
    """
    def __init__(self, msg, position, size=None, value=None):
        errmsg = '%s: offset %d' % (msg, position)
        if size is not None:
            errmsg += ' of %d' % size
        if value is not None:
            errmsg += ' (value 0x%02x)' % value
        ValueError.__init__(self, errmsg)
        self.msg = msg
        self.position = position
        self.size = size
        self.value = value


class MalformedStream(JpegParseError):
    """Structure of the stream is broken: missing 0xff prefix, bad length and so on"""


class TruncatedBuffer(JpegParseError):
    """A read would go past the end of the buffer"""


class UnsupportedPrecision(JpegParseError):
    """Quantization table uses 16-bit elements"""


class UnsupportedScan(JpegParseError):
    """Stream contains more than one scan"""


class InconsistentHuffmanInput(JpegParseError):
    """Huffman code counts do not match the number of symbols"""


class InvalidTableSelector(JpegParseError):
    """Table class or destination identifier is out of range"""


class SegmentLengthMismatch(JpegParseError):
    """Tables inside a segment run past its declared length"""
