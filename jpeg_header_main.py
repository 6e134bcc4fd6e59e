import argparse
import logging
import sys
"""
Prints JFIF metadata and coding tables of a JPEG file
"""

from JpegErrors import JpegParseError
from JpegFile import parse, marker_name


def print_summary(header, out):
    jfif = header.jfif
    if jfif is None:
        out.write("No JFIF segment\n")
    else:
        out.write("JFIF Version: %s\n" % jfif.version)
        out.write("Thumbnail size: %dx%d\n" % (jfif.thumbnail_width, jfif.thumbnail_height))
        out.write("XY density: %dx%d (%s)\n" % (jfif.x_density, jfif.y_density, jfif.density_unit.name.lower()))
    out.write("Quantization tables number: %d\n" % len(header.qtables))
    out.write("Huffman tables: DC=%s AC=%s\n" % (sorted(header.dc_tables), sorted(header.ac_tables)))
    for segment in header.skipped:
        out.write("Skipped %s len=%d at offset=%d\n" % (marker_name(segment.marker), segment.length, segment.offset))
    if header.has_scan:
        out.write("Scan data: offset=%d len=%d\n" % (header.scan_offset, header.scan_length))


def print_tables(header, out):
    for key, table in sorted(header.qtables.items()):
        out.write(" - qtable id=%d val=%s\n" % (key, table.natural_order()))
    for tables in (header.dc_tables, header.ac_tables):
        for key, table in sorted(tables.items()):
            out.write("%s\n" % table)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Prints header information of a JPEG/JFIF file')
    parser.add_argument('file', help='jpeg file to parse')
    parser.add_argument('-t', '--tables', action='store_true', help='print quantization and Huffman tables')
    parser.add_argument('--log-level', default='WARNING', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='logging level')
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format='%(message)s')

    try:
        with open(args.file, 'rb') as file:
            raw_data = file.read()
    except IOError as e:
        sys.stderr.write("Cannot read the file %s: %s\n" % (args.file, e))
        return 2

    try:
        header = parse(raw_data)
    except JpegParseError as e:
        sys.stderr.write("Failed to parse %s: %s\n" % (args.file, e))
        return 1

    print_summary(header, sys.stdout)
    if args.tables:
        print_tables(header, sys.stdout)
    sys.stdout.write("Finished\n")
    return 0


# Program Start Point
if __name__ == "__main__":
    sys.exit(main())
