"""
Parser for box trees, i.e. the nested, length-prefixed, type-tagged binary structure used by the ISO base media file
format (MP4, HEIF, etc.) and by JUMBF.

The parser is extensible: the caller decides which box types are containers and which decoder handles each leaf box
type, via a `BoxRegistry`. Boxes of unregistered types are kept as raw data, so files containing vendor-specific or
newer box types still parse completely.

Example::

    from atmfjstc.lib.box_tree.boxes import default_registry
    from atmfjstc.lib.box_tree.parser import parse_box_tree_file

    tree = parse_box_tree_file('image.heic', default_registry())

    for box in tree.iter_boxes():
        print(box.type_code, box.size)

Note that owing to the interpreted nature of Python, this is not intended for high-throughput processing of media
files. Use the ``skip_data_types`` parser option to avoid loading the bulk media data if only the structure is needed.
"""


__version__ = '1.0.0'
