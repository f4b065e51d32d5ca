"""
Support for the common boxes of the ISO base media file format (MP4, HEIF, etc.)

Only the structure of the file is covered: the plain container boxes, plus the file type box. Full boxes that also
act as containers (e.g. ``meta``, which prefixes its children with a version and flags) are left as raw data.
"""

from typing import List

from atmfjstc.lib.box_tree.BinaryReader import BinaryReader
from atmfjstc.lib.box_tree.nodes import LeafBox, DisplayProperties
from atmfjstc.lib.box_tree.registry import BoxRegistry


FILE_TYPE_BOX_TYPE = 'ftyp'
MEDIA_DATA_BOX_TYPE = 'mdat'

CONTAINER_BOX_TYPES = (
    'moov', 'trak', 'edts', 'mdia', 'minf', 'dinf', 'stbl', 'udta', 'mvex',
    'moof', 'traf', 'mfra', 'sinf', 'schi', 'iprp', 'ipco',
)

BRAND_SIZE = 4


class FileTypeBox(LeafBox):
    major_brand: str = ''
    minor_version: int = 0
    compatible_brands: List[str]

    def __init__(self):
        self.compatible_brands = []

    def decode(self, reader: BinaryReader):
        self.major_brand = _read_brand(reader, 'major brand')
        self.minor_version = reader.read_u32('minor version')

        while reader.has_bytes_available():
            self.compatible_brands.append(_read_brand(reader, 'compatible brand'))

    def display_properties(self) -> DisplayProperties:
        return [
            ('Major brand', self.major_brand),
            ('Minor version', str(self.minor_version)),
            ('Compatible brands', ', '.join(self.compatible_brands)),
        ]


def _read_brand(reader: BinaryReader, meaning: str) -> str:
    return reader.read_amount(BRAND_SIZE, meaning).decode('latin-1')


def register_isobmff_boxes(registry: BoxRegistry) -> BoxRegistry:
    for type_code in CONTAINER_BOX_TYPES:
        registry.register_container(type_code)

    return registry.register_leaf(FILE_TYPE_BOX_TYPE, FileTypeBox)
