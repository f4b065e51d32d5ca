"""
Support for JUMBF (JPEG Universal Metadata Box Format) boxes.

A JUMBF superbox (``jumb``) is a container holding a description box (``jumd``) followed by one or more content boxes,
e.g. a JSON content box (``json``).
"""

import json

from typing import Optional
from uuid import UUID

from atmfjstc.lib.box_tree.BinaryReader import BinaryReader
from atmfjstc.lib.box_tree.nodes import LeafBox, DisplayProperties
from atmfjstc.lib.box_tree.registry import BoxRegistry


SUPERBOX_TYPE = 'jumb'
DESCRIPTION_BOX_TYPE = 'jumd'
JSON_CONTENT_BOX_TYPE = 'json'

CONTENT_TYPE_UUID_SIZE = 16
SIGNATURE_SIZE = 32

SIGNATURE_PRESENT_TOGGLES = 0x0B
"""
Value of the toggles field announcing that a SHA-256 signature follows the label. The comparison is against the whole
field, not individual bits.
"""


class JUMBFDescriptionBox(LeafBox):
    content_type: bytes = b''
    toggles: int = 0
    label: str = ''
    signature: Optional[bytes] = None

    @property
    def has_signature(self) -> bool:
        return self.toggles == SIGNATURE_PRESENT_TOGGLES

    def decode(self, reader: BinaryReader):
        self.content_type = reader.read_amount(CONTENT_TYPE_UUID_SIZE, 'content type UUID')
        self.toggles = reader.read_u8('toggles')
        self.label = reader.read_null_terminated_string('label')

        # The signature is optional even when announced; if any bytes follow, though, they must hold all of it
        if self.has_signature and reader.has_bytes_available():
            self.signature = reader.read_amount(SIGNATURE_SIZE, 'signature')

    def display_properties(self) -> DisplayProperties:
        props = [
            ('Box Type', self.content_type[:4].decode('latin-1')),
            ('Content Type', str(UUID(bytes=self.content_type))),
            ('Label', self.label),
            ('Toggles', f"0x{self.toggles:02X}"),
        ]

        if self.signature is not None:
            props.append(('Signature', '0x' + self.signature.hex().upper()))

        return props


class JSONContentBox(LeafBox):
    """
    Keeps its payload verbatim. The payload is only interpreted as JSON at display time, so a malformed payload fails
    just the display of this box.
    """

    data: bytes = b''

    def decode(self, reader: BinaryReader):
        self.data = reader.read_remainder()

    def parse_json(self):
        return json.loads(self.data.decode('utf-8'))

    def display_properties(self) -> DisplayProperties:
        return [('Data', json.dumps(self.parse_json(), indent=4, ensure_ascii=False))]


def register_jumbf_boxes(registry: BoxRegistry) -> BoxRegistry:
    return registry \
        .register_container(SUPERBOX_TYPE) \
        .register_leaf(DESCRIPTION_BOX_TYPE, JUMBFDescriptionBox) \
        .register_leaf(JSON_CONTENT_BOX_TYPE, JSONContentBox)
