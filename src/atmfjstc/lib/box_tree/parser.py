"""
The box tree parser.

Boxes are parsed by recursive descent. Every box starts with a header::

    size: uint32        (0 = the box extends to the end of the enclosing region, 1 = see extended size)
    type: 4 bytes       (the type code)
    extended size: uint64, present only if size == 1

Depending on what its type code is registered as, the payload of a box is either parsed as a nested sequence of boxes
(container) or handed to a leaf decoder, scoped to exactly the payload size. Either way, the parser always resumes right
after the payload, so a misbehaving decoder cannot misalign the boxes that follow.

Parsing is all-or-nothing: structural problems (sizes that overrun or underfill their region, truncated headers, nesting
that is too deep) abort the parse with a `BoxFormatError`. Failures of a single leaf decoder are, by default, recorded
on the box node and parsing continues (see `ParserOptions.strict_leaf_decoding`).
"""

import logging

from dataclasses import dataclass
from os import PathLike
from typing import AnyStr, BinaryIO, FrozenSet, List, Optional, Tuple, Union

from atmfjstc.lib.box_tree.BinaryReader import BinaryReader
from atmfjstc.lib.box_tree.errors import BoxStructureError, UnsupportedSizeError, LeafDecodeError, format_exception_head
from atmfjstc.lib.box_tree.nodes import BoxKind, BoxNode, BoxTree, RawBox
from atmfjstc.lib.box_tree.registry import BoxRegistry, normalize_type_code


_LOG = logging.getLogger(__name__)


BOX_HEADER_SIZE = 8
EXTENDED_BOX_HEADER_SIZE = 16

SIZE_EXTENDS_TO_END = 0
SIZE_IS_EXTENDED = 1

DEFAULT_MAX_DEPTH = 64
MAX_SUPPORTED_DEPTH = 128


PathType = Union[PathLike, AnyStr]


@dataclass(frozen=True)
class ParserOptions:
    """
    Options controlling the behavior of a `BoxTreeParser`.

    Attributes:
        skip_data_types: Type codes of leaf boxes whose payload is skipped wholesale instead of being decoded (e.g.
            ``'mdat'``, which holds the bulk media data of a file). May be given as any iterable of `str` or `bytes`
            type codes.
        max_depth: The maximum number of container levels that can be nested inside each other. Deeper nesting is
            considered a structural error. Must be between 1 and `MAX_SUPPORTED_DEPTH`, as the parser recurses once
            per level.
        strict_leaf_decoding: If True, a failure to decode a leaf box aborts the whole parse with a `LeafDecodeError`.
            Otherwise, the error is recorded in the box node's `decode_error` and parsing continues.
    """

    skip_data_types: FrozenSet[str] = frozenset()
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_leaf_decoding: bool = False

    def __post_init__(self):
        if isinstance(self.skip_data_types, (str, bytes)):
            raise TypeError("skip_data_types must be a collection of type codes, not a single type code")

        object.__setattr__(
            self, 'skip_data_types', frozenset(normalize_type_code(code) for code in self.skip_data_types)
        )

        if not (1 <= self.max_depth <= MAX_SUPPORTED_DEPTH):
            raise ValueError(f"max_depth must be between 1 and {MAX_SUPPORTED_DEPTH}, is {self.max_depth}")


class BoxTreeParser:
    """
    Parses box trees according to a given registry of box types.

    The parser holds no state between parses, and it never modifies the registry, so a single parser can be used for
    any number of inputs.
    """

    _registry: BoxRegistry
    _options: ParserOptions

    def __init__(self, registry: BoxRegistry, options: Optional[ParserOptions] = None):
        options = options or ParserOptions()

        for type_code in options.skip_data_types:
            if registry.is_container(type_code):
                raise ValueError(f"Cannot skip the data of box type '{type_code}', it is registered as a container")

        self._registry = registry
        self._options = options

    @property
    def registry(self) -> BoxRegistry:
        return self._registry

    @property
    def options(self) -> ParserOptions:
        return self._options

    def parse(self, data_or_fileobj: Union[bytes, BinaryIO]) -> BoxTree:
        """
        Parses the box tree contained in a `bytes` object or a seekable binary file object.

        For a file object, parsing starts at its current position and extends to the end of the file.

        Returns:
            The complete box tree.

        Raises:
            BoxFormatError: If the data is not a structurally valid box tree.
            LeafDecodeError: If a leaf box fails to decode and strict leaf decoding is enabled.
        """
        reader = BinaryReader(data_or_fileobj, big_endian=True)
        name = reader.name()

        boxes = self._parse_region(reader, depth=0)

        return BoxTree(
            boxes=boxes,
            size=reader.total_size(),
            source_name=None if name is None else str(name),
        )

    def parse_file(self, path: PathType) -> BoxTree:
        with open(path, 'rb') as f:
            return self.parse(f)

    def _parse_region(self, reader: BinaryReader, depth: int) -> Tuple[BoxNode, ...]:
        boxes: List[BoxNode] = []

        while reader.has_bytes_available():
            boxes.append(self._parse_box(reader, depth))

        return tuple(boxes)

    def _parse_box(self, reader: BinaryReader, depth: int) -> BoxNode:
        offset = reader.absolute_position()
        region_left = reader.bytes_remaining()

        if region_left < BOX_HEADER_SIZE:
            raise BoxStructureError(
                offset, None, f"{region_left} trailing byte(s) are too few to hold another box header"
            )

        size, raw_type_code = reader.read_struct('I4s', 'box header')
        type_code = raw_type_code.decode('latin-1')
        header_size = BOX_HEADER_SIZE

        if size == SIZE_IS_EXTENDED:
            size = reader.read_u64(f"extended size of box '{type_code}'")
            header_size = EXTENDED_BOX_HEADER_SIZE

            if size < header_size:
                raise UnsupportedSizeError(offset, type_code, size, header_size)
        elif size == SIZE_EXTENDS_TO_END:
            size = region_left

        if size < header_size:
            raise BoxStructureError(
                offset, type_code, f"declared size {size} is smaller than the {header_size}-byte header"
            )
        if size > region_left:
            raise BoxStructureError(
                offset, type_code,
                f"declared size {size} exceeds the {region_left} byte(s) left in the enclosing region"
            )

        payload_size = size - header_size
        payload = reader.slice(payload_size)

        _LOG.debug("Box '%s' at %d: size %d, header %d", type_code, offset, size, header_size)

        if self._registry.is_container(type_code):
            children = self._parse_container_payload(payload, type_code, offset, depth)

            node = BoxNode(
                type_code=type_code, size=size, header_size=header_size, offset=offset,
                kind=BoxKind.CONTAINER, children=children,
            )
        elif type_code in self._options.skip_data_types:
            _LOG.debug("Skipping %d bytes of data in box '%s' at %d", payload_size, type_code, offset)

            node = BoxNode(
                type_code=type_code, size=size, header_size=header_size, offset=offset,
                kind=self._leaf_kind(type_code), data_skipped=True,
            )
        else:
            node = self._parse_leaf(payload, type_code, size, header_size, offset)

        reader.skip_bytes(payload_size, f"payload of box '{type_code}'")

        return node

    def _parse_container_payload(
        self, payload: BinaryReader, type_code: str, offset: int, depth: int
    ) -> Tuple[BoxNode, ...]:
        if depth >= self._options.max_depth:
            raise BoxStructureError(
                offset, type_code, f"containers are nested deeper than the maximum of {self._options.max_depth}"
            )

        children = self._parse_region(payload, depth + 1)

        consumed = sum(child.size for child in children)
        if (consumed != payload.total_size()) or (payload.tell() != payload.total_size()):
            raise BoxStructureError(
                offset, type_code,
                f"children cover {consumed} byte(s) of the {payload.total_size()}-byte payload"
            )

        return children

    def _parse_leaf(
        self, payload: BinaryReader, type_code: str, size: int, header_size: int, offset: int
    ) -> BoxNode:
        factory = self._registry.get_factory(type_code)
        content = RawBox() if factory is None else factory()

        decode_error = None

        try:
            content.decode(payload)
        except Exception as e:
            if self._options.strict_leaf_decoding:
                raise LeafDecodeError(offset, type_code) from e

            _LOG.warning("Failed to decode box '%s' at position %d: %s", type_code, offset, e)
            decode_error = e
        else:
            if payload.has_bytes_available():
                _LOG.debug(
                    "Decoder for box '%s' at %d left %d byte(s) unread", type_code, offset, payload.bytes_remaining()
                )

        return BoxNode(
            type_code=type_code, size=size, header_size=header_size, offset=offset,
            kind=self._leaf_kind(type_code), content=content, decode_error=decode_error,
            decode_error_head=None if decode_error is None else format_exception_head(decode_error),
        )

    def _leaf_kind(self, type_code: str) -> BoxKind:
        return BoxKind.UNKNOWN if self._registry.get_factory(type_code) is None else BoxKind.LEAF


def parse_box_tree(
    data_or_fileobj: Union[bytes, BinaryIO], registry: BoxRegistry, options: Optional[ParserOptions] = None
) -> BoxTree:
    """
    Shortcut for ``BoxTreeParser(registry, options).parse(data_or_fileobj)``.
    """
    return BoxTreeParser(registry, options).parse(data_or_fileobj)


def parse_box_tree_file(path: PathType, registry: BoxRegistry, options: Optional[ParserOptions] = None) -> BoxTree:
    """
    Shortcut for ``BoxTreeParser(registry, options).parse_file(path)``.
    """
    return BoxTreeParser(registry, options).parse_file(path)
