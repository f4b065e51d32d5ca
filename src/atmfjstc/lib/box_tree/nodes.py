"""
The data model of a parsed box tree.

A parse produces a `BoxTree`, whose top-level boxes are `BoxNode` objects. Container nodes own their children; leaf
nodes (and nodes for unregistered types) own a `LeafBox` decoder instance holding the decoded, type-specific state.
"""

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from atmfjstc.lib.box_tree.BinaryReader import BinaryReader


DisplayProperties = List[Tuple[str, str]]


class LeafBox(metaclass=ABCMeta):
    """
    Base class for leaf box decoders.

    A fresh instance is created for every box occurrence, so decoders are free to keep the decoded fields as instance
    attributes.

    `decode` receives a reader whose window covers exactly the box payload. It does not need to consume all of it: the
    parser moves on to the next box regardless. Any exception it raises is considered a failure local to this box.

    `display_properties` must only format the already-decoded state. It may still fail (e.g. for decoders that defer
    interpreting their payload until display time), in which case the failure is local to this box's display.
    """

    @abstractmethod
    def decode(self, reader: BinaryReader):
        raise NotImplementedError

    @abstractmethod
    def display_properties(self) -> DisplayProperties:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        # Decoders of the same type that decoded the same fields are equal
        return (type(self) is type(other)) and (vars(self) == vars(other))

    __hash__ = None


class RawBox(LeafBox):
    """
    Decoder used for boxes whose type is not registered. Keeps the payload verbatim.
    """

    data: bytes = b''

    def decode(self, reader: BinaryReader):
        self.data = reader.read_remainder()

    def display_properties(self) -> DisplayProperties:
        return [('Data size', f"{len(self.data)} bytes")]


class BoxKind(Enum):
    CONTAINER = 'container'
    LEAF = 'leaf'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class BoxNode:
    """
    A box in a parsed tree.

    Nodes compare equal when they describe the same box with the same decoded content. A decode failure takes part in
    the comparison through `decode_error_head` (the class and message of the exception), as exception objects only
    compare by identity. The decoded content does not take part in hashing.
    """

    type_code: str
    size: int
    header_size: int
    offset: int
    kind: BoxKind
    children: Tuple['BoxNode', ...] = ()
    content: Optional[LeafBox] = field(default=None, hash=False)
    decode_error: Optional[Exception] = field(default=None, compare=False)
    decode_error_head: Optional[str] = None
    data_skipped: bool = False

    @property
    def payload_size(self) -> int:
        return self.size - self.header_size

    @property
    def is_container(self) -> bool:
        return self.kind == BoxKind.CONTAINER

    def display_properties(self) -> DisplayProperties:
        """
        Returns the labelled, formatted properties of the box content.

        Containers, skipped boxes and boxes that failed to decode have no properties. Exceptions raised by the content
        decoder are propagated, as they concern only this box.
        """
        if (self.content is None) or self.data_skipped or (self.decode_error_head is not None):
            return []

        return self.content.display_properties()

    def iter_boxes(self) -> Iterable['BoxNode']:
        """Iterates over this box and all of its descendants, depth first."""
        yield self

        for child in self.children:
            yield from child.iter_boxes()


@dataclass(frozen=True)
class BoxTree:
    boxes: Tuple[BoxNode, ...]
    size: int
    source_name: Optional[str] = None

    def iter_boxes(self) -> Iterable[BoxNode]:
        for box in self.boxes:
            yield from box.iter_boxes()

    def find_boxes(self, type_code: str) -> List[BoxNode]:
        return [box for box in self.iter_boxes() if box.type_code == type_code]
