"""
The registry of box types known to a parser.

A `BoxRegistry` maps 4-character type codes either to "container" (the payload is a nested sequence of boxes) or to a
factory that produces a fresh `LeafBox` decoder for every box of that type. Type codes that are not registered are not
an error: boxes of these types are kept as raw data.

The registry is built by the caller before parsing and passed to the parser, which never modifies it. A registry can be
frozen once set up, after which it can be safely shared between any number of parsers, including across threads.
"""

from typing import Callable, Dict, FrozenSet, Optional, Set, Union

from atmfjstc.lib.box_tree.nodes import LeafBox


LeafBoxFactory = Callable[[], LeafBox]
TypeCodeLike = Union[str, bytes]


class BoxRegistry:
    _container_types: Set[str]
    _factories: Dict[str, LeafBoxFactory]
    _frozen: bool

    def __init__(self):
        self._container_types = set()
        self._factories = dict()
        self._frozen = False

    def register_container(self, type_code: TypeCodeLike) -> 'BoxRegistry':
        """
        Marks a type code as a container: boxes of this type are parsed by recursing into their payload.
        """
        type_code = normalize_type_code(type_code)

        self._check_can_register(type_code, as_container=True)
        self._container_types.add(type_code)

        return self

    def register_leaf(self, type_code: TypeCodeLike, factory: LeafBoxFactory) -> 'BoxRegistry':
        """
        Associates a type code with a factory (typically a `LeafBox` subclass) that is called once per box occurrence to
        produce a fresh decoder.
        """
        type_code = normalize_type_code(type_code)

        if not callable(factory):
            raise TypeError(f"Factory for box type '{type_code}' must be callable")

        self._check_can_register(type_code, as_container=False)
        self._factories[type_code] = factory

        return self

    def freeze(self) -> 'BoxRegistry':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def container_types(self) -> FrozenSet[str]:
        return frozenset(self._container_types)

    @property
    def leaf_types(self) -> FrozenSet[str]:
        return frozenset(self._factories.keys())

    def is_container(self, type_code: TypeCodeLike) -> bool:
        return normalize_type_code(type_code) in self._container_types

    def get_factory(self, type_code: TypeCodeLike) -> Optional[LeafBoxFactory]:
        return self._factories.get(normalize_type_code(type_code))

    def __contains__(self, type_code: TypeCodeLike) -> bool:
        type_code = normalize_type_code(type_code)

        return (type_code in self._container_types) or (type_code in self._factories)

    def _check_can_register(self, type_code: str, as_container: bool):
        if self._frozen:
            raise RuntimeError(f"Cannot register box type '{type_code}', the registry is frozen")

        if as_container and (type_code in self._factories):
            raise ValueError(f"Box type '{type_code}' is already registered as a leaf")
        if (not as_container) and (type_code in self._container_types):
            raise ValueError(f"Box type '{type_code}' is already registered as a container")


def normalize_type_code(type_code: TypeCodeLike) -> str:
    """
    Converts a type code to the canonical form used throughout the package, i.e. a 4-character string with each
    character corresponding to one byte (latin-1).
    """
    if isinstance(type_code, bytes):
        type_code = type_code.decode('latin-1')
    elif not isinstance(type_code, str):
        raise TypeError(f"Box type code must be str or bytes, is {type_code!r}")

    try:
        encoded = type_code.encode('latin-1')
    except UnicodeEncodeError:
        raise ValueError(f"Box type code {type_code!r} contains characters outside the 8-bit range") from None

    if len(encoded) != 4:
        raise ValueError(f"Box type code must be exactly 4 bytes long, is {type_code!r}")

    return type_code
