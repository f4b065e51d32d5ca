"""
Decoders for specific families of boxes, and the registration functions that make them known to a `BoxRegistry`.
"""

from atmfjstc.lib.box_tree.registry import BoxRegistry
from atmfjstc.lib.box_tree.boxes.isobmff import register_isobmff_boxes
from atmfjstc.lib.box_tree.boxes.jumbf import register_jumbf_boxes


def default_registry() -> BoxRegistry:
    """
    Returns a frozen registry covering all the box families supported by this package (ISOBMFF and JUMBF).
    """
    registry = BoxRegistry()

    register_isobmff_boxes(registry)
    register_jumbf_boxes(registry)

    return registry.freeze()
