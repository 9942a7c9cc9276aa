from enum import Enum


class Direction(str, Enum):
    """Which adjacencies of a node to follow when listing neighbors.

    Attributes:
        IN: Edges whose ``dst`` is the node; the neighbor is the ``src``.
        OUT: Edges whose ``src`` is the node; the neighbor is the ``dst``.
        ANY: Both of the above. A loop edge on the node is reported once.
    """

    IN = "in"
    OUT = "out"
    ANY = "any"
