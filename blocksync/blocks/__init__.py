"""
blocksync.blocks — the fixed block vocabulary.

Importing this package registers every block type with the Node registry.
"""
from . import names
from . import definitions  # noqa: F401  (side-effect: registers block types)

__all__ = ["names", "definitions"]
