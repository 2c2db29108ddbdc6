"""
blocksync
=========
Keeps a program's text and its block-graph view continuously in sync.

    text  →  parser  →  IR  →  graph_builder  →  Workspace
    Workspace  →  tree_builder  →  IR  →  generator  →  text

Both directions are sequenced by blocksync.sync.SynchronizationController.
"""

__version__ = "0.1.0"
