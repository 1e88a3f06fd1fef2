# Overview: Change signals emitted by the record store.

"""
Store change signals.

Read-side consumers (view caches, push channels, tests) subscribe here
instead of polling the tree.

- tree_saved: sent after every committed write, with ``version``.
- paths_invalidated: sent with the page ``paths`` a mutation made stale.
"""

from blinker import Namespace

_signals = Namespace()

tree_saved = _signals.signal("tree-saved")
paths_invalidated = _signals.signal("paths-invalidated")
