"""Game domain services: board, rules, sessions and sync.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics. ``board`` and ``rules`` are pure; ``session``
and ``registry`` hold the authoritative in-memory state; ``sync`` pushes
snapshots to connected clients.
"""
