"""Keyed done/not-done checklists attached to matches and deals.

Every change rewrites the whole item sequence; there is no per-item write.
"""
