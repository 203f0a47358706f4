"""Snapshots Module - Keyed indexes over provider price snapshots."""

from .index import CatalogKey, SnapshotHistory, SnapshotIndex, SnapshotKey

__all__ = ["CatalogKey", "SnapshotHistory", "SnapshotIndex", "SnapshotKey"]
