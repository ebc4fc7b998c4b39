"""Record store, identity service and local catalog snapshot I/O."""

from src.io.snapshotting import get_latest_snapshot_path, load_latest_snapshot

__all__ = ["get_latest_snapshot_path", "load_latest_snapshot"]
