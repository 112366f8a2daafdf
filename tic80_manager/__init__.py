"""TIC-80 Pro manager: builds, installs and removes TIC-80 from source.

Core design goals:
- One step in flight at a time
- Step plans are configuration, not code paths
- Failures become diagnostics, never crashes
- Every command and its output logged
"""

__all__ = []
