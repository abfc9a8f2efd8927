"""
boundrand.tests
---------------
Test package for boundrand.

Notes:
- Deterministic tests drive the generator with fake sources from conftest.py.
- Statistical tests read real OS entropy and use loose thresholds; a failure
  there points at a reduction bug, not bad luck.
"""

from __future__ import annotations

__all__: tuple[str, ...] = ()
