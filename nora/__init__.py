"""
nora - Build orchestration for the noraneko browser overlay.

Transforms the overlay sources, installs the packaged host browser once
per version, patches it to load the overlay, and in dev mode relaunches
it on every source change.
"""

__version__ = "0.1.0"
