"""
Implementation details for built-in repository plugins.

These are *not* part of the public plugin SDK; external plugins should prefer
`rootbuild.plugin_api` and implement their own lookup logic.
"""

__all__ = []
