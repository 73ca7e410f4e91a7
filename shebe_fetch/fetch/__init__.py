"""Acquisition pipeline: HTTP, download, extraction, cache state, launch.

Import from the submodules directly (shebe_fetch.fetch.acquirer, ...).
"""
