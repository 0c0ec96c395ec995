"""
at-utils - Installer and updater toolkit for the Adapt authoring tool.

This is the library package behind the ``at-utils`` command. It provides:
- Plugin discovery and dependency aggregation over an installed module tree
- Configuration schema collection
- Release selection against the GitHub releases API
- Thin wrappers around git, npm and the application's internal API
"""

__version__ = "0.1.0"

GITHUB_ORG_URL = "https://github.com/adapt-security"
GITHUB_ORG = "adapt-security"
GITHUB_REPO = "adapt-authoring"

__all__ = ["__version__", "GITHUB_ORG_URL", "GITHUB_ORG", "GITHUB_REPO"]
