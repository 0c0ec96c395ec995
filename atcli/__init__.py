"""
atcli - Command-line front end for at-utils.

Subcommands cover installation, updates, release listing, dependency and
schema inspection, and super user registration.
"""

__all__ = []
