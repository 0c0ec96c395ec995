"""
System collaborators - Processes, git, npm and the running application.

This package handles:
- Subprocess execution
- Repository clone/update and npm installs
- Host prerequisite checks
- Super user registration against the internal API
"""

__all__ = []
