# verisync/executors/__init__.py
from .ssh import SSHExecutor

__all__ = [
    "SSHExecutor",
]
