"""hosts-updater core package.

Keeps a marker-delimited region of the system hosts file in sync with a list
of remote plaintext sources. The reconciliation logic is usable on its own;
the scheduler and CLI wrap it into a long-running service.
"""

__all__ = [
    "core",
    "scheduler",
]

__version__ = "0.1.0"
