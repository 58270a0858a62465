"""
Workflow Kernel

Permission-gated lifecycle engine for tenant-scoped business entities:
- Declarative, deterministic state machines
- Pure business guards on transitions
- Atomic state change + history + audit writes
- Append-only state history and audit log
"""

__version__ = "0.1.0"
