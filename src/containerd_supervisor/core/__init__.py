"""
Core building blocks shared by the task subsystem.

Components:
- ports.py: Protocols for the container runtime collaborators
- context.py: CallContext passed to every runtime call
- locks.py: ReadWriteLock guarding in-memory handle state
"""
