"""Synchronization of discovered workspace roots with the language server.

- **dedup**: per-server-session gate for add-notifications
- **reconciler**: event handling state machine (classify -> index -> decide -> emit)
"""
