"""Sessionizer — keyed tmux session picker.

Layout:
    ~/.config/sessionizer/
    ├── sessionizer.toml               # Search paths, key alphabet, enrichment settings
    ├── sessions.yml                   # key → path bindings (rewritten atomically)
    ├── access-history.json            # path → last access / access count
    └── generated-bindings.conf        # tmux bind-key lines, sourced by tmux

Flow: discovery → ranking (access history) → filtering (query) → picker.
Selecting a project records the access and creates/switches the tmux session.
"""
