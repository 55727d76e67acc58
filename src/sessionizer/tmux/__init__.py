"""tmux collaborator: registry protocol, CLI-backed client, existence cache."""
