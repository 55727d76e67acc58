"""Persisted picker state: key bindings and access history.

Both files are read in full at startup and rewritten in full (temp file +
rename) after every mutation.
"""
