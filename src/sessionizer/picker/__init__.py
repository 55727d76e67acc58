"""Pure list transforms for the picker: ranking by access, filtering by query."""
