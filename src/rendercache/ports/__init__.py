"""Port interfaces (Protocol-based) for rendering and cache management."""
