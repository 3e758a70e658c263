"""Search parameters helpers and the end-to-end search runner."""
