"""Client module - Remote contents API, local store, and sync engine."""
