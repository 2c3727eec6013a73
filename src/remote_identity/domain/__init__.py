"""Domain core: resolve, filter, canonicalize, and reconcile remote identities."""
