"""Concrete adapters: the in-process cache and the upstream transport."""
