"""Catalog services: the upstream adapter facade and the teacher directory."""
