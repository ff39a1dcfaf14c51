"""Outline tree engine: store, mutations, zoom and visible order."""
