"""Playfield activity engine: item distribution and slide-state resolution."""
