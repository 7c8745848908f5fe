"""Deterministic extraction and selection of scenario-matched text candidates."""
