"""Deterministic seeded selection."""

from .rng import DEFAULT_SEED_STATE, SeededRandom, assign_packs, derive_seed

__all__ = ["DEFAULT_SEED_STATE", "SeededRandom", "assign_packs", "derive_seed"]
