"""Deterministic valuation of a debt's present value from its charges."""
