"""Cosmetic formulation scaling, production gating and batch actuals service."""
