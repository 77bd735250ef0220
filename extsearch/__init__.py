"""Federated meta-search: parallel engine fan-out, rank fusion and indie-web boosts."""

__version__ = "0.1.0"
