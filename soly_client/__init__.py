"""Soly client runtime: backend session, result cache and connection resilience."""
