"""Benchmark domain model and aggregation pipeline."""
