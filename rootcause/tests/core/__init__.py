"""Unit tests for fingerprinting, payload retrieval, and the incident pipeline."""
