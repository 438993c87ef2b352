"""
Core modules for RAG Cost Simulator.

This package contains token estimation, pricing, cost calculation,
the simulated corpus, and the staged pipeline.
"""
