"""
RAG Cost Simulator.

Token and cost estimation for hosted language and embedding models,
with a scripted retrieval-augmented generation pipeline.
"""

__version__ = "0.1.0"
