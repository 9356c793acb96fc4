"""
Boundary layer: relational and vector store adapters.
"""
