"""
AI query interpretation for product search.

The model only interprets the query (spelling, keywords, categories).
Retrieval and ranking stay deterministic in the catalog layer; this package
must not query products.
"""
