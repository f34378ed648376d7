"""
Application layer: use cases built on the infrastructure clients.

- search: alias-expanded repository search
- selection: selected analytes and their enrichment
- views: filtering, sorting and paging helpers for presentation
"""
