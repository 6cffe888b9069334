"""
Data-product catalog feature: records describing datasets, with CRUD endpoints.
"""
