"""
FastAPI dependencies: the model manager and the in-memory result store.
"""
