"""Authentication: token lookup and FastAPI dependencies."""
