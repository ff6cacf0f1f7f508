"""Vector index access: indexing and retrieval of portfolio content."""
