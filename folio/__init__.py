"""Folio: a retrieval-augmented chatbot for a personal portfolio."""
