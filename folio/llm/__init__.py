"""Clients for the hosted embedding and generation models."""
