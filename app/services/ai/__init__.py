"""Resilient structured-generation client (``AIService``) and its building blocks."""
