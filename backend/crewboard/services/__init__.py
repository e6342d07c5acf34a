"""Domain services: pure scheduling logic plus persistence-backed workflows."""
