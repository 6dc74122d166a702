"""Dataset loading helpers."""
