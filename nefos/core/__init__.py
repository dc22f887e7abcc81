"""Core building blocks of nefos."""
