"""
Core services: error taxonomy, retry with backoff, admission queue, letter translation.
"""
