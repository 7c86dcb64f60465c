"""Buying parties and their deal matches."""
