"""Data model, thresholds and rule tables."""
