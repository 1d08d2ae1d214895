"""Domain primitives for folder organizer."""
