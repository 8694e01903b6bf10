"""Process startup for the backend proxy."""
