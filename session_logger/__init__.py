"""Session Logger package."""
