"""config package for Session Logger."""
