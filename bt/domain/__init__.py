"""Domain layer for bt: pure types and algorithms, no I/O."""
