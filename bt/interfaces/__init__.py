"""User-facing interfaces for bt."""
