"""bt - a minimal, file-backed task tracker.

Tasks live as markdown files under ``.tasks/<status>/<id>.md``; the
directory a record sits in is its status.
"""

__version__ = "0.3.0"
