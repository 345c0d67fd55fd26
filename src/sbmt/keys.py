# keys.py
# Storage key layout for tree nodes and the update log.
#
# These strings are the on-disk format. Changing any of them orphans every
# tree already written to a backend.


def node_key(prefix: str, level: int, index: int) -> str:
    """Key of the node at (level, index). Leaves live at level 0."""
    return f"{prefix}_tree_{level}_{index}"


def log_pointer_key(prefix: str) -> str:
    """Key holding the sequence number of the last applied log entry."""
    return f"{prefix}_update_log_index"


def log_entry_key(prefix: str, sequence_number: int) -> str:
    return f"{prefix}_update_log_element_{sequence_number}"
