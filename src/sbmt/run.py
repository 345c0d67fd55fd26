# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Settings come from SBMT_* environment variables or a .env file;
# see sbmt.config for the full list.

from sbmt import display
from sbmt.config import TreeConfig
from sbmt.merkle import TreeError

# (leaf index, new value) applied in order.
UPDATES = [
    (0, "5"),
    (1, "6"),
    (2, "9"),
    (2, "8"),
    (2, "82"),
]


def main() -> None:
    display.configure_logging()
    config = TreeConfig.from_env()
    display.banner(config)

    tree = config.build_tree()
    display.root("EMPTY ROOT", tree.empty_root)

    checkpoint = None
    for index, value in UPDATES:
        new_root = tree.update(index, value)
        display.updated(index, value, new_root)
        if checkpoint is None:
            checkpoint = new_root

    display.path(0, tree.path(0))
    display.update_log(tree.update_log_index(), tree.history())

    display.rolled_back(2, tree.rollback(2))
    display.update_log(tree.update_log_index(), tree.history())

    try:
        undone = tree.rollback_to_root(checkpoint)
    except TreeError as exc:
        display.halt(str(exc))
        return

    display.rolled_back_to_root(undone, checkpoint)
    display.path(0, tree.path(0))


if __name__ == "__main__":
    main()
