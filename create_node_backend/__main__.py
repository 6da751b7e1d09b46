"""Allow ``python -m create_node_backend``."""

from create_node_backend.cli import main

main()
