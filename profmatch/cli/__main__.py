"""Allow ``python -m profmatch.cli`` execution."""

from profmatch.cli.ingest import main

main()
