"""Allow running as python -m rvtext."""

from rvtext.cli import app


def main() -> None:
    app()


main()
