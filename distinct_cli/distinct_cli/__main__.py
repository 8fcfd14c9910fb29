"""Entry point for ``python -m distinct_cli`` and the ``geodistinct`` script."""

from distinct_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
