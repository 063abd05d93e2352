"""Module entrypoint for `python -m retrier`."""

try:
    from .cli import run
except ImportError:
    # Frozen one-file builds can execute this module outside package context.
    from retrier.cli import run


if __name__ == "__main__":
    raise SystemExit(run())
