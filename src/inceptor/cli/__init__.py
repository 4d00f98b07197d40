"""inceptor command-line interface (Typer)."""
