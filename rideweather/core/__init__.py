"""Pure analysis components. No I/O happens below this package."""
