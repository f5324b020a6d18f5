"""scriptmcp command-line interface."""
