"""Command-line front end for dashkit."""
