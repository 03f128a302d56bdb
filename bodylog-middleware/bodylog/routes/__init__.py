"""Demo service routes."""
