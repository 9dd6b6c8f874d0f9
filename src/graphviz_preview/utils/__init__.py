"""Small helpers shared across graphviz-preview."""
