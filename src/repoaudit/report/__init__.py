"""Console and markdown report rendering."""
