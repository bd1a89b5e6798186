"""City name to Danish postal code resolution."""
