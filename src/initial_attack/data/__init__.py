"""Static reference data bundled with the package."""
