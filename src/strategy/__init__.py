"""Rule (strategy) definition engine package."""
