"""Solo tabletop RPG session engine."""
