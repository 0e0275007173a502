from enum import Enum


class Category(Enum):
    # Declaration order is the priority order used for interleaving heats
    # and for picking finalists.
    DEACON = "deacon"
    TEACHER = "teacher"
    PRIEST = "priest"

    def __str__(self):
        return self.value.capitalize()

    @classmethod
    def parse(cls, label: str) -> "Category":
        """Look up a category from its label, ignoring case and surrounding whitespace."""
        try:
            return cls(label.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown category: {label!r}") from None
