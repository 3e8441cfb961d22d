import inflect

inflect_e = inflect.engine()


def count_text(count: int, noun: str) -> str:
    """The count followed by the noun in the right number (`3 items`)."""
    return f"{count} {inflect_e.plural_noun(noun, count)}"
