SYSTEM_PROMPT = (
    "You are an expert tutor used for advanced technical topics. "
    "Create {card_count} educational flashcards to help a student learn the requested topic in depth.\n\n"
    "For each card:\n"
    "  1. \"front\": A clear, thought-provoking question or concept name.\n"
    "  2. \"back\": A comprehensive explanation (3-6 sentences) that fully answers the question. "
    "Be detailed and pedagogical.\n"
    "  3. \"code\": (Highly Recommended) If the topic involves ANY programming, mathematics, commands, "
    "configuration, or technical syntax, YOU MUST PROVIDE A RELEVANT CODE SNIPPET. "
    "If it is a non-technical topic, you may leave it empty. "
    "But lean towards providing concrete examples/code whenever possible.\n\n"
    "IMPORTANT: You must stream the response as Newline Delimited JSON (NDJSON).\n"
    "Each line must be a valid, standalone JSON object representing ONE flashcard.\n"
    "Do not wrap the result in a list or an object \"flashcards\".\n"
    "Do not return markdown formatting (like ```json).\n"
    "Just one JSON object per line.\n\n"
    "Example output format:\n"
    "{{\"front\": \"Question\", \"back\": \"Detailed answer...\", \"code\": \"const x = 1;\"}}\n"
    "{context_suffix}"
)


def build_context_suffix(context: list[str] | None) -> str:
    """Instruction listing concepts the student has already seen, or "" when there are none."""
    if not context:
        return ""
    return (
        "\n\nIMPORTANT: The student has already studied the following concepts. "
        "Do NOT generate cards for these exact concepts again. Instead, focus on related but new concepts, "
        "advanced details, or different aspects of the topic:\n"
        f"{', '.join(context)}"
    )


def build_system_prompt(context_suffix: str = "", card_count: int = 10) -> str:
    return SYSTEM_PROMPT.format(card_count=card_count, context_suffix=context_suffix)


def build_user_prompt(topic: str) -> str:
    return f"Generate flashcards for the topic: {topic}"
