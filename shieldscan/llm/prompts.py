"""
LLM Prompts
===========
Prompt used by the false-positive annotator.

Prompt Design Rules:
    - One finding per call: message, location and a ±10 line code window
    - The model must answer with exactly one token:
      TRUE_POSITIVE, FALSE_POSITIVE or UNCERTAIN
    - Anything else is treated as UNCERTAIN by the caller
"""

VERDICT_TOKENS = ("TRUE_POSITIVE", "FALSE_POSITIVE", "UNCERTAIN")

NOT_AVAILABLE = "N/A"


def build_false_positive_prompt(message: str, code_snippet: str, file_path, line) -> str:
    """Build the classification prompt for a single finding."""
    location = f"{file_path or NOT_AVAILABLE}:{line or NOT_AVAILABLE}"
    return (
        "Analyze the following security finding. Based on the code and the "
        "description, is it more likely to be a true positive or a false positive?\n"
        "\n"
        f"**Finding:** {message}\n"
        f"**File:** {location}\n"
        "\n"
        "**Code:**\n"
        "```\n"
        f"{code_snippet}\n"
        "```\n"
        "\n"
        "Respond with ONLY ONE of the following words: "
        "`TRUE_POSITIVE`, `FALSE_POSITIVE`, or `UNCERTAIN`.\n"
    )
