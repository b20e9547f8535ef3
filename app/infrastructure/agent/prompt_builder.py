"""System prompt assembly shared by the refinement dialogue and PRD generation"""

from app.prompts.v1.suggestion.conversation import (
    CONVERSATION_RULES,
    ROUND_GUIDANCE_IMPLEMENTATION,
    ROUND_GUIDANCE_PROBLEM,
    ROUND_GUIDANCE_SUMMARY,
    ROUND_STATUS,
    SUGGESTION_SUMMARY,
)


def round_guidance(round_number: int, max_rounds: int) -> str:
    """Behavioural instructions for the given round

    Rounds 1-2 elicit the problem and beneficiary, rounds 3-4 the
    implementation and resources, the final round summarizes.
    """
    if round_number >= max_rounds:
        return ROUND_GUIDANCE_SUMMARY
    if round_number <= 2:
        return ROUND_GUIDANCE_PROBLEM
    return ROUND_GUIDANCE_IMPLEMENTATION


def build_suggestion_summary(title: str, description: str, department: str) -> str:
    return SUGGESTION_SUMMARY.format(
        title=title,
        description=description,
        department=department,
    )


def build_system_prompt(
    persona: str,
    round_number: int | None = None,
    max_rounds: int | None = None,
    summary: str | None = None,
    instructions: str | None = None,
) -> str:
    """Assemble a system prompt

    Args:
        persona: who the model is
        round_number: current round; omitted for one-shot prompts
        max_rounds: round cap, required when round_number is given
        summary: suggestion context block
        instructions: extra instructions, appended last

    Returns:
        system prompt text, blocks separated by blank lines
    """
    blocks = [persona]

    if round_number is not None and max_rounds is not None:
        blocks.append(ROUND_STATUS.format(round=round_number, max_rounds=max_rounds))
        blocks.append(CONVERSATION_RULES)
        if round_number > 0:
            blocks.append(round_guidance(round_number, max_rounds))

    if summary:
        blocks.append(summary)
    if instructions:
        blocks.append(instructions)

    return "\n\n".join(blocks)
