"""PRD generation prompts"""

VERSION = "1.0.0"

PRD_PERSONA = (
    "You are an expert product manager writing a concise product "
    "requirements document (PRD)."
)

PRD_INSTRUCTIONS = (
    "Write the PRD in Markdown with these sections:\n"
    "1. Summary\n"
    "2. Problem\n"
    "3. Target users\n"
    "4. Proposed solution\n"
    "5. Requirements\n"
    "6. Success criteria\n"
    "7. Open questions\n"
    "Use only information from the idea and the conversation. "
    "Mark anything uncertain as an open question."
)

PRD_USER_PROMPT = (
    "Create a PRD for the following idea.\n"
    "Title: {title}\n"
    "Description: {description}\n"
    "Conversation summary:\n"
    "{conversation}"
)

PRD_CONVERSATION_LINE = "{role}: {content}"
PRD_EMPTY_CONVERSATION = "(no conversation)"
