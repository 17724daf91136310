"""
Canned assistant replies used when no completion API key is configured.
"""
from typing import Dict, List, Optional, Sequence, Tuple

GREETING = (
    "Hello! I'm Smarty, your AI assistant for note-taking and organization. "
    "I can help you with your notes in many ways:\n\n"
    "- Summarize your note collection\n"
    "- Organize and categorize notes\n"
    "- Find specific information\n"
    "- Provide insights and connections\n\n"
    "How can I help you today?"
)

SUMMARY = (
    "**Demo Summary of Your Notes**\n\n"
    "A real summary would cover your key themes, important insights and open action items.\n\n"
    "*This is a demo response. With a configured API key, I would analyze your actual notes "
    "and provide personalized insights.*"
)

ORGANIZE = (
    "**Organization Recommendations**\n\n"
    "**Suggested Categories:**\n"
    "- Work & Projects\n"
    "- Learning & Development\n"
    "- Personal & Goals\n"
    "- Ideas & Inspiration\n\n"
    "**Organization Tips:**\n"
    "- Use consistent naming conventions\n"
    "- Group related topics together\n\n"
    "*With your actual notes, I could provide specific recommendations based on your content.*"
)

NOTES = (
    "**I'm here to help with your notes!**\n\n"
    "I can summarize your collection, find patterns across notes, suggest better "
    "categories and locate related notes on a topic.\n\n"
    "Try asking me to 'summarize notes' or 'organize notes'."
)

HELP = (
    "**How I Can Help You**\n\n"
    "- 'Summarize my notes' - get an overview of all content\n"
    "- 'Organize my notes' - get organization recommendations\n"
    "- 'Find notes about [topic]' - search specific topics\n\n"
    "What would you like to explore first?"
)

SEARCH = (
    "**Smart Note Search**\n\n"
    "I can find notes by topic or keyword across titles, content and categories. "
    "Be specific about topics, and mention categories if you know them.\n\n"
    "What topic would you like me to search for?"
)

BRIEF = (
    "**Brief Overview of Your Notes**\n\n"
    "*This is a demo response.* With a configured API key I would give you a detailed, "
    "personalized brief of your most active topics, recent patterns and open items."
)

# First matching keyword group wins
KEYWORD_REPLIES: List[Tuple[Tuple[str, ...], str]] = [
    (("hello", "hi"), GREETING),
    (("summarize", "summary"), SUMMARY),
    (("organize", "category", "categories"), ORGANIZE),
    (("note", "notes"), NOTES),
    (("help", "what can you", "features"), HELP),
    (("search", "find"), SEARCH),
    (("brief", "overview"), BRIEF),
]


def default_reply(user_message: str) -> str:
    return (
        f'**Understanding your request about "{user_message}"**\n\n'
        "I'm currently in demo mode (no completion API key configured), so I can't read "
        "your notes yet. Try \"Summarize my notes\" or \"Organize my notes\" to see what "
        "I can do.\n\n"
        "How else can I help you with note management?"
    )


def canned_reply(user_message: str) -> str:
    """Pick a demo reply from keywords in the user's message."""
    lowered = user_message.lower()
    for keywords, reply in KEYWORD_REPLIES:
        if any(keyword in lowered for keyword in keywords):
            return reply
    return default_reply(user_message)


def last_user_content(messages: Sequence[Dict[str, str]]) -> Optional[str]:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message.get("content", "")
    return None


def canned_chat(messages: Sequence[Dict[str, str]]) -> str:
    """Demo reply to a role-tagged conversation."""
    return canned_reply(last_user_content(messages) or "")
