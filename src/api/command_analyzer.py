"""Keyword analysis deciding which tools a command needs"""

from typing import List, Tuple

TOOL_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("search_web", ("search", "weather", "news", "what is", "who is")),
    ("read_file", ("read", "file", "document", "pdf", "log")),
    ("run_script", ("run", "execute", "script", "command")),
    ("elevenlabs_speak", ("speak", "say", "tell me")),
]

# Always present, used for reasoning
DEFAULT_TOOL = "openai_gpt"


def analyze_command(command: str) -> List[str]:
    """
    Pick the tools a command is likely to need

    Matching is plain substring matching on the lowercased command, so
    "already" counts as "read". The reasoning tool is always appended last.
    """
    lower_command = command.lower()

    tools = [
        tool for tool, keywords in TOOL_KEYWORDS
        if any(keyword in lower_command for keyword in keywords)
    ]
    tools.append(DEFAULT_TOOL)

    return tools
