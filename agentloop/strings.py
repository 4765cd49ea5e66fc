"""User-facing message table, keyed by message id."""

MESSAGES: dict[str, str] = {
    "ALL_TASKS_COMPLETED": "All tasks completed. Shutting down.",
    "LOOPS_REACHED": (
        "This agent has reached the maximum number of loops. "
        "Raise the loop budget to let it run longer."
    ),
    "AGENT_MANUALLY_SHUT_DOWN": "The agent has been manually shut down.",
    "ERROR_ADDING_ADDITIONAL_TASKS": (
        "Error adding additional task(s). The agent will continue with the remaining tasks."
    ),
    "ERROR_EXECUTING_TASK": "Error executing task. The agent will move on to the next task.",
    "ERROR_ANALYZING_TASK": "Error analyzing task. Falling back to reasoning.",
    "ERROR_RETRIEVE_INITIAL_TASKS": "Error retrieving initial tasks. Shutting down.",
    "ERROR_API_KEY_QUOTA": (
        "The API key has hit its quota or rate limit. Check your plan and billing details."
    ),
    "ERROR_API_KEY_NO_MODEL_ACCESS": (
        "The API key does not have access to the selected model. Pick another model."
    ),
    "ERROR_ACCESSING_API_KEY": (
        "Error accessing the API. Check the API key or try again later."
    ),
    "ERROR_UNEXPECTED": "The agent stopped because of an unexpected error.",
    "RATE_LIMIT_EXCEEDED": "Rate limit exceeded. Please slow down.",
    "ANALYSIS_REASON": "⏰ Generating response...",
    "ANALYSIS_SEARCH": '🔍 Searching the web for "{arg}"...',
    "ANALYSIS_WIKIPEDIA": '🌐 Searching Wikipedia for "{arg}"...',
    "ANALYSIS_IMAGE": '🎨 Generating an image with prompt: "{arg}"...',
    "ANALYSIS_CODE": "💻 Writing code...",
}


def get(key: str, **kwargs: str) -> str:
    """Return the message for ``key``; unknown keys are returned verbatim."""
    text = MESSAGES.get(key, key)
    if kwargs:
        return text.format(**kwargs)
    return text
