"""Weather tool: placeholder city weather lookup."""

from agentbox.tools.models import ToolParameter, ToolSpec

WEATHER_SPEC = ToolSpec(
    name="weather",
    description="Get Weather in a specific city",
    parameters=[
        ToolParameter(
            name="query",
            type="string",
            description="The query to use in your search.",
        ),
    ],
)


def lookup_weather(query: str) -> str:
    """Return canned conditions for the queried city."""
    if "san francisco" in query.lower():
        return "It's 60 degrees and foggy."
    return "It's 90 degrees and sunny."
