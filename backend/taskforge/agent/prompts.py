import json

from jinja2 import BaseLoader, Environment

from taskforge.agent.tool_registry import AgentTool

SYSTEM_PROMPT_TEMPLATE = """\
You are a coding agent working inside the project at {{ project_path }}.
All file paths you use are relative to the project root. You cannot read or
write anything outside it.

## Using tools
To call a tool, reply with exactly one directive:

<tool>TOOL_NAME</tool><params>{"param": "value"}</params>

The parameters must be a single JSON object. Only the first directive in a
reply is executed, so call one tool at a time and wait for its result. The
result comes back in the next message as "Tool result: ...".

When the task is finished, reply with a summary of what you did and no
directive.

## Available tools
{% for tool in tools %}
### {{ tool.name }}
{{ tool.description }}
Parameters: {{ tool.parameters | tojson_compact }}
{% endfor %}
{% if instructions %}
## Task instructions
{{ instructions }}
{% endif %}"""

_env = Environment(loader=BaseLoader(), keep_trailing_newline=True)
_env.filters["tojson_compact"] = lambda value: json.dumps(value, sort_keys=True)


def build_system_prompt(
    project_path: str,
    tools: list[AgentTool],
    instructions: str | None = None,
) -> str:
    """Render the default system prompt describing tools and the call format."""
    template = _env.from_string(SYSTEM_PROMPT_TEMPLATE)
    return template.render(
        project_path=project_path,
        tools=tools,
        instructions=instructions,
    )
