"""Prompt templates for component analysis."""

import json
from typing import Any, Dict, List, Optional

COMPONENT_EXTRACTION_PROMPT = """You are an expert in React component libraries. Analyze the component code
and the related files you are given and extract detailed component information.

Sources to combine:
1. The main component file: implementation, default values, JSDoc comments, behaviour.
2. Props interfaces (usually named "<Component>Props"), interfaces they extend,
   and types exposed through `export type`.
3. Any documentation found among the related files.

Rules:
- Prefer explicit definitions over inference.
- A component is a container (isContainer: true) only when its props declare
  `children` AND the implementation actually renders them, or when it is
  clearly a layout/container component.
- Show prop types as base types (string, number, boolean, string[], object)
  or expanded unions such as 'primary' | 'secondary' | 'danger', never the
  name of a wrapper interface like ButtonVariant.
- Only provide `enum` when the prop really is an enumeration.

Return ONLY a JSON object wrapped in a ```json code block, with exactly these fields:

```json
{
  "name": "ComponentName (unchanged)",
  "displayName": "Human readable name",
  "functions": ["feature 1", "feature 2"],
  "useCases": ["use case 1", "use case 2"],
  "uiFeatures": "Short description of the visual characteristics (under 100 words)",
  "isContainer": false,
  "properties": [
    {
      "name": "propName",
      "description": "What the prop does",
      "type": "string",
      "defaultValue": "default, if any",
      "enum": ["value1", "value2"],
      "required": true
    }
  ]
}
```

Use double quotes for every string and add no text outside the code block.
"""


def build_component_messages(
    code: str, name: str, related: Optional[List[str]] = None, system_prompt: str = "",
) -> List[Dict[str, str]]:
    """Build the chat messages for one component analysis request."""
    user = [f"Component name: {name}", "", "Component code:", "```typescript", code, "```", ""]
    if related:
        user.append("Related files:")
        user.append("\n\n".join(related))
        user.append("")
    user.append("Analyze this component.")
    return [
        {"role": "system", "content": system_prompt or COMPONENT_EXTRACTION_PROMPT},
        {"role": "user", "content": "\n".join(user)},
    ]


LIBRARY_SUMMARY_PROMPT = """You are an expert in front-end component libraries. From the package.json
and README you are given, summarize what the library is.

Return ONLY a JSON object wrapped in a ```json code block, with exactly these fields:

```json
{
  "name": "package name, unchanged from package.json",
  "displayName": "Human readable name of the library",
  "description": "What the library offers (under 200 words)",
  "useCases": ["scenario 1", "scenario 2", "scenario 3"]
}
```

List 3 to 5 concrete use cases.
"""

README_CHAR_LIMIT = 2000


def build_library_messages(package_json: Dict[str, Any], readme: Optional[str] = None) -> List[Dict[str, str]]:
    """Build the chat messages that ask for a library summary."""
    user = ["Package manifest:", "```json", json.dumps(package_json, indent=2, ensure_ascii=False), "```", ""]
    if readme:
        user.extend(["README:", readme[:README_CHAR_LIMIT], ""])
    user.append("Summarize this component library.")
    return [
        {"role": "system", "content": LIBRARY_SUMMARY_PROMPT},
        {"role": "user", "content": "\n".join(user)},
    ]
