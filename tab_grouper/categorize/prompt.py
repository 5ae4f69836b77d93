"""Prompt text sent to the categorizer."""

from __future__ import annotations

from tab_grouper.tabs.models import TabSnapshot

_INSTRUCTIONS = """\
You organize browser tabs into groups based on the task the user is most
likely doing with them.

Sort the {count} tabs below into 4-8 groups. Group names must be short
(2-3 words), specific and task-oriented, and unique. Put every tab in exactly
one group and do not skip any tab. Order groups from entertainment, to
interests, to active tasks, to administration.

You may think out loud first. Finish with your final grouping as a JSON
object whose keys are group names and whose values are arrays of 0-based tab
indices, wrapped in a ```json fenced block:

```json
{{
  "Specific Task Group 1": [0, 2, 4],
  "Specific Task Group 2": [1, 3, 5]
}}
```

The grouping must contain all {count} tabs, numbered 0-{last}, each once.

Tabs:
{tab_lines}
"""


def format_tab_line(index: int, title: str, url: str, parent_title: str | None) -> str:
    return f"{index}. {title} - {url} (Parent: {parent_title or 'None'})"


def build_prompt(snapshot: TabSnapshot) -> str:
    """Render the numbered tab list into the categorization prompt."""
    lines = [
        format_tab_line(entry.index, entry.tab.title, entry.tab.url, entry.parent_title)
        for entry in snapshot
    ]
    return _INSTRUCTIONS.format(
        count=len(snapshot),
        last=max(len(snapshot) - 1, 0),
        tab_lines="\n".join(lines),
    )
