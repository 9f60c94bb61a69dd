"""Markdown rendering of an escalation into the Jira comment body."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined

_ESCALATION_TEMPLATE = """\
## Escalation: {{ ticket_id }}

{% if template_name %}
**Category:** {{ template_name }}{{ " | **L2 Team:** " ~ l2_team if l2_team else "" }}

{% endif %}
### Problem Summary

{{ problem_summary or "_Not provided_" }}

{% if checklist %}
### Troubleshooting Checklist

{% for item in checklist %}
- [{{ "x" if item.checked else " " }}] {{ item.text }}
{% endfor %}

{% endif %}
### Current Status

{{ current_status or "_Not provided_" }}

### Next Steps

{{ next_steps or "_Not provided_" }}
{% if llm_summary %}

### AI Summary{{ " (confidence: " ~ llm_confidence ~ ")" if llm_confidence else "" }}

{{ llm_summary }}
{% endif %}
"""

_env = Environment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
_template = _env.from_string(_ESCALATION_TEMPLATE)


def _item(entry: Any) -> dict:
    if isinstance(entry, dict):
        return {"text": entry.get("text", ""), "checked": bool(entry.get("checked", False))}
    return {"text": entry.text, "checked": bool(entry.checked)}


def render_markdown(
    *,
    ticket_id: str,
    problem_summary: str = "",
    checklist: list | tuple = (),
    current_status: str = "",
    next_steps: str = "",
    llm_summary: str | None = None,
    llm_confidence: str | None = None,
    template_name: str | None = None,
    l2_team: str | None = None,
) -> str:
    """Render escalation fields to markdown. Pure and deterministic."""
    text = _template.render(
        ticket_id=ticket_id,
        problem_summary=problem_summary.strip(),
        checklist=[_item(entry) for entry in checklist],
        current_status=current_status.strip(),
        next_steps=next_steps.strip(),
        llm_summary=(llm_summary or "").strip(),
        llm_confidence=llm_confidence,
        template_name=template_name,
        l2_team=l2_team,
    )
    return text.strip() + "\n"


def render_escalation(escalation: Any) -> str:
    """Render any object exposing the escalation field names."""
    return render_markdown(
        ticket_id=escalation.ticket_id,
        problem_summary=escalation.problem_summary or "",
        checklist=escalation.checklist or (),
        current_status=escalation.current_status or "",
        next_steps=escalation.next_steps or "",
        llm_summary=escalation.llm_summary,
        llm_confidence=escalation.llm_confidence,
        template_name=getattr(escalation, "template_name", None),
        l2_team=getattr(escalation, "l2_team", None),
    )
