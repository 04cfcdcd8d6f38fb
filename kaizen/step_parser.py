from __future__ import annotations

from kaizen.constants import DEFAULT_CONTEXT
from kaizen.errors import InvalidStep
from kaizen.models import StepTemplate


def parse_steps(text: str) -> list[StepTemplate]:
    """Parse one step per line: ``name | lead_days | context | HH:MM``.

    Context and time are optional. Blank lines and lines starting with ``#``
    are skipped. Lines are returned in the order written, which is the
    chronological order of the steps.
    """
    steps: list[StepTemplate] = []
    for lineno, line in enumerate((text or "").splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        parts = [p.strip() for p in line.split("|")]
        if len(parts) < 2 or len(parts) > 4:
            raise InvalidStep(f"line {lineno}: expected 'name | lead_days [| context [| HH:MM]]'")

        name, lead_raw = parts[0], parts[1]
        try:
            lead_days = int(lead_raw)
        except ValueError as e:
            raise InvalidStep(f"line {lineno}: lead days must be an integer, got {lead_raw!r}") from e

        context = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_CONTEXT
        time = parts[3] if len(parts) > 3 and parts[3] else None
        steps.append(StepTemplate(name=name, lead_days=lead_days, context=context, time=time))

    return steps


def steps_from_records(records: list[dict]) -> list[StepTemplate]:
    """Build steps from form records (``name``, ``lead_days``, ``context``, ``time``)."""
    steps: list[StepTemplate] = []
    for i, rec in enumerate(records, start=1):
        lead_raw = rec.get("lead_days", 0)
        try:
            lead_days = int(lead_raw)
        except (TypeError, ValueError) as e:
            raise InvalidStep(f"step {i}: lead days must be an integer, got {lead_raw!r}") from e
        if isinstance(lead_raw, float) and not lead_raw.is_integer():
            raise InvalidStep(f"step {i}: lead days must be an integer, got {lead_raw!r}")
        time = str(rec.get("time") or "").strip()
        steps.append(
            StepTemplate(
                name=str(rec.get("name") or "").strip(),
                lead_days=lead_days,
                context=str(rec.get("context") or "").strip() or DEFAULT_CONTEXT,
                time=time or None,
            )
        )
    return steps
