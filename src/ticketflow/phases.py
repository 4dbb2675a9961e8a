"""Phase sequence -- the fixed ticket-workflow stages and their rendering.

Phase text is loosely templated: every ``$KEY`` token is replaced with the
supplement value for KEY, or with an empty string when KEY is absent. There
is no check that referenced keys exist.

The sequence has exactly two conditionals:
- Phase 0 (supplement setup) is skipped when the supplement exists.
- Sections tagged with architectures are skipped unless the configured
  ARCHITECTURE names one of them.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from dataclasses import replace as _dc_replace
from typing import TYPE_CHECKING, Any, Protocol

from ticketflow.phases_data import PHASES

if TYPE_CHECKING:
    from ticketflow.questionnaire import Questionnaire
    from ticketflow.supplement import SupplementStore

logger = logging.getLogger(__name__)

# Upper-case only: PHP variables in snippets ($this, $user) must survive.
_VAR_PATTERN = re.compile(r"\$([A-Z][A-Z0-9_]*)")
_ARCH_SPLIT = re.compile(r"[,\s/+]+")

ARCHITECTURE_KEY = "ARCHITECTURE"
SETUP_PHASE = 0


class SupportsGet(Protocol):
    def get(self, key: str, default: str = ..., /) -> str: ...


class WorkflowState(enum.Enum):
    SUPPLEMENT_MISSING = "supplement_missing"
    SUPPLEMENT_PRESENT = "supplement_present"


def render(template: str, supplement: SupportsGet | Mapping[str, str]) -> str:
    """Substitute every ``$IDENTIFIER`` in template; unknown keys become ''."""
    return _VAR_PATTERN.sub(lambda m: supplement.get(m.group(1), ""), template)


def referenced_variables(template: str) -> list[str]:
    """Return the distinct ``$IDENTIFIER`` names in template, in order of first use."""
    return list(dict.fromkeys(_VAR_PATTERN.findall(template)))


def architecture_tokens(value: str) -> frozenset[str]:
    """Split an ARCHITECTURE answer ("hexagonal, cqrs") into lower-case tokens."""
    tokens = {t.lower() for t in _ARCH_SPLIT.split(value or "") if t}
    tokens.discard("none")
    return frozenset(tokens)


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PhaseSection:
    """A sub-section of a phase, optionally limited to some architectures."""

    title: str
    steps: tuple[str, ...]
    architectures: tuple[str, ...] = ()

    def applies_to(self, architectures: frozenset[str]) -> bool:
        # Unconfigured architecture keeps everything
        if not self.architectures or not architectures:
            return True
        return any(a in architectures for a in self.architectures)


@dataclass(frozen=True)
class Phase:
    """One named stage of the workflow."""

    number: int
    name: str
    title: str
    summary: str
    steps: tuple[str, ...]
    sections: tuple[PhaseSection, ...] = ()


@dataclass(frozen=True)
class RenderedSection:
    title: str
    steps: tuple[str, ...]


@dataclass(frozen=True)
class RenderedPhase:
    """A phase with all placeholders substituted."""

    number: int
    name: str
    title: str
    summary: str
    steps: tuple[str, ...]
    sections: tuple[RenderedSection, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "title": self.title,
            "summary": self.summary,
            "steps": list(self.steps),
            "sections": [{"title": s.title, "steps": list(s.steps)} for s in self.sections],
        }

    def to_markdown(self) -> str:
        lines = [f"## Phase {self.number}: {self.title}", "", self.summary, ""]
        lines.extend(f"- {step}" for step in self.steps)
        for section in self.sections:
            lines.extend(["", f"### {section.title}", ""])
            lines.extend(f"- {step}" for step in section.steps)
        return "\n".join(lines) + "\n"


def parse_phase(data: Mapping[str, Any]) -> Phase:
    sections = tuple(
        PhaseSection(
            title=s["title"],
            steps=tuple(s.get("steps", ())),
            architectures=tuple(a.lower() for a in s.get("architectures", ())),
        )
        for s in data.get("sections", ())
    )
    return Phase(
        number=int(data["number"]),
        name=data["name"],
        title=data["title"],
        summary=data.get("summary", ""),
        steps=tuple(data.get("steps", ())),
        sections=sections,
    )


def load_phases(data: Sequence[Mapping[str, Any]] | None = None) -> tuple[Phase, ...]:
    """Parse phase definitions; numbers must run 0..N in order."""
    phases = tuple(parse_phase(entry) for entry in (PHASES if data is None else data))
    for expected, phase in enumerate(phases):
        if phase.number != expected:
            msg = f"Phase '{phase.name}' has number {phase.number}, expected {expected}"
            raise ValueError(msg)
    names = [p.name for p in phases]
    if len(set(names)) != len(names):
        msg = f"Duplicate phase names in {names}"
        raise ValueError(msg)
    return phases


_BUILTIN_PHASES = load_phases()


def get_phase(number: int, phases: Sequence[Phase] | None = None) -> Phase:
    """Return the phase with the given number. Raises KeyError if unknown."""
    for phase in phases if phases is not None else _BUILTIN_PHASES:
        if phase.number == number:
            return phase
    raise KeyError(number)


# ---------------------------------------------------------------------------
# State and sequencing
# ---------------------------------------------------------------------------


def resolve_state(supplement: Mapping[str, str] | None) -> WorkflowState:
    """``None`` (store absent) means the questionnaire has not run."""
    if supplement is None:
        return WorkflowState.SUPPLEMENT_MISSING
    return WorkflowState.SUPPLEMENT_PRESENT


def plan_phases(
    state: WorkflowState,
    supplement: Mapping[str, str] | None = None,
    phases: Sequence[Phase] | None = None,
) -> list[Phase]:
    """Return the phases that apply, with inapplicable sections removed."""
    return [
        select_sections(phase, supplement)
        for phase in (phases if phases is not None else _BUILTIN_PHASES)
        if not (phase.number == SETUP_PHASE and state is WorkflowState.SUPPLEMENT_PRESENT)
    ]


def select_sections(phase: Phase, supplement: Mapping[str, str] | None) -> Phase:
    """Drop the sections of phase that do not apply to the configured ARCHITECTURE."""
    architectures = architecture_tokens((supplement or {}).get(ARCHITECTURE_KEY, ""))
    kept = tuple(s for s in phase.sections if s.applies_to(architectures))
    if len(kept) == len(phase.sections):
        return phase
    logger.debug("Phase %d: kept %d of %d sections", phase.number, len(kept), len(phase.sections))
    return _dc_replace(phase, sections=kept)


def _overlay(supplement: Mapping[str, str] | None, extra: Mapping[str, str] | None) -> dict[str, str]:
    variables = dict(supplement or {})
    variables.update(extra or {})
    return variables


def render_phase(
    phase: Phase,
    supplement: Mapping[str, str] | None,
    *,
    extra: Mapping[str, str] | None = None,
) -> RenderedPhase:
    """Render one phase. ``extra`` (e.g. TICKET_ID) overlays the supplement."""
    variables = _overlay(supplement, extra)
    return RenderedPhase(
        number=phase.number,
        name=phase.name,
        title=render(phase.title, variables),
        summary=render(phase.summary, variables),
        steps=tuple(render(s, variables) for s in phase.steps),
        sections=tuple(
            RenderedSection(title=render(s.title, variables), steps=tuple(render(x, variables) for x in s.steps))
            for s in phase.sections
        ),
    )


def render_phases(
    supplement: Mapping[str, str] | None,
    *,
    extra: Mapping[str, str] | None = None,
    phases: Sequence[Phase] | None = None,
) -> list[RenderedPhase]:
    """Render every applicable phase for the given supplement state."""
    state = resolve_state(supplement)
    return [render_phase(p, supplement, extra=extra) for p in plan_phases(state, supplement, phases)]


@dataclass(frozen=True)
class WorkflowRun:
    """Outcome of ``start_workflow``: the state it started in and the rendered phases."""

    initial_state: WorkflowState
    state: WorkflowState
    supplement: dict[str, str]
    phases: tuple[RenderedPhase, ...]


def start_workflow(
    store: SupplementStore,
    questionnaire: Questionnaire | None = None,
    *,
    extra: Mapping[str, str] | None = None,
) -> WorkflowRun:
    """Run the two-state workflow machine.

    SUPPLEMENT_MISSING runs the questionnaire (which saves the store) and
    moves to SUPPLEMENT_PRESENT; SUPPLEMENT_PRESENT renders the phase list.
    Raises LookupError when the supplement is missing and no questionnaire
    was given.
    """
    supplement = store.load()
    initial = resolve_state(supplement)
    if initial is WorkflowState.SUPPLEMENT_MISSING:
        if questionnaire is None:
            msg = f"Supplement not configured at {store.path}"
            raise LookupError(msg)
        supplement = questionnaire.run_all().answers
        logger.info("Supplement created at %s; workflow state now present", store.path)
    rendered = render_phases(supplement, extra=extra)
    return WorkflowRun(
        initial_state=initial,
        state=WorkflowState.SUPPLEMENT_PRESENT,
        supplement=dict(supplement),
        phases=tuple(rendered),
    )
