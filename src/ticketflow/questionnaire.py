"""Questionnaire driver -- populates the supplement on first use.

Questions are asked strictly in order; a follow-up (``ask_if``) is only asked
when an earlier answer matches. Answers are only written once every
applicable question has been answered. An interrupted run saves nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click

from ticketflow.questions_data import QUESTIONS
from ticketflow.supplement import KEY_PATTERN, SupplementStore

logger = logging.getLogger(__name__)

NONE_TOKEN = "none"
MAX_ATTEMPTS = 3


PromptFn = Callable[[str], str]
EchoFn = Callable[[str], None]


@dataclass(frozen=True)
class Condition:
    """Ask a question only when an earlier answer equals a value."""

    key: str
    equals: str

    def matches(self, answers: Mapping[str, str]) -> bool:
        return answers.get(self.key, "").lower() == self.equals.lower()


@dataclass(frozen=True)
class Question:
    """A single questionnaire entry writing one supplement key."""

    key: str
    section: str
    prompt: str
    options: tuple[str, ...] = ()
    help: str = ""
    ask_if: Condition | None = None
    allow_none: bool = False

    def __post_init__(self) -> None:
        if not KEY_PATTERN.match(self.key):
            msg = f"Invalid question key '{self.key}': must match ^[A-Z][A-Z0-9_]*$"
            raise ValueError(msg)

    def applies(self, answers: Mapping[str, str]) -> bool:
        return self.ask_if is None or self.ask_if.matches(answers)

    def resolve(self, raw: str) -> str | None:
        """Normalize a raw answer. Returns None when it must be asked again.

        A number picks the matching listed option; anything else is kept
        verbatim (stripped). The ``none`` token is only accepted where allowed.
        """
        answer = raw.strip()
        if not answer:
            return None
        if self.options and answer.isdigit():
            idx = int(answer)
            if 1 <= idx <= len(self.options):
                return self.options[idx - 1]
        if answer.lower() == NONE_TOKEN:
            return NONE_TOKEN if self.allow_none else None
        return answer

    def render_prompt(self) -> str:
        lines = [f"[{self.section}] {self.prompt}" if self.section else self.prompt]
        if self.help:
            lines.append(f"  ({self.help})")
        for i, opt in enumerate(self.options, start=1):
            lines.append(f"  {i}) {opt}")
        if self.allow_none:
            lines.append(f"  Type '{NONE_TOKEN}' if this does not apply.")
        return "\n".join(lines)


def parse_question(data: Mapping[str, Any]) -> Question:
    """Build a Question from its data-dict form."""
    ask_if = data.get("ask_if")
    return Question(
        key=data["key"],
        section=data.get("section", ""),
        prompt=data["prompt"],
        options=tuple(data.get("options", ())),
        help=data.get("help", ""),
        ask_if=Condition(key=ask_if["key"], equals=ask_if["equals"]) if ask_if else None,
        allow_none=bool(data.get("allow_none", False)),
    )


def load_questions(data: Sequence[Mapping[str, Any]] | None = None) -> tuple[Question, ...]:
    """Parse and validate an ordered question list (default: built-ins)."""
    questions: list[Question] = []
    seen: set[str] = set()
    for entry in QUESTIONS if data is None else data:
        q = parse_question(entry)
        if q.key in seen:
            msg = f"Duplicate question key '{q.key}'"
            raise ValueError(msg)
        if q.ask_if is not None and q.ask_if.key not in seen:
            msg = f"Question '{q.key}' depends on '{q.ask_if.key}', which is not asked before it"
            raise ValueError(msg)
        seen.add(q.key)
        questions.append(q)
    return tuple(questions)


class QuestionnaireAborted(Exception):
    """Raised when the questionnaire stops before every question is answered."""

    def __init__(self, reason: str, *, key: str | None = None) -> None:
        self.reason = reason
        self.key = key
        super().__init__(reason)


@dataclass
class QuestionnaireResult:
    """Answers written by a completed run and where they were written."""

    answers: dict[str, str]
    path: Path
    skipped: list[str] = field(default_factory=list)


def _click_prompt(text: str) -> str:
    value: str = click.prompt(text, default="", show_default=False)
    return value


class Questionnaire:
    """Walks the question list, one blocking prompt at a time."""

    def __init__(
        self,
        store: SupplementStore,
        questions: Sequence[Question] | None = None,
        *,
        prompt: PromptFn | None = None,
        echo: EchoFn | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.store = store
        self.questions = tuple(questions) if questions is not None else load_questions()
        self._prompt = prompt or _click_prompt
        self._echo = echo or click.echo
        self.max_attempts = max_attempts

    @property
    def sections(self) -> dict[str, str]:
        """Key -> section heading, used to group the saved file."""
        return {q.key: q.section for q in self.questions if q.section}

    def ask(self, question: Question) -> str:
        """Present one question and block until a usable answer arrives."""
        self._echo("")
        self._echo(question.render_prompt())
        for attempt in range(1, self.max_attempts + 1):
            answer = question.resolve(self._prompt("Answer"))
            if answer is not None:
                return answer
            if attempt < self.max_attempts:
                hint = f" or '{NONE_TOKEN}'" if question.allow_none else ""
                self._echo(f"An answer is required{hint}.")
        msg = f"No answer for {question.key} after {self.max_attempts} attempts"
        raise QuestionnaireAborted(msg, key=question.key)

    def run_all(self) -> QuestionnaireResult:
        """Ask every applicable question, then save the supplement.

        Raises QuestionnaireAborted on interruption or repeated empty answers;
        in that case nothing is written.
        """
        answers: dict[str, str] = {}
        skipped: list[str] = []
        current: Question | None = None
        try:
            for current in self.questions:
                if not current.applies(answers):
                    skipped.append(current.key)
                    continue
                answers[current.key] = self.ask(current)
        except (KeyboardInterrupt, EOFError, click.Abort) as exc:
            key = current.key if current else None
            logger.info("Questionnaire interrupted at %s; discarding %d answers", key, len(answers))
            raise QuestionnaireAborted("Questionnaire interrupted", key=key) from exc

        self.store.save(answers, groups=self.sections)
        logger.info("Questionnaire complete: %d answers, %d skipped", len(answers), len(skipped))
        return QuestionnaireResult(answers=answers, path=self.store.path, skipped=skipped)
