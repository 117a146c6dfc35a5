"""Course detection and the organizational-question gate.

Pure business logic: receives a CourseIndex and free text, no I/O.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coursecontext.models.index import CourseIndex

# Heuristic trigger, not a classifier. German and English markers for
# questions whose answer depends on a specific course's organization.
_COURSE_CONTEXT_PATTERN = re.compile(
    r"""
    prüfung | klausur | exam | midterm | final | test\b | quiz
    | deadline | frist | abgabe | einreich | submission | due\b
    | anmeld | abmeld | regist | enrol | u:space
    | note\b | noten | benotung | bewertung | beurteilung | grade | grading | punkte | points
    | anwesenheit | attendance | fehlstunde | absence | absent | anwesend
    | raum | hörsaal | hs\s?\d | room | lecture\s?hall | location | wo\s+findet
    | datum | termin | wann | uhrzeit | zeitpunkt | date | when | time\b | schedule
    | heute | morgen | nächste\s+woche | today | tomorrow | next\s+week
    """,
    re.IGNORECASE | re.VERBOSE,
)


def normalise_text(raw: str) -> str:
    return raw.lower()


def course_aliases(name: str, aliases: list[str]) -> list[str]:
    """Return the lowercased, non-empty alias set of a course, name first."""
    terms: list[str] = []
    for term in [name, *aliases]:
        term = term.strip().lower()
        if term and term not in terms:
            terms.append(term)
    return terms


def _contains_term(text: str, term: str) -> bool:
    # Substring match that does not start or end inside a word, so a short
    # alias such as "ba" does not match inside "Bachelor".
    return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None


def detect_course(index: CourseIndex, text: str) -> str | None:
    """Return the name of the first course in index order mentioned in ``text``.

    First match wins: no scoring and no longest-match preference. When two
    courses match, the one listed first in the index document is returned.
    """
    normalised = normalise_text(text)
    if not normalised:
        return None

    for name, meta in index.courses.items():
        for term in course_aliases(name, meta.aliases):
            if _contains_term(normalised, term):
                return name
    return None


def needs_course_context(text: str) -> bool:
    """True when ``text`` looks like an organizational, course-dependent question."""
    return _COURSE_CONTEXT_PATTERN.search(text) is not None
