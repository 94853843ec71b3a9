"""Keyword-based resume scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rapidfuzz import fuzz

from ..schemas import JobRequirements, MatchCategory
from .analytics import categorize


@dataclass(slots=True)
class MatchResult:
    """Outcome of scoring one resume against one requirement set."""

    match_percentage: float
    skills_matched: list[str]
    skills_missing: list[str]
    strengths: list[str] = field(default_factory=list)
    improvement_areas: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class ScorerConfig:
    """Configuration for keyword matching."""

    min_similarity: float = 85.0
    nice_to_have_bonus: float = 20.0


class KeywordScorer:
    """Score keyword coverage of a job's skills within resume text.

    Holds no mutable state, so one instance is shared by every worker.
    """

    method = "keyword"

    def __init__(self, *, config: ScorerConfig | None = None) -> None:
        self._config = config or ScorerConfig()

    def score(self, resume_text: str, requirements: JobRequirements) -> MatchResult:
        corpus = self._build_corpus(resume_text)
        required = self._dedupe(requirements.required_skills)
        required_keys = {skill.lower() for skill in required}
        nice_to_have = [
            skill
            for skill in self._dedupe(requirements.nice_to_have_skills)
            if skill.lower() not in required_keys
        ]

        matched = self._match_keywords(corpus, required)
        matched_keys = {skill.lower() for skill in matched}
        missing = [skill for skill in required if skill.lower() not in matched_keys]
        bonus_hits = self._match_keywords(corpus, nice_to_have)

        required_coverage = self._coverage_ratio(required, matched)
        nice_coverage = len(bonus_hits) / len(nice_to_have) if nice_to_have else 0.0
        percentage = required_coverage * 100.0 + nice_coverage * self._config.nice_to_have_bonus
        percentage = round(min(max(percentage, 0.0), 100.0), 2)

        return MatchResult(
            match_percentage=percentage,
            skills_matched=matched,
            skills_missing=missing,
            strengths=self._strengths(required, matched, bonus_hits),
            improvement_areas=[f"Missing required skill: {skill}" for skill in missing],
            recommendations=self._recommendations(percentage, missing),
        )

    @staticmethod
    def _build_corpus(resume_text: str) -> list[str]:
        return [line.strip().lower() for line in resume_text.splitlines() if line.strip()]

    @staticmethod
    def _dedupe(skills: Iterable[str]) -> list[str]:
        seen: set[str] = set()
        unique: list[str] = []
        for skill in skills:
            cleaned = skill.strip()
            if not cleaned or cleaned.lower() in seen:
                continue
            seen.add(cleaned.lower())
            unique.append(cleaned)
        return unique

    def _match_keywords(
        self,
        corpus: Sequence[str],
        keywords: Sequence[str],
    ) -> list[str]:
        matches: list[str] = []
        for keyword in keywords:
            keyword_lower = keyword.lower()
            for text in corpus:
                if keyword_lower in text:
                    matches.append(keyword)
                    break
                if fuzz.token_set_ratio(keyword_lower, text) >= self._config.min_similarity:
                    matches.append(keyword)
                    break
        return matches

    @staticmethod
    def _coverage_ratio(keywords: Sequence[str], hits: Sequence[str]) -> float:
        if not keywords:
            return 1.0
        return len(hits) / len(keywords)

    @staticmethod
    def _strengths(
        required: Sequence[str],
        matched: Sequence[str],
        bonus_hits: Sequence[str],
    ) -> list[str]:
        strengths: list[str] = []
        if required and len(matched) == len(required):
            strengths.append(f"Covers all {len(required)} required skills")
        elif matched:
            strengths.append(f"Matches {len(matched)} of {len(required)} required skills")
        strengths.extend(f"Bonus skill: {skill}" for skill in bonus_hits)
        return strengths

    @staticmethod
    def _recommendations(percentage: float, missing: Sequence[str]) -> list[str]:
        category = categorize(percentage)
        if category is MatchCategory.STRONG:
            recommendations = ["Advance to interview"]
        elif category is MatchCategory.MODERATE:
            recommendations = ["Review manually before deciding"]
        else:
            recommendations = ["Not a fit for the current requirements"]
        if missing and category is not MatchCategory.WEAK:
            recommendations.append(f"Probe during screening call: {', '.join(missing[:3])}")
        return recommendations
