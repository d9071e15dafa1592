"""Reimbursement suggestions from contract terms and user notes.

Contracts are evaluated in the order given (callers pass them most recent
first); within a contract the rules below are tried in order and the first
match wins:

1. The user's notes mention the category (or a synonym) together with a
   positive phrase -> reimbursable, medium confidence.
2. The notes mention materials/tools together with a positive phrase and the
   category is material-like -> reimbursable, medium confidence.
3. The category matches a reimbursable term -> reimbursable, high confidence.
4. The notes are empty and the category matches a non-reimbursable term ->
   not reimbursable, high confidence.

If no contract matched, a low-confidence "verify manually" suggestion is
returned. Without any analyzed contract there is no suggestion at all.

All comparisons use :func:`~finance_insights.vendors.normalize_text`, so
they ignore case and diacritics; term matching is a bidirectional substring
test.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .logging_setup import get_logger
from .models import ContractTerms, ReimbursementSuggestion, SuggestionConfidence
from .settings import TermTables, default_term_tables
from .vendors import normalize_text

_logger = get_logger("finance_insights.reimbursement")


def terms_match(variants: Iterable[str], terms: Iterable[str]) -> str | None:
    """Return the first term that contains, or is contained in, any variant."""

    normalized_variants = [v for v in (normalize_text(x) for x in variants) if v]
    for term in terms:
        t = normalize_text(term)
        if not t:
            continue
        if any(v in t or t in v for v in normalized_variants):
            return term
    return None


def _mentions_any(text: str, phrases: Iterable[str]) -> bool:
    return any(p and p in text for p in (normalize_text(x) for x in phrases))


def _has_analysis(contract: ContractTerms) -> bool:
    return bool(
        contract.reimbursable_categories or contract.non_reimbursable or contract.user_notes.strip()
    )


def _match_contract(
    category: str, contract: ContractTerms, tables: TermTables
) -> ReimbursementSuggestion | None:
    variants = tables.synonyms_for(category)
    notes = normalize_text(contract.user_notes)

    if notes:
        positive = _mentions_any(notes, tables.positive_phrases)
        if positive and _mentions_any(notes, variants):
            return ReimbursementSuggestion(
                is_reimbursable=True,
                confidence=SuggestionConfidence.MEDIUM,
                matched_term=category,
                source_ref=contract.source_ref,
            )
        if (
            positive
            and category in tables.material_categories
            and _mentions_any(notes, tables.material_terms)
        ):
            return ReimbursementSuggestion(
                is_reimbursable=True,
                confidence=SuggestionConfidence.MEDIUM,
                matched_term=tables.materials_label,
                source_ref=contract.source_ref,
            )

    # Sorted so frozenset iteration order cannot change which term is reported.
    matched = terms_match(variants, sorted(contract.reimbursable_categories))
    if matched is not None:
        return ReimbursementSuggestion(
            is_reimbursable=True,
            confidence=SuggestionConfidence.HIGH,
            matched_term=matched,
            source_ref=contract.source_ref,
        )

    if not notes:
        matched = terms_match(variants, sorted(contract.non_reimbursable))
        if matched is not None:
            return ReimbursementSuggestion(
                is_reimbursable=False,
                confidence=SuggestionConfidence.HIGH,
                matched_term=matched,
                source_ref=contract.source_ref,
                deduction_percent=tables.deduction_percent.get(category),
            )
    return None


def suggest_reimbursement(
    category: str | None,
    contracts: Sequence[ContractTerms],
    tables: TermTables | None = None,
) -> ReimbursementSuggestion | None:
    """Suggest whether an expense in ``category`` is reimbursable by the client.

    ``contracts`` are the client's contracts, most recent first. Contracts
    with no extracted terms and no notes are ignored.
    """

    if not category:
        return None
    t = tables or default_term_tables()
    key = category.strip().lower()

    analyzed = [c for c in contracts if _has_analysis(c)]
    if not analyzed:
        return None

    for contract in analyzed:
        suggestion = _match_contract(key, contract, t)
        if suggestion is not None:
            _logger.debug(
                "Category %r matched %r in contract %r", key, suggestion.matched_term, contract.source_ref
            )
            return suggestion

    return ReimbursementSuggestion(
        is_reimbursable=False,
        confidence=SuggestionConfidence.LOW,
        source_ref=analyzed[0].source_ref,
        deduction_percent=t.deduction_percent.get(key),
    )


__all__ = ["suggest_reimbursement", "terms_match"]
