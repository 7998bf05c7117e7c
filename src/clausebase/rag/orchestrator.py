"""Retrieval-augmented query orchestrator.

answer():
  1. Ensure the knowledge base is initialized (idempotent).
  2. Embed the query through the embedding cache.
  3. Retrieve the top-k chunks, filtered on metadata when asked.
  4. Assemble the context-augmented prompt (chunks in retrieval order).
  5. Delegate to the completion service; return its text verbatim.

analyze_contract() runs the same loop with two retrieval strategies
(excerpts of the target contract, snippets of similar contracts) and parses
the model's JSON reply into a ContractAnalysis.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from clausebase.errors import AnalysisFailed
from clausebase.knowledge_base import KnowledgeBase
from clausebase.models import ScoredChunk
from clausebase.rag.llm_client import CompleteFn
from clausebase.rag.prompts import (
    build_analysis_prompt,
    build_answer_prompt,
    format_similar_context,
    format_target_context,
)

logger = logging.getLogger(__name__)

_SIMILARITY_PREFIX_CHARS = 1000
_RISK_LEVELS = frozenset(["low", "medium", "high", "unknown"])


@dataclass
class AnalysisOptions:
    """Retrieval options for ``analyze_contract``.

    Attributes:
        target_contract_id: ``contractId`` metadata of the contract under analysis;
            enables retrieval of its own most relevant excerpts.
        retrieve_similar_context: Whether to add snippets from similar documents.
        max_chunks_from_target: Excerpts taken from the target contract.
        max_similar_docs: Snippets taken from similar documents.
    """

    target_contract_id: str | None = None
    retrieve_similar_context: bool = True
    max_chunks_from_target: int = 3
    max_similar_docs: int = 2


@dataclass
class Party:
    name: str
    role: str = ""


@dataclass
class KeyDates:
    effective_date: str | None = None
    expiration_date: str | None = None
    renewal_date: str | None = None


@dataclass
class Risk:
    level: str
    description: str
    mitigation: str | None = None


@dataclass
class Obligation:
    description: str
    responsible_party: str = ""
    due_date: str | None = None


@dataclass
class ContractAnalysis:
    executive_summary: str
    document_type: str = "Not Specified"
    parties: list[Party] = field(default_factory=list)
    key_dates: KeyDates = field(default_factory=KeyDates)
    risks: list[Risk] = field(default_factory=list)
    obligations: list[Obligation] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


class RagOrchestrator:
    """Answer questions over a KnowledgeBase with an external completion service.

    Args:
        knowledge_base: The caller-owned knowledge base.
        complete_fn: ``async (prompt) -> CompletionResult`` completion service.
        default_k: Chunks retrieved when ``answer`` is called without ``k``.
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        complete_fn: CompleteFn,
        default_k: int = 3,
    ) -> None:
        self.kb = knowledge_base
        self._complete_fn = complete_fn
        self.default_k = default_k

    async def retrieve(
        self,
        query: str,
        k: int | None = None,
        filter: Mapping[str, Any] | None = None,
    ) -> list[ScoredChunk]:
        """Embed *query* and return the top-k scored chunks, best first."""
        await self.kb.initialize()
        query_vector = await self.kb.cache.embed(query)
        results = self.kb.index.search_scored(
            query_vector, self.default_k if k is None else k, filter
        )
        logger.debug("Retrieved %d chunks (filter=%s)", len(results), dict(filter or {}))
        return results

    async def answer(
        self,
        query: str,
        k: int | None = None,
        filter: Mapping[str, Any] | None = None,
        document_text: str | None = None,
    ) -> str:
        """Retrieve context for *query* and return the completion text verbatim.

        Raises:
            EmbeddingUnavailable: If the query could not be embedded.
            AnalysisFailed: If the completion service fails.
        """
        scored = await self.retrieve(query, k, filter)
        prompt = build_answer_prompt(query, [sc.chunk for sc in scored], document_text)
        return await self._complete(prompt)

    async def analyze_contract(
        self,
        contract_text: str,
        user_query: str,
        options: AnalysisOptions | None = None,
    ) -> ContractAnalysis:
        """Produce a structured analysis of *contract_text* focused on *user_query*.

        Raises:
            EmbeddingUnavailable: If a retrieval query could not be embedded.
            AnalysisFailed: If the completion fails or its reply is not valid JSON.
        """
        opts = options or AnalysisOptions()
        await self.kb.initialize()

        target_context = ""
        if opts.target_contract_id and user_query:
            target = await self.retrieve(
                user_query,
                opts.max_chunks_from_target,
                {"contractId": opts.target_contract_id},
            )
            target_context = format_target_context(
                opts.target_contract_id, [sc.chunk for sc in target]
            )

        similar_context = ""
        if opts.retrieve_similar_context:
            similarity_query = f"{user_query}\n\n{contract_text[:_SIMILARITY_PREFIX_CHARS]}"
            similar = await self.retrieve(similarity_query, opts.max_similar_docs)
            similar_context = format_similar_context([sc.chunk for sc in similar])

        prompt = build_analysis_prompt(contract_text, user_query, target_context, similar_context)
        raw = await self._complete(prompt)
        return parse_analysis(raw)

    async def _complete(self, prompt: str) -> str:
        try:
            result = await self._complete_fn(prompt)
        except Exception as exc:
            logger.warning("Completion service raised: %s", exc)
            raise AnalysisFailed(str(exc)) from exc

        if not result.success or result.text is None:
            message = result.error or "Completion service returned no text."
            logger.warning("Completion failed: %s", message)
            raise AnalysisFailed(message)
        return result.text


# ------------------------------------------------------------------
# JSON reply parsing
# ------------------------------------------------------------------


def parse_analysis(raw: str) -> ContractAnalysis:
    """Parse the model's JSON reply into a ContractAnalysis.

    Tolerates prose or code fences around the object.

    Raises:
        AnalysisFailed: If no JSON object can be parsed or ``executiveSummary`` is missing.
    """
    try:
        start = raw.index("{")
        end = raw.rindex("}") + 1
        data = json.loads(raw[start:end])
    except (ValueError, json.JSONDecodeError) as exc:
        raise AnalysisFailed(f"Completion did not return valid JSON: {exc}") from exc

    if not isinstance(data, dict) or not data.get("executiveSummary"):
        raise AnalysisFailed("Completion JSON is missing 'executiveSummary'.")

    dates = data.get("keyDates")
    if not isinstance(dates, dict):
        dates = {}
    return ContractAnalysis(
        executive_summary=str(data["executiveSummary"]),
        document_type=str(data.get("documentType") or "Not Specified"),
        parties=[
            Party(name=str(p.get("name", "")), role=str(p.get("role") or ""))
            for p in _dicts(data.get("partiesInvolved"))
        ],
        key_dates=KeyDates(
            effective_date=_opt_str(dates.get("effectiveDate")),
            expiration_date=_opt_str(dates.get("expirationDate")),
            renewal_date=_opt_str(dates.get("renewalDate")),
        ),
        risks=[
            Risk(
                level=_risk_level(r.get("level")),
                description=str(r.get("description", "")),
                mitigation=_opt_str(r.get("mitigation")),
            )
            for r in _dicts(data.get("identifiedRisks"))
        ],
        obligations=[
            Obligation(
                description=str(o.get("description", "")),
                responsible_party=str(o.get("responsibleParty") or ""),
                due_date=_opt_str(o.get("dueDate")),
            )
            for o in _dicts(data.get("keyObligations"))
        ],
        recommendations=_strings(data.get("recommendations")),
    )


def _dicts(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _risk_level(value: Any) -> str:
    level = str(value or "").lower()
    return level if level in _RISK_LEVELS else "unknown"


def _strings(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item and not isinstance(item, (dict, list))]
