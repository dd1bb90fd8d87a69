"""
Gradient Evaluator — records progress and decides continue vs. terminate.

Decision rules, applied as successive overrides (later wins):
  1. insignificant step  -> TERMINATE (stuck if the previous step was also
                            insignificant, otherwise converged)
  2. significant step    -> CONTINUE (running)
  3. check slot has PASS -> TERMINATE (success)
  4. iteration ceiling   -> TERMINATE (limit_reached)

Terminal statuses are not absorbing: a later evaluation may move the tuple
back to running.
"""

from __future__ import annotations

import logging

from .models import GradientEntry, GradientReport, GradientVerdict, TupleStatus
from .router import has_pass_marker
from .store import TupleStore

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 20
STAGNATION_WINDOW = 2


class GradientEvaluator:
    def __init__(self, store: TupleStore, max_iterations: int = MAX_ITERATIONS):
        self.store = store
        self.max_iterations = max_iterations

    def evaluate(
        self,
        tuple_id: str,
        knowledge: bool,
        invariant: bool,
        evidence: bool,
        confidence: bool,
        action: str | None = None,
        notes: str | None = None,
    ) -> GradientReport:
        signals = (knowledge, invariant, evidence, confidence)
        overall = (
            GradientVerdict.SIGNIFICANT if any(signals) else GradientVerdict.INSIGNIFICANT
        )

        with self.store.mutate(tuple_id) as tup:
            entry = GradientEntry(
                iteration=tup.iteration,
                knowledge=bool(knowledge),
                invariant=bool(invariant),
                evidence=bool(evidence),
                confidence=bool(confidence),
                overall=overall,
                action=action,
                notes=notes,
            )
            tup.gradient_history.append(entry)
            tup.iteration += 1

            if overall == GradientVerdict.INSIGNIFICANT:
                recent = tup.gradient_history[-STAGNATION_WINDOW:]
                if len(recent) == STAGNATION_WINDOW and not any(g.significant for g in recent):
                    recommendation = (
                        "TERMINATE - Zero gradient detected (2+ consecutive insignificant). "
                        "Converged or stuck."
                    )
                    status = TupleStatus.STUCK
                else:
                    recommendation = "TERMINATE - Gradient insignificant. Task appears converged."
                    status = TupleStatus.CONVERGED
            else:
                fired = ", ".join(entry.fired_signals)
                recommendation = f"CONTINUE - Gradient significant ({fired}). More progress possible."
                status = TupleStatus.RUNNING

            if has_pass_marker(tup.check):
                recommendation = "TERMINATE - Invariant satisfied (check slot contains PASS)."
                status = TupleStatus.SUCCESS

            if tup.iteration >= self.max_iterations:
                recommendation = (
                    f"TERMINATE - Max iterations ({self.max_iterations}) reached. Safety limit."
                )
                status = TupleStatus.LIMIT_REACHED

            if status != tup.status:
                logger.info(f"Tuple {tup.id}: {tup.status.value} -> {status.value}")
            tup.status = status

            return GradientReport(
                iteration=tup.iteration,
                gradient=entry,
                recommendation=recommendation,
                status=status,
                significant_count=tup.significant_count,
            )
