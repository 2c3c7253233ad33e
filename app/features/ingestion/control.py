"""
➡️ But : Contrôle d'une session d'upload : annulation coopérative et séquencement des réponses.

CancellationToken : drapeau explicite, vérifié à chaque point de suspension.
Un appel réseau déjà parti n'est pas interrompu, seul son résultat est ignoré.

ResponseSequencer : chaque appel distant reçoit un ticket (génération, numéro).
Une réponse n'est acceptée que si :
  - sa génération est la génération courante (sinon : continuation périmée d'une session précédente) ;
  - son numéro est strictement supérieur au dernier accepté (sinon : livraison dupliquée).
La comparaison se fait par valeur, jamais par identité d'objet.
"""

from dataclasses import dataclass
from typing import Optional

from app.features.ingestion.errors import PipelineCancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise PipelineCancelledError(self.reason)


@dataclass(frozen=True)
class Ticket:
    generation: int
    seq: int


class ResponseSequencer:
    def __init__(self) -> None:
        self._generation = 0
        self._issued = 0
        self._accepted = 0

    @property
    def generation(self) -> int:
        return self._generation

    def next_generation(self) -> int:
        """Invalide tous les tickets en circulation (reset / nouvelle session)."""
        self._generation += 1
        self._issued = 0
        self._accepted = 0
        return self._generation

    def issue(self) -> Ticket:
        self._issued += 1
        return Ticket(generation=self._generation, seq=self._issued)

    def is_stale(self, ticket: Ticket) -> bool:
        return ticket.generation != self._generation

    def accept(self, ticket: Ticket) -> bool:
        if self.is_stale(ticket):
            return False
        if ticket.seq <= self._accepted:
            return False
        self._accepted = ticket.seq
        return True
