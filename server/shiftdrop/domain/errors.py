from __future__ import annotations
"""server/shiftdrop/domain/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Taxonomie des erreurs métier.

- InvalidInput           : entrée invalide (jamais rejouée)
- BusinessRuleViolation  : règle métier refusée (complet, déjà pris, ...)
- ConcurrencyConflict    : conflit de version au commit ("quelqu'un a été plus rapide")
- NotFound               : identifiant inconnu

Les échecs de livraison SMS ne font PAS partie de cette hiérarchie : ils sont
absorbés par le worker outbox (cf. DeliveryError côté notifications).
"""


class DomainError(Exception):
    """Base des erreurs remontées à l'appelant immédiat."""

    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(DomainError):
    code = "invalid_input"


class NotFound(DomainError):
    code = "not_found"


class ConcurrencyConflict(DomainError):
    code = "concurrency_conflict"

    def __init__(self, message: str = "Sorry, this shift was just changed by someone else. Try again!"):
        super().__init__(message)


class BusinessRuleViolation(DomainError):
    code = "business_rule"


class AlreadyStarted(BusinessRuleViolation):
    code = "already_started"

    def __init__(self, message: str = "This shift has already started"):
        super().__init__(message)


class AlreadyFilled(BusinessRuleViolation):
    code = "already_filled"

    def __init__(self, message: str = "This shift is already filled"):
        super().__init__(message)


class ShiftCancelled(BusinessRuleViolation):
    code = "cancelled"

    def __init__(self, message: str = "This shift has been cancelled"):
        super().__init__(message)


class NoSpotsRemaining(BusinessRuleViolation):
    code = "no_spots_remaining"

    def __init__(self, message: str = "No spots remaining for this shift"):
        super().__init__(message)


class NoActiveClaim(BusinessRuleViolation):
    code = "no_active_claim"

    def __init__(self, message: str = "No active claim found for this shift"):
        super().__init__(message)


class DuplicateActiveClaim(BusinessRuleViolation):
    code = "duplicate_active_claim"

    def __init__(self, message: str = "You have already claimed this shift"):
        super().__init__(message)


class CrossPoolMismatch(BusinessRuleViolation):
    code = "cross_pool_mismatch"

    def __init__(self, message: str = "Cannot claim a shift from a different pool"):
        super().__init__(message)


class InvalidClaimToken(BusinessRuleViolation):
    code = "invalid_claim_token"

    def __init__(self, message: str = "Invalid or unknown claim link"):
        super().__init__(message)
