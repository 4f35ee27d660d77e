"""
Data transfer objects returned by the workflow services.

Services hand these frozen dataclasses back to callers instead of ORM
instances, so nothing outside the request session can lazy-load or mutate
persistent state.  Status fields are always enum members, whatever the
database returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from insurance_kernel.domain.lifecycle import (
    ClaimStatus,
    ContractStatus,
    IndemnificationStatus,
    PremiumStatus,
    ReconciliationTarget,
    TransactionType,
)


def _coerce(obj: Any, field_name: str, enum_cls: type) -> None:
    object.__setattr__(obj, field_name, enum_cls(getattr(obj, field_name)))


@dataclass(frozen=True)
class PaymentDetails:
    """Payment metadata supplied when settling an indemnification or premium."""

    reference_paiement: str | None = None
    mode_paiement: str | None = None
    date_paiement: date | None = None


@dataclass(frozen=True)
class ClientInfo:
    id: UUID
    nom: str
    prenom: str
    email: str
    telephone: str | None
    carte_identite: str | None
    adresse: str | None


@dataclass(frozen=True)
class ContractInfo:
    id: UUID
    numero_contrat: str
    date_debut: date
    date_fin: date
    montant_prime: Decimal
    statut: ContractStatus
    id_client: UUID
    id_type_assurance: UUID
    id_compagnie: UUID
    id_utilisateur_gestionnaire: UUID | None

    def __post_init__(self) -> None:
        _coerce(self, "statut", ContractStatus)

    @property
    def is_terminal(self) -> bool:
        return self.statut in (ContractStatus.EXPIRED, ContractStatus.CANCELLED)


@dataclass(frozen=True)
class ClaimInfo:
    id: UUID
    numero_sinistre: str
    date_declaration: date
    date_incident: date
    description: str
    type_sinistre: str | None
    statut: ClaimStatus
    montant_estime: Decimal | None
    montant_regle: Decimal | None
    date_resolution: date | None
    id_police: UUID
    id_dossier: UUID | None
    id_utilisateur_gestionnaire: UUID | None

    def __post_init__(self) -> None:
        _coerce(self, "statut", ClaimStatus)


@dataclass(frozen=True)
class IndemnificationInfo:
    id: UUID
    id_sinistre: UUID
    montant: Decimal
    description_indemnisation: str | None
    statut: IndemnificationStatus
    date_paiement: date | None
    mode_paiement: str | None
    reference_paiement: str | None

    def __post_init__(self) -> None:
        _coerce(self, "statut", IndemnificationStatus)


@dataclass(frozen=True)
class PremiumInfo:
    id: UUID
    id_contrat: UUID
    montant: Decimal
    date_echeance: date
    statut: PremiumStatus
    date_paiement: date | None
    mode_paiement: str | None
    reference_paiement: str | None

    def __post_init__(self) -> None:
        _coerce(self, "statut", PremiumStatus)


@dataclass(frozen=True)
class FolderInfo:
    id: UUID
    numero_dossier: str
    titre: str | None
    date_creation: date
    id_police: UUID
    id_etat_dossier: UUID | None


@dataclass(frozen=True)
class ArchiveInfo:
    id: UUID
    id_dossier: UUID
    numero_dossier: str
    raison_archivage: str
    contenu_dossier: dict[str, Any]
    date_archivage: datetime
    archive_par_id: UUID | None


@dataclass(frozen=True)
class VehicleInfo:
    id: UUID
    immatriculation: str
    marque: str | None
    modele: str | None
    annee: int | None
    id_police: UUID | None


@dataclass(frozen=True)
class DocumentInfo:
    id: UUID
    nom_fichier: str
    chemin_fichier: str
    type_fichier: str | None
    id_client: UUID | None
    id_police: UUID | None
    id_sinistre: UUID | None
    id_dossier: UUID | None


@dataclass(frozen=True)
class UserInfo:
    id: UUID
    nom: str
    prenom: str
    email: str
    fonction: str | None
    direction: str | None
    is_actif: bool
    id_role: UUID


@dataclass(frozen=True)
class BankTransactionInfo:
    id: UUID
    date_transaction: date
    montant: Decimal
    description: str | None
    reference: str | None
    type_transaction: TransactionType
    type_entite_rapprochee: ReconciliationTarget | None
    id_entite_rapprochee: UUID | None
    date_rapprochement: date | None

    def __post_init__(self) -> None:
        _coerce(self, "type_transaction", TransactionType)
        if self.type_entite_rapprochee is not None:
            _coerce(self, "type_entite_rapprochee", ReconciliationTarget)
