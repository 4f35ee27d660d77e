"""
ClaimService: declaration rules and the forward-only claim lifecycle.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from insurance_kernel.domain.lifecycle import ClaimStatus
from insurance_kernel.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


class TestDeclareClaim:
    def test_declared_with_today_as_default_declaration_date(self, claim_service, make_contract):
        contract = make_contract()
        info = claim_service.create_claim(
            numero_sinistre="SIN-001",
            date_incident=date(2025, 6, 10),
            description="Bris de glace",
            id_police=contract.id,
        )
        assert info.statut == ClaimStatus.DECLARED
        assert info.date_declaration == date(2025, 6, 15)

    def test_cannot_start_in_another_status(self, make_claim):
        with pytest.raises(ValidationError) as exc_info:
            make_claim(statut=ClaimStatus.APPROVED)
        assert exc_info.value.field == "statut"

    def test_incident_after_declaration(self, make_claim):
        with pytest.raises(ValidationError) as exc_info:
            make_claim(date_incident=date(2025, 6, 3), date_declaration=date(2025, 6, 2))
        assert exc_info.value.field == "date_incident"

    def test_incident_on_declaration_day_is_fine(self, make_claim):
        info = make_claim(date_incident=date(2025, 6, 2), date_declaration=date(2025, 6, 2))
        assert info.date_incident == info.date_declaration

    def test_unknown_contract(self, make_claim):
        with pytest.raises(NotFoundError) as exc_info:
            make_claim(contract_id=uuid4())
        assert exc_info.value.entity_type == "Contrat"

    def test_negative_estimate(self, make_claim):
        with pytest.raises(ValidationError) as exc_info:
            make_claim(montant_estime="-10")
        assert exc_info.value.field == "montant_estime"

    def test_duplicate_number(self, make_claim):
        make_claim(numero_sinistre="SIN-DUP")
        with pytest.raises(DuplicateError):
            make_claim(numero_sinistre="SIN-DUP")

    def test_folder_must_belong_to_the_contract(self, make_claim, make_contract, make_folder):
        folder = make_folder()
        other_contract = make_contract()
        with pytest.raises(ValidationError) as exc_info:
            make_claim(contract_id=other_contract.id, id_dossier=folder.id)
        assert exc_info.value.field == "id_dossier"

    def test_claim_in_its_contract_folder(self, make_claim, make_folder):
        folder = make_folder()
        info = make_claim(contract_id=folder.id_police, id_dossier=folder.id)
        assert info.id_dossier == folder.id


class TestMoveClaim:
    def test_moving_contract_keeps_folder_consistent(
        self, claim_service, make_claim, make_contract, make_folder
    ):
        folder = make_folder()
        info = make_claim(contract_id=folder.id_police, id_dossier=folder.id)
        other_contract = make_contract()

        with pytest.raises(ValidationError) as exc_info:
            claim_service.update_claim(info.id, {"id_police": other_contract.id})
        assert exc_info.value.field == "id_dossier"

        unchanged = claim_service.get_claim(info.id)
        assert unchanged.id_police == folder.id_police
        assert unchanged.id_dossier == folder.id

    def test_move_with_folder_detached(self, claim_service, make_claim, make_contract, make_folder):
        folder = make_folder()
        info = make_claim(contract_id=folder.id_police, id_dossier=folder.id)
        other_contract = make_contract()

        moved = claim_service.update_claim(
            info.id, {"id_police": other_contract.id, "id_dossier": None}
        )
        assert moved.id_police == other_contract.id
        assert moved.id_dossier is None

    def test_move_into_the_new_contracts_folder(
        self, claim_service, make_claim, make_folder
    ):
        first = make_folder()
        second = make_folder()
        info = make_claim(contract_id=first.id_police, id_dossier=first.id)

        moved = claim_service.update_claim(
            info.id, {"id_police": second.id_police, "id_dossier": second.id}
        )
        assert moved.id_dossier == second.id

    def test_claim_without_folder_moves_freely(self, claim_service, make_claim, make_contract):
        info = make_claim()
        other_contract = make_contract()
        moved = claim_service.update_claim(info.id, {"id_police": other_contract.id})
        assert moved.id_police == other_contract.id


class TestClaimLifecycle:
    def test_full_forward_path(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        claim_service.update_claim(claim.id, {"statut": "Approuvé", "montant_estime": "2500"})
        closed = claim_service.close_claim(claim.id, montant_regle=Decimal("2400"))

        assert closed.statut == ClaimStatus.CLOSED
        assert closed.date_resolution == date(2025, 6, 15)
        assert closed.montant_regle == Decimal("2400")

    def test_rejected_claims_close_too(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        claim_service.update_claim(claim.id, {"statut": "Refusé"})
        closed = claim_service.close_claim(claim.id, date_resolution="2025-06-12")
        assert closed.date_resolution == date(2025, 6, 12)

    def test_cannot_skip_review(self, claim_service, make_claim):
        claim = make_claim()
        with pytest.raises(InvalidStateError) as exc_info:
            claim_service.update_claim(claim.id, {"statut": "Approuvé"})
        assert exc_info.value.current_status == "Déclaré"
        assert claim_service.get_claim(claim.id).statut == ClaimStatus.DECLARED

    def test_cannot_move_backwards(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        with pytest.raises(InvalidStateError):
            claim_service.update_claim(claim.id, {"statut": "Déclaré"})

    def test_closed_is_terminal(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        claim_service.update_claim(claim.id, {"statut": "Refusé"})
        claim_service.close_claim(claim.id)
        for target in ("Déclaré", "En expertise", "Approuvé", "Refusé"):
            with pytest.raises(InvalidStateError):
                claim_service.update_claim(claim.id, {"statut": target})

    def test_resolution_date_only_when_closed(self, claim_service, make_claim):
        claim = make_claim()
        with pytest.raises(ValidationError) as exc_info:
            claim_service.update_claim(claim.id, {"date_resolution": date(2025, 6, 10)})
        assert exc_info.value.field == "date_resolution"

    def test_resolution_cannot_precede_incident(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        claim_service.update_claim(claim.id, {"statut": "Approuvé"})
        with pytest.raises(ValidationError):
            claim_service.close_claim(claim.id, date_resolution=date(2025, 5, 1))


class TestDeleteClaim:
    def test_delete(self, claim_service, make_claim):
        claim = make_claim()
        claim_service.delete_claim(claim.id)
        assert claim_service.find_by_number(claim.numero_sinistre) is None

    def test_claim_with_indemnification_is_kept(
        self, claim_service, indemnification_service, make_claim
    ):
        claim = make_claim()
        indemnification_service.propose_indemnification(claim.id, "100")
        with pytest.raises(ValidationError):
            claim_service.delete_claim(claim.id)


class TestListClaims:
    def test_filter_by_contract_and_status(self, claim_service, make_claim, make_contract):
        contract = make_contract()
        first = make_claim(contract_id=contract.id, numero_sinistre="SIN-A")
        second = make_claim(contract_id=contract.id, numero_sinistre="SIN-B")
        make_claim()
        claim_service.update_claim(second.id, {"statut": "En expertise"})

        assert [c.id for c in claim_service.list_claims(contract_id=contract.id)] == [
            first.id,
            second.id,
        ]
        declared = claim_service.list_claims(contract_id=contract.id, statut=ClaimStatus.DECLARED)
        assert [c.id for c in declared] == [first.id]
